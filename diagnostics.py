from __future__ import annotations

import numpy as np

from climatology import SLOTS_PER_YEAR, Stats


def linear_trend_per_decade(years: np.ndarray, y: np.ndarray) -> tuple[float, float]:
    """
    OLS trend slope in units of y per decade.
    Returns (slope_per_decade, intercept).
    Ignores NaNs.
    """
    years = np.asarray(years, dtype=float)
    y = np.asarray(y, dtype=float)
    mask = np.isfinite(y)
    x0 = years[mask]
    y0 = y[mask]
    if len(y0) < 10:
        return np.nan, np.nan

    x = x0 - x0[0]
    A = np.vstack([x, np.ones_like(x)]).T
    slope, intercept = np.linalg.lstsq(A, y0, rcond=None)[0]
    return float(slope * 10.0), float(intercept)


def complete_years(stats: Stats) -> np.ndarray:
    """Mask of histogram years fully covered by the aligned series."""
    n_years = len(stats.histogram_labels)
    mask = np.ones(n_years, dtype=bool)
    if n_years and stats.aligned_days % SLOTS_PER_YEAR:
        mask[-1] = False
    return mask


def extremity_summary(stats: Stats) -> dict:
    """
    Totals, record years and decadal trends of the extremity histogram.
    A trailing partial year is left out of the trends and record years.
    """
    years = np.asarray(stats.histogram_labels, dtype=float)
    cold = -np.asarray(stats.histogram_low, dtype=float)
    hot = np.asarray(stats.histogram_high, dtype=float)

    keep = complete_years(stats)
    out = {
        "years": len(years),
        "complete_years": int(keep.sum()),
        "cold_days_total": int(cold.sum()),
        "hot_days_total": int(hot.sum()),
        "mean_of_daily_average": float(np.nanmean(stats.average_per_day)),
        "coldest_year": None,
        "hottest_year": None,
        "cold_days_trend_per_decade": np.nan,
        "hot_days_trend_per_decade": np.nan,
    }
    if not keep.any():
        return out

    ky, kc, kh = years[keep], cold[keep], hot[keep]
    out["coldest_year"] = int(ky[np.argmax(kc)])
    out["hottest_year"] = int(ky[np.argmax(kh)])
    out["cold_days_trend_per_decade"], _ = linear_trend_per_decade(ky, kc)
    out["hot_days_trend_per_decade"], _ = linear_trend_per_decade(ky, kh)
    return out
