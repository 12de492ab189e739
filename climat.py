from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np
import pandas as pd

from meteo_io import VARIABLES, Location, OpenMeteoArchiveSource, default_end_date, load_daily_series
from climatology import DEFAULT_EPOCH_YEAR, EXTREMITY_RANK, Stats, aggregate, years_covered
from anomalies import selected_year_anomalies
from diagnostics import extremity_summary
from plots import plot_day_of_year_envelope, plot_extremity_histogram, plot_selected_year_anomaly


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Daily climate records (Open-Meteo archive): per-day min/max/mean + yearly extremity counts"
    )

    p.add_argument("--lat", type=float, required=True)
    p.add_argument("--lon", type=float, required=True)
    p.add_argument("--name", type=str, default=None, help="Place name used in chart titles.")

    p.add_argument("--epoch-year", type=int, default=DEFAULT_EPOCH_YEAR, help="First year of the series.")
    p.add_argument("--end-date", type=str, default=None, help="YYYY-MM-DD (default: end of last complete year)")
    p.add_argument("--year", type=str, default=None, help="Year to overlay (default: last year of the series)")

    p.add_argument("--variable", type=str, default="temperature_2m_min", choices=sorted(VARIABLES))
    p.add_argument("--timezone", type=str, default="Europe/Berlin")

    p.add_argument("--outdir", type=str, default="outputs")
    p.add_argument("--cache-dir", type=str, default="meteo_cache", help="Local cache directory for API responses.")
    p.add_argument("--offline", action="store_true", help="Offline strict mode (never download).")

    return p.parse_args(argv)


def per_day_frame(stats: Stats) -> pd.DataFrame:
    n = len(stats.labels_per_day)
    selected = np.full(n, np.nan)
    selected[: len(stats.selected_year_values)] = stats.selected_year_values
    return pd.DataFrame({
        "slot": np.arange(n),
        "mmdd": stats.labels_per_day,
        "min": stats.min_per_day,
        "max": stats.max_per_day,
        "mean": stats.average_per_day,
        "low_threshold": stats.low_threshold_per_day,
        "high_threshold": stats.high_threshold_per_day,
        "samples": stats.samples_per_day,
        f"year_{stats.selected_year}": selected,
    })


def per_year_frame(stats: Stats) -> pd.DataFrame:
    return pd.DataFrame({
        "year": stats.histogram_labels,
        "low": stats.histogram_low,
        "high": stats.histogram_high,
    })


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    cache_dir = Path(args.cache_dir)
    if args.offline and not cache_dir.exists():
        raise FileNotFoundError(f"Offline mode: cache dir not found: {cache_dir}")

    print(f"[climat] cache_dir={cache_dir.resolve()} offline={args.offline}")

    location = Location(latitude=args.lat, longitude=args.lon, name=args.name)
    end_date = args.end_date or default_end_date()
    source = OpenMeteoArchiveSource(
        variable=args.variable,
        start_date=f"{args.epoch_year}-01-01",
        end_date=end_date,
        timezone=args.timezone,
    )

    # ----------------------------
    # 1) Daily series
    # ----------------------------
    labels, values = load_daily_series(
        source,
        location,
        cache_dir=str(cache_dir),
        offline=args.offline,
    )
    years = years_covered(labels)
    year = args.year if args.year is not None else str(years[0])
    print(f"[climat] years {years[-1]}..{years[0]} (count={len(years)}), selected={year}")

    # ----------------------------
    # 2) Aggregation
    # ----------------------------
    stats = aggregate(labels, values, year, epoch_year=args.epoch_year)
    print(f"[aggregate] {stats.aligned_days} aligned days over {len(stats.histogram_labels)} years")
    if not stats.selected_year_values:
        print(f"[climat] no data for year {year}")

    summary = {
        "location": {"latitude": location.latitude, "longitude": location.longitude, "name": location.name},
        "source": source.describe(),
        "window": {"start": source.start_date, "end": source.end_date},
        "selected_year": stats.selected_year,
        "selected_year_days": len(stats.selected_year_values),
        "extremity": extremity_summary(stats),
    }

    # ----------------------------
    # 3) Outputs
    # ----------------------------
    per_day_frame(stats).to_csv(outdir / "per_day.csv", index=False)
    per_year_frame(stats).to_csv(outdir / "per_year.csv", index=False)

    (outdir / "summary.json").write_text(json.dumps(summary, indent=2))
    print("Wrote:", outdir / "summary.json")

    place = location.name or f"{location.latitude:.2f},{location.longitude:.2f}"
    title = f"{source.describe()} | {place} | {years[-1]}..{years[0]}"

    plot_day_of_year_envelope(stats, title=title, out_png=str(outdir / "envelope.png"))
    plot_extremity_histogram(
        stats,
        title=f"{title} | days beyond rank-{EXTREMITY_RANK} extremes",
        out_png=str(outdir / "extremity_histogram.png"),
    )
    if stats.selected_year_values:
        anom = selected_year_anomalies(stats)
        plot_selected_year_anomaly(
            anom,
            title=f"{source.describe()} | {place} | {stats.selected_year} vs. daily mean",
            out_png=str(outdir / "anomaly.png"),
        )

    print("Wrote plots in:", outdir)


if __name__ == "__main__":
    main()
