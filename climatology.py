from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

SLOTS_PER_YEAR = 365
# 1-based ordinal of Feb 29; an extra leap day lands on the zero-based slot below.
# Comparing at slot 60 instead would file Feb 29 under 03-01 and drop Mar 1
# (see test_leap_day_is_skipped_without_shifting_later_days).
LEAP_DAY_OF_YEAR = 31 + 29
LEAP_SLOT_INDEX = LEAP_DAY_OF_YEAR - 1
EXTREMITY_RANK = 4
DEFAULT_EPOCH_YEAR = 1959


class SeriesError(ValueError):
    """Structural problem with the daily input series."""


class InvalidSeriesLength(SeriesError):
    pass


class MisalignedEpoch(SeriesError):
    pass


@dataclass(frozen=True)
class Stats:
    epoch_year: int
    selected_year: int
    labels_per_day: list[str]
    min_per_day: list[float]
    max_per_day: list[float]
    average_per_day: list[float]
    low_threshold_per_day: list[float]
    high_threshold_per_day: list[float]
    samples_per_day: list[int]
    aligned_days: int
    selected_year_values: list[float]
    histogram_labels: list[int]
    histogram_low: list[int]
    histogram_high: list[int]


@dataclass(frozen=True)
class _SlotSamples:
    labels_per_day: list[str]
    sorted_samples: list[np.ndarray]
    selected_year_values: list[float]
    n_years: int
    n_days: int


def _day_label(label: str) -> str:
    # "YYYY-MM-DD" or "YYYY-MM-DDThh:mm" -> "MM-DD"
    return label[:10][5:]


def _reference_labels(labels: Sequence[str]) -> list[str]:
    out: list[str] = []
    for label in labels:
        mmdd = _day_label(label)
        if mmdd == "02-29":
            continue
        out.append(mmdd)
        if len(out) == SLOTS_PER_YEAR:
            return out
    raise InvalidSeriesLength(
        f"Series holds {len(out)} non-leap days, at least {SLOTS_PER_YEAR} are required."
    )


def _walk_slots(labels: Sequence[str], reference: list[str]) -> Iterator[tuple[int, int, int]]:
    """
    Yield (index, year_index, slot) for every entry kept by the leap-day skip rule.
    """
    curr_day = 0
    year_index = 0
    for i, label in enumerate(labels):
        if curr_day == LEAP_SLOT_INDEX and _day_label(label) != reference[curr_day]:
            continue
        yield i, year_index, curr_day
        curr_day = (curr_day + 1) % SLOTS_PER_YEAR
        if curr_day == 0:
            year_index += 1


def threshold_indices(n_samples: int, rank: int = EXTREMITY_RANK) -> tuple[int, int]:
    """
    Positions of the low / high order statistics in a sorted sample of size n.
    Below 2*rank-1 samples the rank is clamped toward the median so low <= high.
    """
    if n_samples < 1:
        raise InvalidSeriesLength("Cannot take order statistics of an empty sample.")
    k = min(rank - 1, (n_samples - 1) // 2)
    return k, n_samples - 1 - k


def validate_series(labels: Sequence[str], values: Sequence[float], epoch_year: int) -> None:
    if len(labels) != len(values):
        raise InvalidSeriesLength(
            f"labels and values differ in length: {len(labels)} != {len(values)}"
        )
    if len(labels) < SLOTS_PER_YEAR:
        raise InvalidSeriesLength(
            f"Series has {len(labels)} days, at least {SLOTS_PER_YEAR} are required."
        )
    first = labels[0][:10]
    if first != f"{epoch_year:04d}-01-01":
        raise MisalignedEpoch(f"Series starts on {first!r}, expected {epoch_year:04d}-01-01.")


def build_slot_samples(
    labels: Sequence[str],
    values: Sequence[float],
    selected_year: int,
    epoch_year: int = DEFAULT_EPOCH_YEAR,
) -> _SlotSamples:
    """
    Pass 1: distribute every non-leap day into its day-of-year slot and pick out
    the selected year on the way.
    """
    reference = _reference_labels(labels)
    samples: list[list[float]] = [[] for _ in range(SLOTS_PER_YEAR)]
    selected: list[float] = []
    selected_index = selected_year - epoch_year
    n_years = 0
    n_days = 0

    for i, year_index, slot in _walk_slots(labels, reference):
        n_days += 1
        v = float(values[i])
        # missing readings keep their slot but are not sampled
        if not np.isnan(v):
            samples[slot].append(v)
        if year_index == selected_index:
            selected.append(v)
        n_years = year_index + 1

    return _SlotSamples(
        labels_per_day=reference,
        sorted_samples=[np.sort(np.asarray(s, dtype=float), kind="stable") for s in samples],
        selected_year_values=selected,
        n_years=n_years,
        n_days=n_days,
    )


def build_extremity_histogram(
    labels: Sequence[str],
    values: Sequence[float],
    low: Sequence[float],
    high: Sequence[float],
    labels_per_day: list[str],
    n_years: int,
) -> tuple[list[int], list[int]]:
    """
    Pass 2: per year, count days strictly below the slot's low threshold (as a
    negative number) and strictly above its high threshold.
    Thresholds must be final before this runs.
    """
    hist_low = [0] * n_years
    hist_high = [0] * n_years

    for i, year_index, slot in _walk_slots(labels, labels_per_day):
        v = float(values[i])
        if v < low[slot]:
            hist_low[year_index] -= 1
        if v > high[slot]:
            hist_high[year_index] += 1

    return hist_low, hist_high


def aggregate(
    labels: Sequence[str],
    values: Sequence[float],
    selected_year: str | int,
    epoch_year: int = DEFAULT_EPOCH_YEAR,
) -> Stats:
    """
    Day-of-year min / max / mean over all years, the selected year's values and
    the per-year extremity histogram.
    """
    validate_series(labels, values, epoch_year)
    year = int(selected_year)

    pass1 = build_slot_samples(labels, values, year, epoch_year)

    min_per_day: list[float] = []
    max_per_day: list[float] = []
    average_per_day: list[float] = []
    low: list[float] = []
    high: list[float] = []
    counts: list[int] = []
    for s in pass1.sorted_samples:
        if len(s) == 0:
            # slot missing in every year: NaN never counts in pass 2
            for arr in (min_per_day, max_per_day, average_per_day, low, high):
                arr.append(np.nan)
            counts.append(0)
            continue
        lo_idx, hi_idx = threshold_indices(len(s))
        min_per_day.append(float(s[0]))
        max_per_day.append(float(s[-1]))
        # clip absorbs summation rounding on near-constant samples
        average_per_day.append(float(np.clip(np.mean(s), s[0], s[-1])))
        low.append(float(s[lo_idx]))
        high.append(float(s[hi_idx]))
        counts.append(len(s))

    hist_low, hist_high = build_extremity_histogram(
        labels, values, low, high, pass1.labels_per_day, pass1.n_years
    )

    return Stats(
        epoch_year=epoch_year,
        selected_year=year,
        labels_per_day=pass1.labels_per_day,
        min_per_day=min_per_day,
        max_per_day=max_per_day,
        average_per_day=average_per_day,
        low_threshold_per_day=low,
        high_threshold_per_day=high,
        samples_per_day=counts,
        aligned_days=pass1.n_days,
        selected_year_values=pass1.selected_year_values,
        histogram_labels=[epoch_year + k for k in range(pass1.n_years)],
        histogram_low=hist_low,
        histogram_high=hist_high,
    )


def years_covered(labels: Sequence[str]) -> list[int]:
    """Calendar years present in the series, newest first."""
    return sorted({int(label[:4]) for label in labels}, reverse=True)
