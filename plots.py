from __future__ import annotations

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter
import xarray as xr

from climatology import Stats


def _degree_axis(ax) -> None:
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{v:g}°"))


def _month_ticks(ax, labels: list[str]) -> None:
    # one tick on the first day of each month
    idx = [i for i, mmdd in enumerate(labels) if mmdd.endswith("-01")]
    ax.set_xticks(idx)
    ax.set_xticklabels([labels[i] for i in idx], rotation=45)


def plot_day_of_year_envelope(stats: Stats, title: str, out_png: str) -> None:
    x = np.arange(len(stats.labels_per_day))
    sel = np.asarray(stats.selected_year_values, dtype=float)

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.plot(x, stats.min_per_day, color="blue", linewidth=1, label="Min")
    ax.plot(x, stats.max_per_day, color="red", linewidth=1, label="Max")
    if len(sel):
        ax.plot(x[: len(sel)], sel, color="green", linewidth=1, label=str(stats.selected_year))

    _month_ticks(ax, stats.labels_per_day)
    _degree_axis(ax)
    ax.set_title(title)
    ax.set_xlabel("Day of year")
    ax.legend(loc="upper left")
    fig.tight_layout()
    fig.savefig(out_png, dpi=150)
    plt.close(fig)


def plot_extremity_histogram(stats: Stats, title: str, out_png: str) -> None:
    years = np.asarray(stats.histogram_labels)

    plt.figure(figsize=(12, 5))
    plt.bar(years, stats.histogram_low, color="blue", label="Cold days")
    plt.bar(years, stats.histogram_high, color="red", label="Hot days")
    plt.axhline(0, color="black", linewidth=0.5)
    plt.title(title)
    plt.xlabel("Year")
    plt.ylabel("Days beyond threshold")
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=150)
    plt.close()


def plot_selected_year_anomaly(anom: xr.DataArray, title: str, out_png: str) -> None:
    y = anom.to_numpy()
    x = anom["slot"].to_numpy()
    labels = [str(m) for m in anom["mmdd"].to_numpy()]

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.fill_between(x, 0, y, where=y >= 0, color="red", alpha=0.5, interpolate=True)
    ax.fill_between(x, 0, y, where=y < 0, color="blue", alpha=0.5, interpolate=True)
    ax.axhline(0, color="black", linewidth=0.5)

    _month_ticks(ax, labels)
    _degree_axis(ax)
    ax.set_title(title)
    ax.set_xlabel("Day of year")
    ax.set_ylabel("Anomaly vs. daily mean")
    fig.tight_layout()
    fig.savefig(out_png, dpi=180)
    plt.close(fig)
