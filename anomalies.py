from __future__ import annotations

import numpy as np
import xarray as xr

from climatology import Stats


def stats_to_dataset(stats: Stats) -> xr.Dataset:
    """
    Per-day statistics as a Dataset indexed by day-of-year slot (0..364),
    with the MM-DD label as a coordinate.
    """
    slot = np.arange(len(stats.labels_per_day))
    coords = {"slot": slot, "mmdd": ("slot", list(stats.labels_per_day))}
    ds = xr.Dataset(
        {
            "min": ("slot", np.asarray(stats.min_per_day, dtype=float)),
            "max": ("slot", np.asarray(stats.max_per_day, dtype=float)),
            "mean": ("slot", np.asarray(stats.average_per_day, dtype=float)),
            "low_threshold": ("slot", np.asarray(stats.low_threshold_per_day, dtype=float)),
            "high_threshold": ("slot", np.asarray(stats.high_threshold_per_day, dtype=float)),
            "samples": ("slot", np.asarray(stats.samples_per_day, dtype=int)),
        },
        coords=coords,
    )
    ds.attrs["epoch_year"] = stats.epoch_year
    return ds


def selected_year_anomalies(stats: Stats) -> xr.DataArray:
    """
    Selected year minus the all-years mean of each slot it covers.
    Empty when the selected year has no data.
    """
    n = len(stats.selected_year_values)
    clim = stats_to_dataset(stats)["mean"].isel(slot=slice(0, n))
    values = xr.DataArray(
        np.asarray(stats.selected_year_values, dtype=float),
        dims=("slot",),
        coords={"slot": clim["slot"]},
    )
    anom = (values - clim).assign_coords(mmdd=clim["mmdd"])
    anom.name = "anomaly"
    anom.attrs["year"] = stats.selected_year
    return anom
