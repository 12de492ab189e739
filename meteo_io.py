# meteo_io.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlencode
import hashlib
import json
import time
import urllib.error
import urllib.request

import numpy as np
import pandas as pd

OPEN_METEO_ARCHIVE = "https://archive-api.open-meteo.com/v1/archive"

# Daily variables served by the archive API, with a display label
VARIABLES: dict[str, str] = {
    "temperature_2m_min": "Température Min",
    "temperature_2m_max": "Température Max",
    "temperature_2m_mean": "Température Moyenne",
}


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    name: str | None = None

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


class VariableSource(Protocol):
    def describe(self) -> str: ...

    def build_request(self, location: Location) -> str: ...

    def extract_series(self, raw: dict[str, Any]) -> tuple[list[str], list[float]]: ...


def default_end_date(today: pd.Timestamp | None = None) -> str:
    """Last day of the last complete year."""
    today = pd.Timestamp.today() if today is None else today
    return f"{today.year - 1}-12-31"


@dataclass(frozen=True)
class OpenMeteoArchiveSource:
    """
    One daily variable of the Open-Meteo historical archive.
    https://open-meteo.com/en/docs/historical-weather-api
    """
    variable: str = "temperature_2m_min"
    start_date: str = "1959-01-01"
    end_date: str = "2022-12-31"
    timezone: str = "Europe/Berlin"
    base_url: str = OPEN_METEO_ARCHIVE

    def __post_init__(self) -> None:
        if self.variable not in VARIABLES:
            raise KeyError(f"Unknown variable {self.variable!r}. Available: {list(VARIABLES)}")
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")

    def describe(self) -> str:
        return f"Historique - {VARIABLES[self.variable]}"

    def build_request(self, location: Location) -> str:
        params = {
            "timezone": self.timezone,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "daily": self.variable,
        }
        return f"{self.base_url}?{urlencode(params)}"

    def extract_series(self, raw: dict[str, Any]) -> tuple[list[str], list[float]]:
        if "daily" not in raw:
            raise KeyError(f"'daily' not found in response. Available keys: {list(raw)}")
        daily = raw["daily"]
        for field in ("time", self.variable):
            if field not in daily:
                raise KeyError(f"'{field}' not found in daily block. Available: {list(daily)}")

        labels = [str(t) for t in daily["time"]]
        # null readings come back as None
        values = [np.nan if v is None else float(v) for v in daily[self.variable]]
        if len(labels) != len(values):
            raise ValueError(f"time and {self.variable} differ in length: {len(labels)} != {len(values)}")
        return labels, values


def cache_name(url: str) -> str:
    """Cache file name keyed on the full request URL."""
    return f"{hashlib.sha1(url.encode('utf-8')).hexdigest()[:20]}.json"


def _fetch_json(url: str, timeout: float = 60.0) -> dict[str, Any]:
    with urllib.request.urlopen(url, timeout=timeout) as resp:
        return json.loads(resp.read().decode("utf-8"))


def _download_to_cache(url: str, out: Path) -> dict[str, Any]:
    out.parent.mkdir(parents=True, exist_ok=True)
    print(f"[download] {url} -> {out}")
    raw = _fetch_json(url)
    out.write_text(json.dumps(raw), encoding="utf-8")
    return raw


def load_daily_series(
    source: VariableSource,
    location: Location,
    cache_dir: str | None = None,
    offline: bool = False,
    max_retries: int = 6,
) -> tuple[list[str], list[float]]:
    cache_path = Path(cache_dir) if cache_dir is not None else None
    url = source.build_request(location)

    local_file: Path | None = None
    if cache_path is not None:
        candidate = cache_path / cache_name(url)
        if candidate.exists():
            local_file = candidate
        elif offline:
            raise FileNotFoundError(f"Offline mode: missing local file {candidate}")
    elif offline:
        raise FileNotFoundError("Offline mode requires a cache directory.")

    raw: dict[str, Any] | None = None
    if local_file is not None:
        print(f"[open-local] {source.describe()} -> {local_file}")
        raw = json.loads(local_file.read_text(encoding="utf-8"))
    else:
        last_err: Exception | None = None
        for k in range(max_retries):
            try:
                if cache_path is not None:
                    raw = _download_to_cache(url, cache_path / cache_name(url))
                else:
                    print(f"[fetch] {url}")
                    raw = _fetch_json(url)
                last_err = None
                break
            except Exception as e:
                # client errors (bad window, bad coordinates) will not go away on retry
                if isinstance(e, urllib.error.HTTPError) and 400 <= e.code < 500:
                    raise RuntimeError(f"Request rejected for {url}: HTTP {e.code} {e.reason}") from e
                last_err = e
                wait = 2**k
                print(f"[retry] attempt={k+1}/{max_retries} failed: {e} -> sleep {wait}s")
                time.sleep(wait)

        if last_err is not None or raw is None:
            raise RuntimeError(f"Failed too many times for {url}: {last_err}")

    labels, values = source.extract_series(raw)
    if not labels:
        raise ValueError("No data returned for requested window/location.")

    print(f"[done] {len(labels)} days {labels[0][:10]}..{labels[-1][:10]}")
    return labels, values
