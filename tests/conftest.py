# tests/conftest.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

import matplotlib
import pandas as pd
import pytest

matplotlib.use("Agg")

# MM-DD of a non-leap calendar
NOLEAP_DAYS = [(date(2001, 1, 1) + timedelta(days=i)).strftime("%m-%d") for i in range(365)]


def _noleap_labels(epoch_year: int, n_years: int, extra_days: int = 0) -> list[str]:
    labels = [f"{epoch_year + k}-{mmdd}" for k in range(n_years) for mmdd in NOLEAP_DAYS]
    labels += [f"{epoch_year + n_years}-{mmdd}" for mmdd in NOLEAP_DAYS[:extra_days]]
    return labels


@pytest.fixture
def noleap_labels() -> Callable[..., list[str]]:
    """Labels of n_years 365-day years starting on 1 January of epoch_year."""
    return _noleap_labels


@pytest.fixture
def calendar_labels() -> Callable[[str, str], list[str]]:
    """Real calendar labels (leap days included) between two dates, inclusive."""
    def _make(start: str, end: str) -> list[str]:
        return [d.strftime("%Y-%m-%d") for d in pd.date_range(start, end, freq="D")]
    return _make
