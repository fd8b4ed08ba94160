"""Tests for CSVDataProvider."""

import datetime as dt

import pandas as pd
import pytest

from algo_engine.data.csv_provider import CSVDataProvider


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "xyzusd_1h.csv"
    df = pd.DataFrame(
        {
            # Unsorted, with a duplicated timestamp whose last row wins
            "Timestamp": [
                "2024-01-01 02:00:00+00:00",
                "2024-01-01 00:00:00+00:00",
                "2024-01-01 01:00:00+00:00",
                "2024-01-01 01:00:00+00:00",
            ],
            "Open": [102.0, 100.0, 101.0, 101.5],
            "High": [103.0, 101.0, 102.0, 102.5],
            "Low": [101.0, 99.0, 100.0, 100.5],
            "Close": [102.5, 100.5, 101.5, 102.0],
            "Volume": [10, 20, 30, 40],
        }
    )
    df.to_csv(path, index=False)
    return path


def test_load_sorts_and_deduplicates(csv_file):
    window = CSVDataProvider().load_data("XYZUSD", "H1", filepath=str(csv_file))

    assert len(window) == 3
    assert [c.date for c in window] == [
        dt.datetime(2024, 1, 1, 0),
        dt.datetime(2024, 1, 1, 1),
        dt.datetime(2024, 1, 1, 2),
    ]
    assert window[1].open == pytest.approx(101.5)
    assert window[1].volume == pytest.approx(40.0)


def test_load_filters_date_range(csv_file):
    window = CSVDataProvider().load_data(
        "XYZUSD",
        "H1",
        start_date=pd.Timestamp("2024-01-01 01:00"),
        end_date=pd.Timestamp("2024-01-01 01:00"),
        filepath=str(csv_file),
    )
    assert len(window) == 1
    assert window[0].close == pytest.approx(102.0)


def test_short_column_names_and_no_volume(tmp_path):
    path = tmp_path / "short.csv"
    pd.DataFrame(
        {
            "date": ["2024-01-01", "2024-01-02"],
            "o": [1.0, 2.0],
            "h": [1.5, 2.5],
            "l": [0.5, 1.5],
            "c": [1.2, 2.2],
        }
    ).to_csv(path, index=False)

    window = CSVDataProvider().load_data("XYZ", "D", filepath=str(path))
    assert len(window) == 2
    assert window[1].close == pytest.approx(2.2)
    assert window[0].volume == 0.0


def test_requires_filepath():
    with pytest.raises(ValueError):
        CSVDataProvider().load_data("XYZ", "H1")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CSVDataProvider().load_data("XYZ", "H1", filepath=str(tmp_path / "nope.csv"))


def test_missing_ohlc_column(tmp_path):
    path = tmp_path / "bad.csv"
    pd.DataFrame({"timestamp": ["2024-01-01"], "open": [1.0], "close": [1.0]}).to_csv(
        path, index=False
    )
    with pytest.raises(ValueError):
        CSVDataProvider().load_data("XYZ", "H1", filepath=str(path))


def test_empty_date_range(csv_file):
    with pytest.raises(ValueError):
        CSVDataProvider().load_data(
            "XYZ", "H1", start_date=pd.Timestamp("2030-01-01"), filepath=str(csv_file)
        )
