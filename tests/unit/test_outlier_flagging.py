import pandas as pd
import pytest

from config import PipelineConfig
from outlier_flagging import flag_outliers, get_outlier_flags, iqr_bounds, save_outlier_report


def test_iqr_bounds_closed_form():
    lo, hi = iqr_bounds(pd.Series([1, 2, 3, 4, 100]), 1.5)
    assert (lo, hi) == pytest.approx((-1.0, 7.0))


def test_only_values_outside_fence_are_flagged():
    df = pd.DataFrame({"sale_price": [1, 2, 3, 4, 100]})
    flags, fences = get_outlier_flags(df, ["sale_price"], k=1.5)
    assert flags["sale_price_outlier"].tolist() == [False, False, False, False, True]
    assert fences["sale_price"] == pytest.approx((-1.0, 7.0))


def test_fence_edge_is_not_an_outlier():
    # q1=2, q3=4 -> fence [-1, 7]
    df = pd.DataFrame({"mileage": [2, 2, 3, 4, 4, 7, -1]})
    flags, fences = get_outlier_flags(df, ["mileage"], k=1.5)
    lo, hi = fences["mileage"]
    expected = (df["mileage"] < lo) | (df["mileage"] > hi)
    assert flags["mileage_outlier"].tolist() == expected.tolist()


def test_flag_outliers_keeps_values_and_rows():
    df = pd.DataFrame(
        {
            "sale_price": [1.0, 2.0, 3.0, 4.0, 100.0],
            "mileage": [10.0, 11.0, 12.0, 13.0, 14.0],
            "price_per_mile": [0.0, 0.0, 0.0, 0.0, 999.0],
        }
    )
    cfg = PipelineConfig(outlier_fields=("sale_price", "mileage"))
    result = flag_outliers(df, cfg)
    out = result.data
    assert len(out) == len(df)
    pd.testing.assert_series_equal(out["sale_price"], df["sale_price"])
    assert "price_per_mile_outlier" not in out.columns
    assert out["is_outlier"].tolist() == [False, False, False, False, True]
    assert result.counts == {"sale_price": 1, "mileage": 0}


def test_iqr_multiplier_widens_fence():
    df = pd.DataFrame({"sale_price": [1, 2, 3, 4, 100]})
    result = flag_outliers(df, PipelineConfig(outlier_fields=("sale_price",), iqr_multiplier=50))
    assert not result.data["is_outlier"].any()


def test_unknown_field_raises():
    with pytest.raises(KeyError):
        get_outlier_flags(pd.DataFrame({"a": [1]}), ["sale_price"])


def test_save_outlier_report(tmp_path):
    df = pd.DataFrame({"sale_price": [1, 2, 3, 4, 100]})
    result = flag_outliers(df, PipelineConfig(outlier_fields=("sale_price",)))
    save_outlier_report(result, tmp_path)
    fences = pd.read_csv(tmp_path / "outlier_fences.csv")
    flagged = pd.read_csv(tmp_path / "flagged_outliers.csv")
    assert fences.loc[0, "field"] == "sale_price"
    assert fences.loc[0, "outliers"] == 1
    assert flagged["sale_price"].tolist() == [100]
