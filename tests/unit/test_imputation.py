import numpy as np
import pandas as pd
import pytest

from config import PRIMARY_FIELDS, PipelineConfig
from conftest import make_raw
from data_cleaning import data_cleaning
from exceptions import ImputationUnresolvedError
from imputation import GroupedImputer, impute_missing


@pytest.fixture
def cleaned(raw_cars):
    return data_cleaning(raw_cars, PipelineConfig(reference_year=2025))


def test_no_missing_after_imputation(cleaned):
    out = impute_missing(cleaned)
    assert out[list(PRIMARY_FIELDS)].isna().sum().sum() == 0
    assert len(out) == len(cleaned)


def test_mileage_uses_maker_and_year_group(cleaned):
    out = impute_missing(cleaned)
    # (Ford, 2020) valid mileages: 30000, 50000
    assert out.loc[0, "mileage"] == pytest.approx(40000)


def test_rating_uses_maker_group_and_is_integer(cleaned):
    out = impute_missing(cleaned)
    assert out.loc[5, "prestige_rating"] == 9
    ratings = out["prestige_rating"]
    assert (ratings == ratings.round()).all()
    assert ratings.between(1, 10).all()


def test_year_uses_rounded_global_mean(cleaned):
    out = impute_missing(cleaned)
    # valid years sum to 18153 over 9 records
    assert out.loc[7, "year_of_manufacture"] == 2017
    assert (out["year_of_manufacture"] % 1 == 0).all()


def test_fallback_uses_pre_imputation_global_mean(cleaned):
    snapshot_price = cleaned["sale_price"].mean()
    snapshot_eff = cleaned["fuel_efficiency"].mean()
    out = impute_missing(cleaned)
    # Audi has no valid price at all
    assert out.loc[8, "sale_price"] == pytest.approx(snapshot_price)
    assert out.loc[9, "sale_price"] == pytest.approx(19500)
    # Toyota's imputed year (2017) has no efficiency group in the snapshot
    assert out.loc[7, "fuel_efficiency"] == pytest.approx(snapshot_eff)
    assert out.loc[7, "fuel_efficiency"] == pytest.approx(321 / 9)


def test_fill_counts_report_levels(cleaned):
    imputer = GroupedImputer(groups=PipelineConfig().impute_groups)
    imputer.fit_transform(cleaned)
    assert imputer.fill_counts_["mileage"] == {"car_maker+year_of_manufacture": 1, "global": 0}
    assert imputer.fill_counts_["sale_price"] == {"car_maker": 0, "global": 2}
    assert imputer.fill_counts_["year_of_manufacture"] == {"global": 1}


def test_coarser_level_is_used_before_global(cleaned):
    groups = dict(PipelineConfig().impute_groups)
    groups["fuel_efficiency"] = (("car_maker", "year_of_manufacture"), ("car_maker",))
    out = GroupedImputer(groups=groups).fit_transform(cleaned)
    # Toyota's only valid efficiency is 50
    assert out.loc[7, "fuel_efficiency"] == pytest.approx(50)


def test_snapshot_is_not_affected_by_transform_order(cleaned):
    imputer = GroupedImputer().fit(cleaned)
    means_before = dict(imputer.global_means_)
    imputer.transform(cleaned)
    assert imputer.global_means_ == means_before


def test_field_fully_missing_is_unresolved():
    df = data_cleaning(
        make_raw(
            [
                ("Ford Focus", 2020, 1000, 5, 40, np.nan),
                ("Kia Rio", 2019, 2000, 4, 45, np.nan),
            ]
        )
    )
    with pytest.raises(ImputationUnresolvedError) as exc:
        impute_missing(df)
    assert exc.value.field == "sale_price"


def test_transform_requires_fit(cleaned):
    from sklearn.exceptions import NotFittedError

    with pytest.raises(NotFittedError):
        GroupedImputer().transform(cleaned)


def test_input_frame_left_untouched(cleaned):
    before = cleaned.copy()
    impute_missing(cleaned)
    pd.testing.assert_frame_equal(cleaned, before)


def test_repeated_index_labels_are_filled_positionally(cleaned):
    expected = impute_missing(cleaned)
    relabelled = cleaned.copy()
    relabelled.index = np.repeat(np.arange(5), 2)
    out = impute_missing(relabelled)
    assert list(out.index) == list(relabelled.index)
    assert out[list(PRIMARY_FIELDS)].isna().sum().sum() == 0
    np.testing.assert_allclose(
        out[list(PRIMARY_FIELDS)].to_numpy(), expected[list(PRIMARY_FIELDS)].to_numpy()
    )


def test_year_resolved_before_fields_grouped_by_it(cleaned):
    groups = dict(PipelineConfig().impute_groups)
    year_levels = groups.pop("year_of_manufacture")
    groups["year_of_manufacture"] = year_levels
    imputer = GroupedImputer(groups=groups)
    out = imputer.fit_transform(cleaned)
    order = imputer.fields_
    assert order.index("year_of_manufacture") < order.index("mileage")
    assert order.index("year_of_manufacture") < order.index("fuel_efficiency")
    pd.testing.assert_frame_equal(out, impute_missing(cleaned))
