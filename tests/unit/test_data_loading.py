import pandas as pd
import pytest

from data_loading import load_data, validate_schema
from exceptions import EmptyInputError, MalformedInputError

HEADER = "MakeModel,YearOfManufacture,Mileage,PrestigeRating,FuelEfficiency,SalePrice\n"


def test_load_data_parses_numbers_and_keeps_blanks_missing(tmp_path):
    path = tmp_path / "cars.csv"
    path.write_text(HEADER + "Ford Focus,2018,45000,6,38.5,12000\nBMW X5,,,9,25,\n")
    df = load_data(path)
    assert len(df) == 2
    assert df.loc[0, "SalePrice"] == 12000.0
    assert pd.isna(df.loc[1, "YearOfManufacture"])
    assert pd.isna(df.loc[1, "SalePrice"])


def test_load_data_rejects_non_numeric_price(tmp_path):
    path = tmp_path / "cars.csv"
    path.write_text(HEADER + "Ford Focus,2018,45000,6,38.5,cheap\n")
    with pytest.raises(MalformedInputError) as exc:
        load_data(path)
    assert exc.value.column == "SalePrice"
    assert "SalePrice" in str(exc.value)


def test_load_data_header_only_is_empty(tmp_path):
    path = tmp_path / "cars.csv"
    path.write_text(HEADER)
    with pytest.raises(EmptyInputError):
        load_data(path)


def test_load_data_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data(tmp_path / "nope.csv")


def test_validate_schema_names_missing_column():
    df = pd.DataFrame({"MakeModel": ["Ford Focus"], "Mileage": [1]})
    with pytest.raises(MalformedInputError) as exc:
        validate_schema(df)
    assert "YearOfManufacture" in str(exc.value)
