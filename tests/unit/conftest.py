import pandas as pd
import pytest

from config import RAW_COLUMNS


def make_raw(rows):
    """Raw-schema frame from (make_model, year, mileage, rating, efficiency, price) tuples."""
    return pd.DataFrame(rows, columns=list(RAW_COLUMNS)).astype(
        {c: float for c in RAW_COLUMNS[1:]}
    )


@pytest.fixture
def raw_cars():
    return make_raw(
        [
            ('Ford Ex"plorer"', 2020, -5, 7, 30, 20000),
            ("Ford Explorer", 2020, 30000, 6, 28, 22000),
            ("Ford Focus", 2020, 50000, 5, 40, 15000),
            ("Ford Fiesta", 2012, 90000, 4, 45, 6000),
            ("BMW X5", 2019, 40000, 9, 25, 45000),
            ("BMW 320i", 2008, 120000, 12, 33, 9000),
            ("  Toyota Corolla!! ", 2022, 15000, 6, 50, 18000),
            ("Toyota Prius", 2030, 20000, 6, -2, 21000),
            ("Audi A4", 2016, 60000, 8, 35, -1),
            ("Audi A4", 2016, 60000, 8, 35, -1),
        ]
    )
