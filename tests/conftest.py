from datetime import date

import pandas as pd
import pytest

from premiums.loaders import parse_csv
from premiums.normalizers import normalize


HEADER = (
    "Submit Date,Writing Agent Last Name,Writing Agent First Name,"
    "Product,Premium Amount,Writing Agent Number"
)

SUBMISSIONS = [
    "1/5/2025,doe,jane,A,$100.00,A100",
    "1/20/2025,Doe,Jane,B,$50,A100",
    '1/7/2025,SMITH,JOHN,A,"$1,200.00",A200',
    "12/15/2024,Doe,Jane,A,$80,A100",
    "12/3/2024,Lee,Ann,C,$40,A300",
    "not a date,Lee,Ann,C,$10,A300",
    "1/9/2025,Lee,Ann,B,N/A,A300",
]

TEAMS = "\n".join(
    [
        "Writing Agent Number,Team ID",
        "A100,North",
        "A200,South",
    ]
) + "\n"

JANUARY = date(2025, 1, 15)


def make_csv(*rows: str, header: str = HEADER) -> str:
    return "\n".join([header, *rows]) + "\n"


def prepared(*rows: str) -> pd.DataFrame:
    return normalize(parse_csv(make_csv(*rows)).rows)


@pytest.fixture
def submissions_text() -> str:
    return make_csv(*SUBMISSIONS)


@pytest.fixture
def rows(submissions_text: str) -> pd.DataFrame:
    return normalize(parse_csv(submissions_text).rows)


@pytest.fixture
def teams() -> dict:
    return {"A100": "North", "A200": "South"}
