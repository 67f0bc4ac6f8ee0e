import datetime

import pytest

from STM.record import RawRecordFields


def _split(date: str) -> tuple[str, str, str]:
    # "YYYYMMDD" with blanks or 9s for unknown parts, as in fixed-width registry files
    return date[0:4], date[4:6], date[6:8]


def build_record(
        dx: str = "20100315",
        dolc: str = "20100320",
        birth: str = "19500101",
        vs: str = "0",
        seq: str = "00",
        source: str = "1",
) -> RawRecordFields:
    dx_year, dx_month, dx_day = _split(dx)
    dolc_year, dolc_month, dolc_day = _split(dolc)
    birth_year, birth_month, birth_day = _split(birth)
    return RawRecordFields(
        date_of_diagnosis_year=dx_year,
        date_of_diagnosis_month=dx_month,
        date_of_diagnosis_day=dx_day,
        date_of_last_contact_year=dolc_year,
        date_of_last_contact_month=dolc_month,
        date_of_last_contact_day=dolc_day,
        birth_date_year=birth_year,
        birth_date_month=birth_month,
        birth_date_day=birth_day,
        vital_status=vs,
        sequence_number_central=seq,
        type_of_reporting_source=source,
    )


@pytest.fixture
def make_record():
    """
    Factory for RawRecordFields. Dates are given as "YYYYMMDD" strings where any
    part may be blank or a placeholder.
    """
    return build_record


@pytest.fixture(scope="session")
def today() -> datetime.date:
    return datetime.date(2024, 6, 30)
