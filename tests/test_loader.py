"""
Tests for reading tumor records from Excel workbooks.
"""

import pandas as pd
import pytest
from stairval.notepad import create_notepad

from STM.loader import audit_tables, choose_records_table, load_sheets_as_tables, records_by_patient

RECORDS = pd.DataFrame(
    {
        "Patient": ["P1", "P1", "P2"],
        "dateOfDiagnosisYear": ["2008", "2008", "2015"],
        "dateOfDiagnosisMonth": ["06", "06", "05"],
        "dateOfDiagnosisDay": ["10", "", "01"],
        "DOLC Year": ["2012", "2012", ""],
        "DOLC Month": ["01", "01", ""],
        "DOLC Day": ["15", "15", ""],
        "VS": ["0", "0", "1"],
        "Seq Num": ["00", "01", "00"],
    }
)


@pytest.fixture
def workbook(tmp_path):
    path = tmp_path / "records.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame({"Notes": ["cohort A"], "Value": ["x"]}).to_excel(writer, sheet_name="notes", index=False)
        RECORDS.to_excel(writer, sheet_name="tumors", index=False)
        RECORDS.drop(columns=["VS"]).to_excel(writer, sheet_name="incomplete", index=False)
    return str(path)


def test_headers_are_normalized_and_renamed(workbook):
    tables = load_sheets_as_tables(workbook)
    assert list(tables) == ["notes", "tumors", "incomplete"]
    columns = set(tables["tumors"].columns)
    assert {
        "date_of_diagnosis_year",
        "date_of_last_contact_year",
        "vital_status",
        "sequence_number_central",
    } <= columns


def test_first_sheet_with_required_columns_is_chosen(workbook):
    tables = load_sheets_as_tables(workbook)
    note = create_notepad("loader")
    df = choose_records_table(tables, note)
    assert df is tables["tumors"]
    assert not note.has_errors(include_subsections=True)


def test_unknown_sheet_name_is_an_error(workbook):
    note = create_notepad("loader")
    assert choose_records_table(load_sheets_as_tables(workbook), note, "missing") is None
    assert note.has_errors(include_subsections=True)


def test_records_grouped_by_patient_as_text(workbook):
    tables = load_sheets_as_tables(workbook)
    note = create_notepad("loader")
    patients = records_by_patient(tables["tumors"], note)
    assert list(patients) == ["P1", "P2"]
    assert len(patients["P1"]) == 2
    first, second = patients["P1"]
    assert first.date_of_diagnosis_month == "06"
    assert first.sequence_number_central == "00"
    assert second.date_of_diagnosis_day == ""
    assert patients["P2"][0].vital_status == "1"
    # optional columns absent from the sheet
    assert first.birth_date_year is None
    assert first.type_of_reporting_source is None


def test_missing_required_column_is_an_error(workbook):
    tables = load_sheets_as_tables(workbook)
    note = create_notepad("loader")
    assert records_by_patient(tables["incomplete"], note) == {}
    assert note.has_errors(include_subsections=True)


def test_audit_tables(workbook):
    entries = audit_tables(load_sheets_as_tables(workbook))
    by_sheet = {}
    for entry in entries:
        by_sheet.setdefault(entry.sheet, []).append(entry)

    assert [e.step for e in by_sheet["tumors"]] == ["normalize-headers", "optional-columns", "count-records"]
    assert by_sheet["tumors"][-1].message == "3 records, 2 patients"
    assert by_sheet["incomplete"][-1].level == "error"
    assert "vital_status" in by_sheet["incomplete"][-1].message
    assert by_sheet["notes"][-1].level == "error"


def test_zero_padded_patient_ids_stay_distinct(tmp_path):
    path = tmp_path / "ids.xlsx"
    records = pd.DataFrame(
        {
            "patientIdNumber": ["00000007", "7"],
            "dateOfDiagnosisYear": ["2010", "2011"],
            "dateOfDiagnosisMonth": ["03", "04"],
            "dateOfDiagnosisDay": ["15", "01"],
            "dateOfLastContactYear": ["2015", "2016"],
            "dateOfLastContactMonth": ["01", "01"],
            "dateOfLastContactDay": ["01", "01"],
            "vitalStatus": ["0", "0"],
        }
    )
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        records.to_excel(writer, sheet_name="records", index=False)

    tables = load_sheets_as_tables(str(path))
    note = create_notepad("loader")
    patients = records_by_patient(choose_records_table(tables, note), note)
    assert list(patients) == ["00000007", "7"]
    assert patients["00000007"][0].date_of_diagnosis_year == "2010"
    assert patients["7"][0].date_of_diagnosis_year == "2011"
