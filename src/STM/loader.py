from collections import namedtuple

import pandas as pd
from stairval.notepad import Notepad

from .record import RawRecordFields

# Columns that need renaming -> RawRecordFields attributes
RENAME_MAP = {
    "patient": "patient_id",
    "patient_id_number": "patient_id",
    "dx_year": "date_of_diagnosis_year",
    "dx_month": "date_of_diagnosis_month",
    "dx_day": "date_of_diagnosis_day",
    "dolc_year": "date_of_last_contact_year",
    "dolc_month": "date_of_last_contact_month",
    "dolc_day": "date_of_last_contact_day",
    "birth_year": "birth_date_year",
    "birth_month": "birth_date_month",
    "birth_day": "birth_date_day",
    "vs": "vital_status",
    "seq_num": "sequence_number_central",
    "sequence_number": "sequence_number_central",
    "reporting_source": "type_of_reporting_source",
}

# Minimal columns (after renaming) of a sheet holding tumor records
REQUIRED_COLUMNS = {
    "date_of_diagnosis_year",
    "date_of_diagnosis_month",
    "date_of_diagnosis_day",
    "date_of_last_contact_year",
    "date_of_last_contact_month",
    "date_of_last_contact_day",
    "vital_status",
}

# Columns read when present; missing ones are passed on as unknown
OPTIONAL_COLUMNS = {
    "birth_date_year",
    "birth_date_month",
    "birth_date_day",
    "sequence_number_central",
    "type_of_reporting_source",
}

AuditEntry = namedtuple("AuditEntry", ["step", "sheet", "message", "level"])


def load_sheets_as_tables(workbook_path: str) -> dict[str, pd.DataFrame]:
    """
    Read each worksheet into a DataFrame:
      - first row = header
      - first column = index (the patient identifier)
      - every cell read as text, blank cells stay blank
      - normalize all headers to snake_case lowercase (camelCase registry names included)
      - apply renames from RENAME_MAP
    """

    excel = pd.ExcelFile(workbook_path, engine="openpyxl")
    tables: dict[str, pd.DataFrame] = {}

    for sheet_name in excel.sheet_names:
        df = pd.read_excel(
            excel,
            sheet_name=sheet_name,
            header=0,
            dtype=str,
            keep_default_na=False,
            engine="openpyxl",
        )
        # index after reading so the identifier column is kept as text too
        if len(df.columns) > 0:
            df = df.set_index(df.columns[0])

        # CLEAN & NORMALIZE headers:
        df.columns = (
            df.columns.astype(str)
            .str.strip()
            .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
            .str.replace(r"(?<=[a-z0-9])(?=[A-Z])", "_", regex=True)  # camelCase → camel_case
            .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
            .str.replace(":", "", regex=False)  # drop colons
            .str.lower()
        )

        # apply specific renames (e.g. "dx_year" → "date_of_diagnosis_year")
        df = df.rename(
            columns={
                orig: target
                for orig, target in RENAME_MAP.items()
                if orig in df.columns
            }
        )

        tables[sheet_name] = df

    return tables


def choose_records_table(tables: dict[str, pd.DataFrame], notepad: Notepad, sheet_name: str | None = None) -> pd.DataFrame | None:
    """
    Pick the sheet holding tumor records: the named one, otherwise the first sheet
    with every required column.
    """
    if sheet_name is not None:
        if sheet_name not in tables:
            notepad.add_error(f"Sheet {sheet_name!r} not found; available: {sorted(tables)}")
            return None
        return tables[sheet_name]

    for df in tables.values():
        if REQUIRED_COLUMNS.issubset(df.columns):
            return df
    notepad.add_error(f"No sheet has the required columns: {sorted(REQUIRED_COLUMNS)}")
    return None


def records_by_patient(df: pd.DataFrame, notepad: Notepad) -> dict[str, list[RawRecordFields]]:
    """
    Group the rows of a records sheet into RawRecordFields per patient, keeping
    row order within each patient and first-seen order across patients.
    """
    working = df.reset_index()
    working = working.rename(columns={working.columns[0]: "patient_id"})

    missing = REQUIRED_COLUMNS - set(working.columns)
    if missing:
        notepad.add_error(f"Records sheet: missing required columns: {sorted(missing)}")
        return {}

    patients: dict[str, list[RawRecordFields]] = {}
    for index, row in working.iterrows():
        patient_id = _to_text(row["patient_id"])
        if not patient_id or not patient_id.strip():
            notepad.add_warning(f"Records sheet, row {index}: no patient identifier, row skipped")
            continue
        record = RawRecordFields(**{
            column: _to_text(row[column]) if column in working.columns else None
            for column in REQUIRED_COLUMNS | OPTIONAL_COLUMNS
        })
        patients.setdefault(patient_id.strip(), []).append(record)
    return patients


def audit_tables(tables: dict[str, pd.DataFrame]) -> list[AuditEntry]:
    """
    Lightweight audits on each sheet:
      - header counts
      - required / optional column presence
      - patient and record counts
    """
    entries: list[AuditEntry] = []
    for name, df in tables.items():
        cols = set(df.columns)
        entries.append(AuditEntry(step="normalize-headers", sheet=name, message=f"{len(df.columns)} cols", level="info"))

        missing = sorted(REQUIRED_COLUMNS - cols)
        if missing:
            entries.append(AuditEntry(step="required-columns", sheet=name, message=f"missing {missing}", level="error"))
            continue

        absent = sorted(OPTIONAL_COLUMNS - cols)
        if absent:
            entries.append(AuditEntry(step="optional-columns", sheet=name, message=f"absent {absent}", level="warn"))

        entries.append(AuditEntry(
            step="count-records",
            sheet=name,
            message=f"{len(df)} records, {df.index.nunique()} patients",
            level="info",
        ))
    return entries


def _to_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    return str(value)
