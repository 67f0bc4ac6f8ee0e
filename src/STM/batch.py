"""
Batch execution over many patients.

Patients are independent of each other, so `compute_survival` is mapped over a
process pool, one task per patient. Within a patient nothing runs in parallel.

Environment flags
----------------------------------------
STM_SERIAL=1 : Run every patient in-process (useful for CI and debugging).
"""

import datetime
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Mapping, Optional, Sequence

import pandas as pd
from stairval.notepad import Notepad

from .record import OUTPUT_PROPERTIES, OutputRecord, RawRecordFields
from .survival import agree_on_last_contact, compute_survival, unknown_survival

logger = logging.getLogger(__name__)


def _serial_requested() -> bool:
    return os.environ.get("STM_SERIAL", "").strip().lower() in {"1", "true", "yes"}


def compute_survival_for_patients(
        patients: Mapping[str, Sequence[RawRecordFields]],
        end_point_year: int,
        notepad: Notepad,
        max_workers: Optional[int] = None,
        today: Optional[datetime.date] = None,
) -> dict[str, list[OutputRecord]]:
    """
    Compute survival for every patient.

    Args:
        patients: Records per patient identifier.
        end_point_year: Study end point year, shared by all patients.
        notepad: Collects patients that could not be processed.
        max_workers: Pool size; 1 (or STM_SERIAL=1) runs in-process.
        today: Reference date, fixed once for the whole batch.

    Returns:
        Results per patient identifier, in the order of `patients`.
    """
    # every worker must judge future contact dates against the same day
    today = today or datetime.date.today()
    results: dict[str, list[OutputRecord]] = {}

    if max_workers == 1 or _serial_requested() or len(patients) <= 1:
        for patient_id, records in patients.items():
            results[patient_id] = compute_survival(records, end_point_year, today)
    else:
        logger.info(f"Computing survival for {len(patients)} patients with a process pool")
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            future_to_patient = {
                executor.submit(compute_survival, records, end_point_year, today): patient_id
                for patient_id, records in patients.items()
            }
            for future in as_completed(future_to_patient):
                patient_id = future_to_patient[future]
                try:
                    results[patient_id] = future.result()
                except Exception as e:
                    logger.error(f"Failed to process patient {patient_id}: {e}")
                    notepad.add_error(f"Patient {patient_id!r}: survival computation failed ({e})")
                    results[patient_id] = unknown_survival(patients[patient_id])

    _note_unknown_patients(patients, results, notepad)
    return {patient_id: results[patient_id] for patient_id in patients}


def _note_unknown_patients(
        patients: Mapping[str, Sequence[RawRecordFields]],
        results: Mapping[str, list[OutputRecord]],
        notepad: Notepad,
) -> None:
    for patient_id, records in patients.items():
        if len(records) > 1 and not agree_on_last_contact(records):
            notepad.add_warning(
                f"Patient {patient_id!r}: records disagree on date of last contact or vital status; "
                f"all {len(records)} results are unknown"
            )
        if len(results[patient_id]) != len(records):
            notepad.add_error(f"Patient {patient_id!r}: expected {len(records)} results, got {len(results[patient_id])}")


def results_to_frame(
        patients: Mapping[str, Sequence[RawRecordFields]],
        results: Mapping[str, Sequence[OutputRecord]],
) -> pd.DataFrame:
    """
    One row per input record: patient id, record number within the patient and the
    survival output columns (registry property names).
    """
    rows = []
    for patient_id, records in patients.items():
        for record_number, output in enumerate(results[patient_id]):
            row = {"patient_id": patient_id, "record_number": record_number}
            row.update(output.to_dict())
            rows.append(row)
    columns = ["patient_id", "record_number", *OUTPUT_PROPERTIES.values()]
    return pd.DataFrame(rows, columns=columns)
