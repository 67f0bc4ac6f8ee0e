"""
Survival time in months for one patient.

Entry point of the algorithm: takes the tumor records of a single patient and
returns one OutputRecord per input record, in input order.

Pipeline:
1) the records must agree on the date of last contact and vital status,
   otherwise every result is unknown;
2) the date of last contact, birth date and each diagnosis date are normalized
   and repaired; diagnoses outside [1900, end point year] are set aside;
3) valid records are sequenced and their unknown date parts imputed;
4) survival is computed without presuming alive (needs a known contact year)
   and presuming alive (also possible for a living patient with no contact);
5) death certificate / autopsy only records are overridden;
6) sorted indexes are assigned, chronological first, set-aside records last.

Nothing here raises for bad data: unusable values become unknown results.
"""

import datetime
import logging
from typing import Mapping, Optional, Sequence

from .calculator import (
    UNKNOWN_VITAL_STATUS,
    VITAL_STATUS_ALIVE,
    PolicyOutcome,
    evaluate_policy,
)
from .fields import (
    BLANK_DAY,
    BLANK_MONTH,
    BLANK_YEAR,
    UNKNOWN_DATE,
    UNKNOWN_SURVIVAL,
    NormalizedDate,
    format_day,
    format_month,
    format_months,
    format_year,
    is_calendar_date,
    normalize_date,
    parse_code,
    repair_date,
)
from .flag import SurvivalFlag
from .imputer import impute_timeline
from .record import OutputRecord, RawRecordFields
from .sequencer import (
    UNKNOWN_SEQUENCE_NUMBER,
    SequencedRecord,
    adjust_sequence_number,
    sequence_records,
)

ALG_NAME = "Survival Time in Months"
ALG_VERSION = "2.2"

MIN_YEAR = 1900
DCO_AUTOPSY_ONLY_SOURCES = {"6", "7"}

logger = logging.getLogger(__name__)


def compute_survival(
        records: Sequence[RawRecordFields],
        end_point_year: int,
        today: Optional[datetime.date] = None,
) -> list[OutputRecord]:
    """
    Compute survival months for all the tumor records of one patient.

    Args:
        records: The patient's records, in any order.
        end_point_year: Last year of the study; later contacts are cut back to
            December 31st of that year.
        today: When given, contact dates after this day are treated as unknown.

    Returns:
        One OutputRecord per input record, in input order.
    """
    if not records:
        return []

    if not agree_on_last_contact(records):
        logger.debug(f"{len(records)} records disagree on last contact or vital status")
        return [_blank_result(position) for position in range(len(records))]

    try:
        return _compute(records, end_point_year, today)
    except (ValueError, OverflowError) as e:
        logger.warning(f"Survival time could not be computed for {len(records)} records: {e}")
        return unknown_survival(records)


def compute_survival_from_dicts(
        records: Sequence[Mapping[str, Optional[str]]],
        end_point_year: int,
        today: Optional[datetime.date] = None,
) -> list[OutputRecord]:
    """Same as compute_survival, for records keyed by registry property names."""
    return compute_survival(
        [RawRecordFields.from_dict(record) for record in records], end_point_year, today
    )


def unknown_survival(records: Sequence[RawRecordFields]) -> list[OutputRecord]:
    """Unknown results echoing the reported dates, in input order."""
    return [
        OutputRecord(
            dx_year=_text(record.date_of_diagnosis_year),
            dx_month=_text(record.date_of_diagnosis_month),
            dx_day=_text(record.date_of_diagnosis_day),
            dolc_year=_text(record.date_of_last_contact_year),
            dolc_month=_text(record.date_of_last_contact_month),
            dolc_day=_text(record.date_of_last_contact_day),
            dolc_year_presumed_alive=_text(record.date_of_last_contact_year),
            dolc_month_presumed_alive=_text(record.date_of_last_contact_month),
            dolc_day_presumed_alive=_text(record.date_of_last_contact_day),
            survival_months=UNKNOWN_SURVIVAL,
            survival_months_flag=SurvivalFlag.UNKNOWN,
            survival_months_presumed_alive=UNKNOWN_SURVIVAL,
            survival_months_flag_presumed_alive=SurvivalFlag.UNKNOWN,
            sorted_index=position,
        )
        for position, record in enumerate(records)
    ]


def _compute(
        records: Sequence[RawRecordFields],
        end_point_year: int,
        today: Optional[datetime.date],
) -> list[OutputRecord]:
    first = records[0]
    vital_status = parse_code(first.vital_status, UNKNOWN_VITAL_STATUS)
    dolc = validate_last_contact(
        normalize_date(
            first.date_of_last_contact_year,
            first.date_of_last_contact_month,
            first.date_of_last_contact_day,
        ),
        today,
    )
    birth = repair_date(
        normalize_date(first.birth_date_year, first.birth_date_month, first.birth_date_day)
    )

    valid: list[SequencedRecord] = []
    for position, record in enumerate(records):
        diagnosis = normalize_date(
            record.date_of_diagnosis_year,
            record.date_of_diagnosis_month,
            record.date_of_diagnosis_day,
        )
        if not diagnosis.year_known or not MIN_YEAR <= diagnosis.year <= end_point_year:
            logger.debug(f"Record {position}: diagnosis year {diagnosis.year} outside [{MIN_YEAR}, {end_point_year}]")
            continue
        sequence_number = parse_code(record.sequence_number_central, UNKNOWN_SEQUENCE_NUMBER)
        valid.append(
            SequencedRecord(
                position=position,
                original=repair_date(diagnosis),
                sequence_number=adjust_sequence_number(sequence_number),
            )
        )

    sequenced = sequence_records(valid)
    timeline = impute_timeline(sequenced, dolc, birth)

    raw: Optional[PolicyOutcome] = None
    if dolc.year_known:
        raw = evaluate_policy(sequenced, timeline, dolc, vital_status, end_point_year, presume_alive=False)
    presumed_alive: Optional[PolicyOutcome] = None
    if dolc.year_known or vital_status == VITAL_STATUS_ALIVE:
        presumed_alive = evaluate_policy(sequenced, timeline, dolc, vital_status, end_point_year, presume_alive=True)

    sorted_indexes = {record.position: index for index, record in enumerate(sequenced)}
    next_index = len(sequenced)

    outputs: list[OutputRecord] = []
    for position, record in enumerate(records):
        if position in sorted_indexes:
            sorted_index = sorted_indexes[position]
            diagnosis = timeline.diagnoses[position]
        else:
            sorted_index = next_index
            next_index += 1
            diagnosis = None

        months, flag = _policy_values(raw, position)
        months_pa, flag_pa = _policy_values(presumed_alive, position)
        if record.type_of_reporting_source in DCO_AUTOPSY_ONLY_SOURCES:
            months = months_pa = UNKNOWN_SURVIVAL
            flag = flag_pa = SurvivalFlag.DCO_AUTOPSY_ONLY

        dolc_year, dolc_month, dolc_day = _policy_last_contact(raw, record, diagnosis is None)
        dolc_year_pa, dolc_month_pa, dolc_day_pa = _policy_last_contact(presumed_alive, record, diagnosis is None)
        outputs.append(
            OutputRecord(
                dx_year=format_year(diagnosis.year) if diagnosis is not None else BLANK_YEAR,
                dx_month=format_month(diagnosis.month) if diagnosis is not None else BLANK_MONTH,
                dx_day=format_day(diagnosis.day) if diagnosis is not None else BLANK_DAY,
                dolc_year=dolc_year,
                dolc_month=dolc_month,
                dolc_day=dolc_day,
                dolc_year_presumed_alive=dolc_year_pa,
                dolc_month_presumed_alive=dolc_month_pa,
                dolc_day_presumed_alive=dolc_day_pa,
                survival_months=months,
                survival_months_flag=flag,
                survival_months_presumed_alive=months_pa,
                survival_months_flag_presumed_alive=flag_pa,
                sorted_index=sorted_index,
            )
        )
    return outputs


def validate_last_contact(dolc: NormalizedDate, today: Optional[datetime.date] = None) -> NormalizedDate:
    """
    Reject a date of last contact before 1900, past the last calendar year (9999)
    or after `today` when given, then repair it.

    A rejected contact loses its year, and with it its month and day.
    """
    in_future = False
    if today is not None:
        complete = is_calendar_date(dolc.year, dolc.month, dolc.day)
        in_future = dolc.year > today.year or (
            dolc.year == today.year and (
                today.month < dolc.month <= 12
                or (dolc.month == today.month and complete and dolc.day > today.day)
            )
        )
    if not dolc.year_known or not MIN_YEAR <= dolc.year <= datetime.MAXYEAR or in_future:
        return UNKNOWN_DATE
    return repair_date(dolc)


def agree_on_last_contact(records: Sequence[RawRecordFields]) -> bool:
    first = records[0]
    expected = (
        first.date_of_last_contact_year,
        first.date_of_last_contact_month,
        first.date_of_last_contact_day,
        first.vital_status,
    )
    return all(
        (
            record.date_of_last_contact_year,
            record.date_of_last_contact_month,
            record.date_of_last_contact_day,
            record.vital_status,
        ) == expected
        for record in records
    )


def _policy_values(outcome: Optional[PolicyOutcome], position: int) -> tuple[str, SurvivalFlag]:
    if outcome is None or position not in outcome.results:
        return UNKNOWN_SURVIVAL, SurvivalFlag.UNKNOWN
    result = outcome.results[position]
    return format_months(result.months), result.flag


def _policy_last_contact(
        outcome: Optional[PolicyOutcome],
        record: RawRecordFields,
        set_aside: bool,
) -> tuple[str, str, str]:
    """
    Date of last contact reported for one record under one policy.

    Without a usable contact, records taking part in the calculation get blanks
    while set-aside records keep the reported text.
    """
    last_contact = outcome.last_contact if outcome is not None else UNKNOWN_DATE
    if last_contact.year_known:
        return format_year(last_contact.year), format_month(last_contact.month), format_day(last_contact.day)
    if set_aside:
        return (
            _text(record.date_of_last_contact_year),
            _text(record.date_of_last_contact_month),
            _text(record.date_of_last_contact_day),
        )
    return BLANK_YEAR, BLANK_MONTH, BLANK_DAY


def _blank_result(position: int) -> OutputRecord:
    return OutputRecord(
        dx_year=BLANK_YEAR,
        dx_month=BLANK_MONTH,
        dx_day=BLANK_DAY,
        dolc_year=BLANK_YEAR,
        dolc_month=BLANK_MONTH,
        dolc_day=BLANK_DAY,
        dolc_year_presumed_alive=BLANK_YEAR,
        dolc_month_presumed_alive=BLANK_MONTH,
        dolc_day_presumed_alive=BLANK_DAY,
        survival_months=UNKNOWN_SURVIVAL,
        survival_months_flag=SurvivalFlag.UNKNOWN,
        survival_months_presumed_alive=UNKNOWN_SURVIVAL,
        survival_months_flag_presumed_alive=SurvivalFlag.UNKNOWN,
        sorted_index=position,
    )


def _text(value: Optional[str]) -> str:
    return value if isinstance(value, str) else ""
