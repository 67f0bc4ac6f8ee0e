"""
Survival months calculation.

Computes the number of days and months between each diagnosis date and the date
of last contact, flags how reliable the number is, and fixes up flags that
contradict later tumors of the same patient.
"""

import math
from dataclasses import dataclass, replace
from typing import Sequence

from .fields import UNKNOWN_MONTHS, NormalizedDate
from .flag import SurvivalFlag
from .imputer import ImputedTimeline
from .sequencer import SequencedRecord

DAYS_IN_MONTH = 365.24 / 12

VITAL_STATUS_ALIVE = 1
UNKNOWN_VITAL_STATUS = 9


@dataclass(frozen=True)
class SurvivalResult:
    """
    Survival of one record under one policy.

    Attributes:
        days: Days from diagnosis to last contact (may be negative).
        months: Whole months, or UNKNOWN_MONTHS.
        flag: Quality flag.
    """

    days: int
    months: int
    flag: SurvivalFlag


@dataclass(frozen=True)
class PolicyOutcome:
    """
    Results of one policy run for a patient.

    Attributes:
        last_contact: Date of last contact used (and exposed) by the policy.
        results: Survival result per input position.
    """

    last_contact: NormalizedDate
    results: dict[int, SurvivalResult]


def end_of_study(end_point_year: int) -> NormalizedDate:
    return NormalizedDate(end_point_year, 12, 31)


def resolve_last_contact(
        dolc: NormalizedDate,
        vital_status: int,
        end_point_year: int,
        presume_alive: bool,
) -> NormalizedDate:
    """
    Apply the study cut-off to an imputed date of last contact.

    A contact after the end point year is cut back to the end of the study; when
    presuming alive, a living patient is followed to the end of the study.
    """
    if dolc.year_known and dolc.year > end_point_year:
        dolc = end_of_study(end_point_year)
    if presume_alive and vital_status == VITAL_STATUS_ALIVE:
        dolc = end_of_study(end_point_year)
    return dolc


def classify_survival(
        days: int,
        months: int,
        diagnosis: NormalizedDate,
        last_contact: NormalizedDate,
) -> SurvivalFlag:
    """
    Flag a survival value.

    `diagnosis` and `last_contact` are the dates as reported (before imputation):
    the flag tells whether the months were computed from complete dates.
    """
    if months == UNKNOWN_MONTHS:
        return SurvivalFlag.UNKNOWN
    if not (diagnosis.month_known and diagnosis.day_known
            and last_contact.month_known and last_contact.day_known):
        same_month_possible = (
            diagnosis.month == last_contact.month
            or not diagnosis.month_known
            or not last_contact.month_known
        )
        if diagnosis.year == last_contact.year and same_month_possible:
            return SurvivalFlag.MISSING_INFO_NO_SURVIVAL_POSSIBLE
        return SurvivalFlag.MISSING_INFO_SOME_SURVIVAL
    if days > 0:
        return SurvivalFlag.COMPLETE_INFO_SOME_SURVIVAL
    return SurvivalFlag.COMPLETE_INFO_NO_SURVIVAL


def calculate_survival(
        diagnosis_original: NormalizedDate,
        diagnosis_imputed: NormalizedDate,
        last_contact_original: NormalizedDate,
        last_contact_imputed: NormalizedDate,
) -> SurvivalResult:
    days = (last_contact_imputed.to_date() - diagnosis_imputed.to_date()).days
    months = math.floor(days / DAYS_IN_MONTH)
    # negative survival is impossible, report it as unknown
    if months < 0:
        months = UNKNOWN_MONTHS
    flag = classify_survival(days, months, diagnosis_original, last_contact_original)
    return SurvivalResult(days=days, months=months, flag=flag)


def apply_consistency_fixup(flags: Sequence[SurvivalFlag]) -> list[SurvivalFlag]:
    """
    Walk chronologically ordered flags backwards: once a later tumor shows some
    survival, an earlier tumor cannot be "no survival possible".
    """
    fixed = list(flags)
    survival_seen = False
    for i in range(len(fixed) - 1, -1, -1):
        if fixed[i].shows_survival:
            survival_seen = True
        if survival_seen and fixed[i] is SurvivalFlag.MISSING_INFO_NO_SURVIVAL_POSSIBLE:
            fixed[i] = SurvivalFlag.MISSING_INFO_SOME_SURVIVAL
    return fixed


def evaluate_policy(
        records: Sequence[SequencedRecord],
        timeline: ImputedTimeline,
        dolc: NormalizedDate,
        vital_status: int,
        end_point_year: int,
        presume_alive: bool,
) -> PolicyOutcome:
    """
    Run one policy over a patient's sequenced records.

    `dolc` is the reported date of last contact after validation; the imputed one
    comes from `timeline`. A contact moved to the end of the study counts as a
    complete date when flagging.
    """
    last_contact = resolve_last_contact(timeline.dolc, vital_status, end_point_year, presume_alive)
    reported = last_contact if last_contact == end_of_study(end_point_year) else dolc

    results = [
        calculate_survival(
            record.original,
            timeline.diagnoses[record.position],
            reported,
            last_contact,
        )
        for record in records
    ]
    flags = apply_consistency_fixup([result.flag for result in results])
    return PolicyOutcome(
        last_contact=last_contact,
        results={
            record.position: replace(result, flag=flag)
            for record, result, flag in zip(records, results, flags)
        },
    )
