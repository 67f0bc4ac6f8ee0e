"""
Missing date imputation.

Unknown month/day components of the diagnosis dates and of the date of last
contact are filled by interpolating between the neighbouring known dates of the
patient's timeline:

    birth date -> sequenced diagnosis dates -> date of last contact

Two passes are made over the timeline, in order:

1) Day pass: a date with a known month but no day gets the midpoint of the
   closest known days around it in the same year and month
   (floor of the average; defaults are day 1 and the last day of the month).
2) Month pass: a date with no month gets the calendar midpoint between the
   closest known month/day pairs around it in the same year
   (earliest date plus floor of half the days between; defaults are
   January 1st and December 31st).

The neighbour searches stop at the first date carrying the component, even when
that date belongs to another month/year, and see values filled earlier in the
same pass.
"""

import datetime
import math
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Union

from .fields import NormalizedDate, days_in_month
from .sequencer import SequencedRecord


@dataclass(frozen=True)
class DiagnosisEntry:
    """A sequenced diagnosis on the timeline."""
    record: SequencedRecord

    @property
    def original(self) -> NormalizedDate:
        return self.record.original


@dataclass(frozen=True)
class DolcAnchor:
    """The patient's date of last contact, closing the timeline."""
    original: NormalizedDate


TimelineEntry = Union[DiagnosisEntry, DolcAnchor]


@dataclass(frozen=True)
class ImputedTimeline:
    """
    Result of imputation.

    Attributes:
        diagnoses: Imputed diagnosis date per input position.
        dolc: Imputed date of last contact (left untouched when its year is unknown).
    """

    diagnoses: dict[int, NormalizedDate]
    dolc: NormalizedDate


def impute_timeline(
        records: Sequence[SequencedRecord],
        dolc: NormalizedDate,
        birth: NormalizedDate,
) -> ImputedTimeline:
    """
    Impute the unknown parts of every date on the timeline.

    `records` must already be in chronological order. Components that are known
    in the originals are never changed.
    """
    entries: list[TimelineEntry] = [DiagnosisEntry(record) for record in records]
    entries.append(DolcAnchor(dolc))

    dates = [entry.original for entry in entries]
    dates = _fill_days(dates, birth)
    dates = _fill_months(dates, birth)

    diagnoses: dict[int, NormalizedDate] = {}
    imputed_dolc = dolc
    for entry, imputed in zip(entries, dates):
        if isinstance(entry, DiagnosisEntry):
            diagnoses[entry.record.position] = imputed
        elif dolc.year_known:
            imputed_dolc = imputed
    return ImputedTimeline(diagnoses=diagnoses, dolc=imputed_dolc)


def _nearest(
        dates: Sequence[NormalizedDate],
        index: int,
        step: int,
        has_component: Callable[[NormalizedDate], bool],
) -> Optional[NormalizedDate]:
    i = index + step
    while 0 <= i < len(dates):
        if has_component(dates[i]):
            return dates[i]
        i += step
    return None


def _fill_days(dates: Sequence[NormalizedDate], birth: NormalizedDate) -> list[NormalizedDate]:
    filled = list(dates)
    for i, current in enumerate(filled):
        if not current.month_known or current.day_known:
            continue

        def same_month(other: Optional[NormalizedDate]) -> bool:
            return other is not None and other.year == current.year and other.month == current.month

        earliest = 1
        if i == 0 and birth.day_known and same_month(birth):
            earliest = birth.day
        previous = _nearest(filled, i, -1, lambda d: d.day_known)
        if same_month(previous):
            earliest = previous.day

        latest = days_in_month(current.year, current.month)
        following = _nearest(filled, i, 1, lambda d: d.day_known)
        if same_month(following):
            latest = following.day

        filled[i] = replace(current, day=(earliest + latest) // 2)
    return filled


def _fill_months(dates: Sequence[NormalizedDate], birth: NormalizedDate) -> list[NormalizedDate]:
    filled = list(dates)
    for i, current in enumerate(filled):
        if not current.year_known or current.month_known:
            continue

        earliest = (1, 1)
        if i == 0 and birth.year == current.year and birth.month_known:
            earliest = (birth.month, birth.day if birth.day_known else 1)
        previous = _nearest(filled, i, -1, lambda d: d.month_known)
        if previous is not None and previous.year == current.year:
            earliest = (previous.month, previous.day)

        latest = (12, 31)
        following = _nearest(filled, i, 1, lambda d: d.month_known)
        if following is not None and following.year == current.year:
            latest = (following.month, following.day)

        start = datetime.date(current.year, *earliest)
        end = datetime.date(current.year, *latest)
        midpoint = start + datetime.timedelta(days=math.floor((end - start).days / 2))
        filled[i] = NormalizedDate(current.year, midpoint.month, midpoint.day)
    return filled
