"""
Chronological ordering of a patient's tumor records.

Records are ordered by diagnosis date. Whenever the components being compared are
unknown on either side (or equal days), the adjusted sequence number decides.
"""

from dataclasses import dataclass
from typing import Iterable

from .fields import NormalizedDate

UNKNOWN_SEQUENCE_NUMBER = -1

# Non-federal sequence numbers must sort after every federal one (00-59, 98, 99)
NON_FEDERAL_SEQUENCE_NUMBERS = range(60, 98)
NON_FEDERAL_OFFSET = 100


def adjust_sequence_number(sequence_number: int) -> int:
    if sequence_number in NON_FEDERAL_SEQUENCE_NUMBERS:
        return sequence_number + NON_FEDERAL_OFFSET
    return sequence_number


@dataclass(frozen=True)
class SequencedRecord:
    """
    A valid diagnosis record taking part in sequencing and imputation.

    Attributes:
        position: Index of the record in the caller's input list.
        original: Diagnosis date after calendar repair; never imputed.
        sequence_number: Adjusted central sequence number.
    """

    position: int
    original: NormalizedDate
    sequence_number: int


def compare_records(left: SequencedRecord, right: SequencedRecord) -> int:
    """
    Three-way comparison used for sequencing.

    Returns a negative number, zero or a positive number as `left` sorts before,
    together with, or after `right`.
    """
    a, b = left.original, right.original
    by_sequence = left.sequence_number - right.sequence_number
    if not a.year_known or not b.year_known:
        return by_sequence
    if a.year != b.year:
        return a.year - b.year
    if not a.month_known or not b.month_known:
        return by_sequence
    if a.month != b.month:
        return a.month - b.month
    if not a.day_known or not b.day_known or a.day == b.day:
        return by_sequence
    return a.day - b.day


class SequenceKey:
    """
    Sort key wrapping a SequencedRecord.

    The comparison falls back to the sequence number at the first level where a
    date component is unknown, so two keys are never compared as tuples.
    """

    __slots__ = ("record",)

    def __init__(self, record: SequencedRecord):
        self.record = record

    def __lt__(self, other: "SequenceKey") -> bool:
        return compare_records(self.record, other.record) < 0


def sequence_records(records: Iterable[SequencedRecord]) -> list[SequencedRecord]:
    # sorted() is stable, ties keep input order
    return sorted(records, key=SequenceKey)
