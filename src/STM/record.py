"""
Record domain model.

Defines the raw per-tumor input fields and the per-tumor survival output, plus the
adapters between them and the registry property names used by record readers.
"""

from dataclasses import dataclass, fields
from typing import Mapping, Optional

from .flag import SurvivalFlag

# Registry property names -> RawRecordFields attributes
INPUT_PROPERTIES = {
    "dateOfDiagnosisYear": "date_of_diagnosis_year",
    "dateOfDiagnosisMonth": "date_of_diagnosis_month",
    "dateOfDiagnosisDay": "date_of_diagnosis_day",
    "dateOfLastContactYear": "date_of_last_contact_year",
    "dateOfLastContactMonth": "date_of_last_contact_month",
    "dateOfLastContactDay": "date_of_last_contact_day",
    "birthDateYear": "birth_date_year",
    "birthDateMonth": "birth_date_month",
    "birthDateDay": "birth_date_day",
    "vitalStatus": "vital_status",
    "sequenceNumberCentral": "sequence_number_central",
    "typeOfReportingSource": "type_of_reporting_source",
}

# OutputRecord attributes -> registry property names
OUTPUT_PROPERTIES = {
    "dx_year": "survivalTimeDxYear",
    "dx_month": "survivalTimeDxMonth",
    "dx_day": "survivalTimeDxDay",
    "dolc_year": "survivalTimeDolcYear",
    "dolc_month": "survivalTimeDolcMonth",
    "dolc_day": "survivalTimeDolcDay",
    "dolc_year_presumed_alive": "survivalTimeDolcYearPresumedAlive",
    "dolc_month_presumed_alive": "survivalTimeDolcMonthPresumedAlive",
    "dolc_day_presumed_alive": "survivalTimeDolcDayPresumedAlive",
    "survival_months": "survivalMonths",
    "survival_months_flag": "survivalMonthsFlag",
    "survival_months_presumed_alive": "survivalMonthsPresumedAlive",
    "survival_months_flag_presumed_alive": "survivalMonthsFlagPresumedAlive",
    "sorted_index": "sortedIndex",
}


@dataclass
class RawRecordFields:
    """
    The text fields of one tumor record, as supplied by a registry reader.

    Every field is optional and kept as text so that blank and placeholder
    encodings survive until normalization.

    Attributes:
        date_of_diagnosis_year/month/day: Date of diagnosis components.
        date_of_last_contact_year/month/day: Date of last contact components.
        birth_date_year/month/day: Birth date components.
        vital_status: "1" alive, "0" dead.
        sequence_number_central: Two-digit tumor sequence number.
        type_of_reporting_source: Reporting source code ("6" autopsy, "7" death certificate).
    """

    date_of_diagnosis_year: Optional[str] = None
    date_of_diagnosis_month: Optional[str] = None
    date_of_diagnosis_day: Optional[str] = None
    date_of_last_contact_year: Optional[str] = None
    date_of_last_contact_month: Optional[str] = None
    date_of_last_contact_day: Optional[str] = None
    birth_date_year: Optional[str] = None
    birth_date_month: Optional[str] = None
    birth_date_day: Optional[str] = None
    vital_status: Optional[str] = None
    sequence_number_central: Optional[str] = None
    type_of_reporting_source: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Optional[str]]) -> "RawRecordFields":
        """
        Build from a mapping keyed by registry property names (dateOfDiagnosisYear, ...).
        Keys that are not survival inputs are ignored.
        """
        return cls(**{
            attribute: record.get(prop)
            for prop, attribute in INPUT_PROPERTIES.items()
        })


@dataclass
class OutputRecord:
    """
    Survival results for one tumor record.

    Attributes:
        dx_year/dx_month/dx_day: Diagnosis date used, with unknown parts imputed.
        dolc_year/dolc_month/dolc_day: Date of last contact used for the raw calculation.
        dolc_*_presumed_alive: Date of last contact used when presuming alive.
        survival_months: Four-digit months, "9999" when unknown.
        survival_months_flag: Quality flag for survival_months.
        survival_months_presumed_alive: Four-digit months under the presumed alive policy.
        survival_months_flag_presumed_alive: Quality flag under the presumed alive policy.
        sorted_index: Chronological rank of the record within the patient.
    """

    dx_year: str
    dx_month: str
    dx_day: str
    dolc_year: str
    dolc_month: str
    dolc_day: str
    dolc_year_presumed_alive: str
    dolc_month_presumed_alive: str
    dolc_day_presumed_alive: str
    survival_months: str
    survival_months_flag: SurvivalFlag
    survival_months_presumed_alive: str
    survival_months_flag_presumed_alive: SurvivalFlag
    sorted_index: int

    def __post_init__(self):
        for attr in ("survival_months_flag", "survival_months_flag_presumed_alive"):
            if not isinstance(getattr(self, attr), SurvivalFlag):
                raise ValueError(f"{attr} must be a SurvivalFlag, got {getattr(self, attr)!r}")

        for attr in ("survival_months", "survival_months_presumed_alive"):
            val = getattr(self, attr)
            if not isinstance(val, str) or len(val) != 4 or not val.isdigit():
                raise ValueError(f"{attr} must be a four-digit string, got {val!r}")

        if not isinstance(self.sorted_index, int) or self.sorted_index < 0:
            raise ValueError(f"sorted_index must be a non-negative integer, got {self.sorted_index!r}")

    def to_dict(self) -> dict[str, object]:
        """Registry property names mapped to output values; flags become their codes."""
        result: dict[str, object] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, SurvivalFlag):
                value = value.code
            result[OUTPUT_PROPERTIES[field.name]] = value
        return result
