"""
Survival flag domain model.

Defines the quality flag attached to every survival-months value.
"""

from enum import Enum


class SurvivalFlag(Enum):
    """
    Enumeration of survival months flags.
    Values are the single-character codes written to registry output.
    """
    COMPLETE_INFO_NO_SURVIVAL = "0"
    COMPLETE_INFO_SOME_SURVIVAL = "1"
    MISSING_INFO_NO_SURVIVAL_POSSIBLE = "2"
    MISSING_INFO_SOME_SURVIVAL = "3"
    DCO_AUTOPSY_ONLY = "8"
    UNKNOWN = "9"

    @property
    def code(self) -> str:
        return self.value

    @property
    def shows_survival(self) -> bool:
        """True when the flag says some survival time was observed."""
        return self in (
            SurvivalFlag.COMPLETE_INFO_SOME_SURVIVAL,
            SurvivalFlag.MISSING_INFO_SOME_SURVIVAL,
        )
