import pytest
from STM.flag import SurvivalFlag


def test_survival_flag_codes():
    """Ensure each flag carries its registry code."""
    assert [flag.code for flag in SurvivalFlag] == ["0", "1", "2", "3", "8", "9"]
    assert SurvivalFlag.DCO_AUTOPSY_ONLY.code == "8"


@pytest.mark.parametrize(
    "flag, expected",
    [
        (SurvivalFlag.COMPLETE_INFO_NO_SURVIVAL, False),
        (SurvivalFlag.COMPLETE_INFO_SOME_SURVIVAL, True),
        (SurvivalFlag.MISSING_INFO_NO_SURVIVAL_POSSIBLE, False),
        (SurvivalFlag.MISSING_INFO_SOME_SURVIVAL, True),
        (SurvivalFlag.DCO_AUTOPSY_ONLY, False),
        (SurvivalFlag.UNKNOWN, False),
    ],
)
def test_shows_survival(flag, expected):
    assert flag.shows_survival is expected
