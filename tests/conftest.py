import pytest

from cellexplorer.constants import PREFERENCES_ENV_VAR
from cellexplorer.settings import user


@pytest.fixture(autouse=True)
def no_user_preferences(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real preference files on the test machine out of the tests."""
    monkeypatch.delenv(PREFERENCES_ENV_VAR, raising=False)
    monkeypatch.setattr(user, "DEFAULT_PREFERENCES_PATHS", [])
