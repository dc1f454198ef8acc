import pytest

from hotbuild.config import Settings
from hotbuild.errors import ConfigurationError


def test_settings_from_env_reads_exe_suffix_and_overrides() -> None:
    settings = Settings.from_env(
        {"GOEXE": ".exe", "HOTBUILD_DEBOUNCE": "0.25", "HOTBUILD_COMPILER": "go1.22"}
    )

    assert settings.exe_suffix == ".exe"
    assert settings.debounce_window == 0.25
    assert settings.compiler == "go1.22"
    assert settings.grace_period == Settings().grace_period


def test_settings_from_env_defaults_without_environment() -> None:
    assert Settings.from_env({}) == Settings()


def test_settings_keyword_overrides_win_over_environment() -> None:
    settings = Settings.from_env({"HOTBUILD_GRACE_PERIOD": "9"}, grace_period=1.5)
    assert settings.grace_period == 1.5


def test_settings_rejects_non_numeric_environment_value() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        Settings.from_env({"HOTBUILD_DEBOUNCE": "soon"})

    assert excinfo.value.context["variable"] == "HOTBUILD_DEBOUNCE"
    assert excinfo.value.hint is not None


def test_settings_rejects_non_positive_windows() -> None:
    with pytest.raises(ConfigurationError):
        Settings().with_overrides(grace_period=0)
    with pytest.raises(ConfigurationError):
        Settings.from_env({}, debounce_window=-1.0)
