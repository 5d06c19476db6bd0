"""
Unit tests for settings loading.
"""
import pytest
from pydantic import ValidationError

from ctrps.CONFIG.settings import ListingSettings, load_settings

VARIABLES = ("CTRPS_STATE_FILE", "CTRPS_PROC_ROOT", "CTRPS_LOG_LEVEL", "CTRPS_WORKERS")


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Empty working directory and no CTRPS_* variables."""
    for name in VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings == ListingSettings()
        assert settings.state_file == "ctrps-state.yml"
        assert settings.proc_root == "/proc"
        assert settings.log_level == "WARNING"
        assert settings.workers == 1

    def test_from_environ(self, clean_env, monkeypatch):
        monkeypatch.setenv("CTRPS_STATE_FILE", "/tmp/state.yml")
        monkeypatch.setenv("CTRPS_LOG_LEVEL", "debug")
        monkeypatch.setenv("CTRPS_WORKERS", "4")
        monkeypatch.setenv("UNRELATED", "x")
        settings = load_settings()
        assert settings.state_file == "/tmp/state.yml"
        assert settings.log_level == "DEBUG"
        assert settings.workers == 4

    def test_empty_variable_keeps_default(self, clean_env, monkeypatch):
        monkeypatch.setenv("CTRPS_PROC_ROOT", "")
        assert load_settings().proc_root == "/proc"

    def test_invalid_workers(self, clean_env, monkeypatch):
        monkeypatch.setenv("CTRPS_WORKERS", "0")
        with pytest.raises(ValidationError):
            load_settings()

    def test_dotenv_in_working_directory(self, clean_env):
        (clean_env / ".env").write_text("CTRPS_PROC_ROOT=/host/proc\nOTHER=1\n")
        assert load_settings().proc_root == "/host/proc"

    def test_explicit_env_file(self, clean_env):
        env_file = clean_env / "custom.env"
        env_file.write_text("CTRPS_WORKERS=3\n")
        assert load_settings(str(env_file)).workers == 3

    def test_environment_overrides_env_file(self, clean_env, monkeypatch):
        env_file = clean_env / "custom.env"
        env_file.write_text("CTRPS_WORKERS=3\n")
        monkeypatch.setenv("CTRPS_WORKERS", "5")
        assert load_settings(str(env_file)).workers == 5
