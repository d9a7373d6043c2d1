"""
Tests for environment-backed settings.
"""

import os
from pathlib import Path

import pytest

from deviceintel.config import get_settings, load_env

ENV_VARS = [
    "DEVICEINTEL_CORPUS_DB",
    "DEVICEINTEL_LOG_LEVEL",
    "DEVICEINTEL_LOG_DIR",
    "DEVICEINTEL_LOG_TO_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = get_settings()

        assert settings.corpus_db == Path("data/gsma.db")
        assert settings.log_level == "INFO"
        assert settings.log_dir == Path("logs")
        assert settings.log_to_file is True

    def test_environment_overrides(self, clean_env, tmp_path):
        clean_env.setenv("DEVICEINTEL_CORPUS_DB", str(tmp_path / "corpus.db"))
        clean_env.setenv("DEVICEINTEL_LOG_LEVEL", "debug")
        clean_env.setenv("DEVICEINTEL_LOG_TO_FILE", "no")

        settings = get_settings()

        assert settings.corpus_db == tmp_path / "corpus.db"
        assert settings.log_level == "DEBUG"
        assert settings.log_to_file is False

    def test_blank_flag_uses_default(self, clean_env):
        clean_env.setenv("DEVICEINTEL_LOG_TO_FILE", " ")
        assert get_settings().log_to_file is True


class TestLoadEnv:
    def test_reads_dotenv_from_cwd(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("DEVICEINTEL_CORPUS_DB=/srv/gsma.db\n", encoding="utf-8")
        clean_env.chdir(tmp_path)

        try:
            load_env()
            assert get_settings().corpus_db == Path("/srv/gsma.db")
        finally:
            os.environ.pop("DEVICEINTEL_CORPUS_DB", None)

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("DEVICEINTEL_LOG_LEVEL=DEBUG\n", encoding="utf-8")
        clean_env.setenv("DEVICEINTEL_LOG_LEVEL", "ERROR")
        clean_env.chdir(tmp_path)

        load_env()

        assert get_settings().log_level == "ERROR"

    def test_missing_dotenv(self, clean_env, tmp_path):
        clean_env.chdir(tmp_path)
        load_env()
        assert get_settings().corpus_db == Path("data/gsma.db")
