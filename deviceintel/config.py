import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_CORPUS_DB = "data/gsma.db"
DEFAULT_LOG_DIR = "logs"


def load_env() -> None:
    """Load .env from project root if present.
    Values already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    corpus_db: Path
    log_level: str
    log_dir: Path
    log_to_file: bool


def get_settings() -> Settings:
    """Read settings from the environment (call load_env() first for .env)."""
    return Settings(
        corpus_db=Path(os.getenv("DEVICEINTEL_CORPUS_DB") or DEFAULT_CORPUS_DB),
        log_level=(os.getenv("DEVICEINTEL_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(os.getenv("DEVICEINTEL_LOG_DIR") or DEFAULT_LOG_DIR),
        log_to_file=_env_flag("DEVICEINTEL_LOG_TO_FILE", True),
    )
