"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import List

from sqlalchemy.orm import sessionmaker

from deviceintel.corpus import DeviceCorpus, InMemoryCorpus, import_corpus
from deviceintel.database import create_db_engine
from deviceintel.logger import StructuredLogger, reset_logger
from deviceintel.matcher import ReferenceMatcher
from deviceintel.models import ReferenceRecord

CORPUS_HEADER = (
    "TAC_IMEI|MarketingName|StandardisedFullName|StandardisedManufacturer|DeviceType|"
    "OperatingSystem|Bands|LTE|5G|SIMSlot|eUICC"
)

CORPUS_ROWS = [
    "35000001|Pixel 7 Pro|Google Pixel 7 Pro|Google|Smartphone|Android|GSM 900,LTE B1|true|true|1|true",
    "35000002|iPhone 12|Apple iPhone 12|Apple|Smartphone|iOS|GSM 900,LTE B1|true|true|1|true",
    "35000003|iPhone 13|Apple iPhone 13|Apple|Smartphone|iOS|GSM 900,LTE B1|true|true|1|true",
    "35000004|iPhone 13 Pro|Apple iPhone 13 Pro|Apple|Smartphone|iOS|GSM 900,LTE B1|true|true|1|true",
    "35000005|iPhone 14|Apple iPhone 14|Apple|Smartphone|iOS|GSM 900,LTE B1|true|true|1|true",
    "35000006|Galaxy S23 Ultra|Samsung Galaxy S23 Ultra|Samsung|Smartphone|Android|LTE B3|true|true|2|true",
    "35000007|Edge 50|Motorola Edge 50|Motorola|Smartphone|Android|LTE B3|true|true|2|true",
    "35000008|Not in Signaling|Not in Signaling|Unknown|Unknown|Unknown||false|false|0|false",
    "35000009|Unknown|Not Known|Unknown|Unknown|Unknown||false|false|0|false",
    "35000010|Blank||Unknown|Unknown|Unknown||false|false|0|false",
    "35000011|Broken|Row with too few columns",
    "35000012|iPhone X|Apple iPhone X|Apple|Smartphone|iOS|GSM 900,LTE B1|true|false|1|false",
    "35000013|iPhone XS|Apple iPhone XS|Apple|Smartphone|iOS|GSM 900,LTE B1|true|false|1|true",
    "35000014|3310|Nokia 3310|Nokia|Feature Phone|Proprietary|GSM 900|false|false|1|false",
]


@pytest.fixture(autouse=True)
def quiet_environment(monkeypatch):
    """Keep the global logger off disk and reset it between tests."""
    monkeypatch.setenv("DEVICEINTEL_LOG_TO_FILE", "false")
    monkeypatch.setenv("DEVICEINTEL_LOG_LEVEL", "WARNING")
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers, for inspecting metrics."""
    return StructuredLogger(name="deviceintel_test", enable_console=False, enable_file=False)


@pytest.fixture
def corpus_export(tmp_path) -> Path:
    """Pipe-delimited corpus export with sentinel and malformed rows."""
    path = tmp_path / "modsumm_tac_imei.csv"
    path.write_text("\n".join([CORPUS_HEADER] + CORPUS_ROWS) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def corpus_db(tmp_path, corpus_export, quiet_logger) -> Path:
    """Imported corpus database."""
    db_path = tmp_path / "data" / "gsma.db"
    import_corpus(corpus_export, db_path, logger=quiet_logger)
    return db_path


@pytest.fixture
def corpus(corpus_db, quiet_logger):
    corpus = DeviceCorpus.open(corpus_db, logger=quiet_logger)
    yield corpus
    corpus.close()


@pytest.fixture
def matcher(corpus, quiet_logger) -> ReferenceMatcher:
    return ReferenceMatcher(corpus, quiet_logger)


@pytest.fixture
def open_session():
    """Factory: SQLAlchemy session on a database file, closed after the test."""
    opened = []

    def build(db_path: Path):
        engine = create_db_engine(db_path)
        session = sessionmaker(bind=engine)()
        opened.append((engine, session))
        return session

    yield build
    for engine, session in opened:
        session.close()
        engine.dispose()


@pytest.fixture
def unavailable_corpus(tmp_path, quiet_logger) -> DeviceCorpus:
    return DeviceCorpus.open(tmp_path / "missing.db", logger=quiet_logger)


def make_records(names_and_flags) -> List[ReferenceRecord]:
    """Build ReferenceRecords from (name, euicc) pairs, ids in order."""
    return [
        ReferenceRecord(corpus_id=i, full_name=name, euicc=flag)
        for i, (name, flag) in enumerate(names_and_flags, start=1)
    ]


@pytest.fixture
def memory_matcher(quiet_logger):
    """Factory: ReferenceMatcher over an in-memory list of (name, euicc) pairs."""
    def build(names_and_flags):
        return ReferenceMatcher(InMemoryCorpus(make_records(names_and_flags)), quiet_logger)
    return build
