"""
Reference corpus: import from the pipe-delimited GSMA export, and the
read-only repository the matcher queries.

The engine never writes to the corpus. Import runs as a separate step
(`deviceintel import-corpus`) before the service starts; afterwards a single
DeviceCorpus is opened and shared by every resolution call.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import Device, create_db_engine, init_database
from .logger import get_logger
from .models import ReferenceRecord
from .normalize import like_pattern, parse_flag, parse_int
from .retry import RetryError, exponential_backoff

BATCH_SIZE = 1000

# Rows carrying these names have no usable identity
EXCLUDED_NAMES = {"Not in Signaling", "Not Known"}

# header name in the export -> Device column
COLUMN_MAP = {
    "tac_imei": "tac_imei",
    "standardisedfullname": "standardised_full_name",
    "standardisedmanufacturer": "standardised_manufacturer",
    "devicetype": "device_type",
    "operatingsystem": "operating_system",
    "bands": "bands",
    "lte": "lte",
    "5g": "g5",
    "simslot": "simslot",
    "euicc": "euicc",
}


@dataclass
class ImportStats:
    lines_read: int = 0
    imported: int = 0
    skipped_malformed: int = 0
    skipped_excluded: int = 0


def parse_header(line: str) -> List[str]:
    return [h.strip().lower() for h in line.split("|")]


def parse_corpus_line(line: str, headers: List[str]) -> Optional[Dict[str, Optional[str]]]:
    """
    Map one data line onto Device column values.

    Returns None when the column count does not match the header.
    """
    values = [v.strip() for v in line.split("|")]
    if len(values) != len(headers):
        return None
    row = dict(zip(headers, values))
    return {column: (row.get(header) or None) for header, column in COLUMN_MAP.items()}


def is_excluded(row: Dict[str, Optional[str]]) -> bool:
    name = row.get("standardised_full_name")
    return not name or name in EXCLUDED_NAMES


def import_corpus(source_path: Path, db_path: Path, batch_size: int = BATCH_SIZE, logger=None) -> ImportStats:
    """
    Rebuild the corpus database from a pipe-delimited export.

    The devices table is dropped and recreated; rows are inserted in batches.

    Args:
        source_path: Export file with a header row
        db_path: SQLite database file to (re)build
        batch_size: Rows per insert transaction
        logger: Optional StructuredLogger (defaults to the global logger)

    Returns:
        ImportStats with counts of imported and skipped rows

    Raises:
        FileNotFoundError: If source_path does not exist
        ValueError: If the header has no standardisedfullname column
    """
    logger = logger or get_logger()
    if not source_path.exists():
        raise FileNotFoundError(f"Corpus source not found: {source_path}")

    logger.info("Starting corpus import", source=str(source_path), database=str(db_path))
    init_database(db_path, reset=True)
    engine = create_db_engine(db_path)
    Session = sessionmaker(bind=engine)
    stats = ImportStats()
    headers: List[str] = []
    batch: List[Dict[str, Optional[str]]] = []

    def flush(session) -> None:
        if not batch:
            return
        session.bulk_insert_mappings(Device, batch)
        session.commit()
        stats.imported += len(batch)
        logger.debug("Imported batch", total=stats.imported)
        batch.clear()

    try:
        with Session() as session, source_path.open("r", encoding="utf-8", errors="replace") as f:
            for line in f:
                if not line.strip():
                    continue
                if not headers:
                    headers = parse_header(line)
                    if "standardisedfullname" not in headers:
                        raise ValueError(f"Corpus header has no standardisedfullname column: {source_path}")
                    logger.info("Corpus header parsed", columns=len(headers))
                    continue

                stats.lines_read += 1
                row = parse_corpus_line(line, headers)
                if row is None:
                    stats.skipped_malformed += 1
                    continue
                if is_excluded(row):
                    stats.skipped_excluded += 1
                    continue

                batch.append(row)
                if len(batch) >= batch_size:
                    flush(session)
            flush(session)
    finally:
        engine.dispose()

    logger.info(
        f"Corpus import complete: {stats.imported} devices",
        imported=stats.imported,
        skipped_malformed=stats.skipped_malformed,
        skipped_excluded=stats.skipped_excluded,
    )
    return stats


def to_record(device: Device) -> ReferenceRecord:
    return ReferenceRecord(
        corpus_id=device.id,
        device_id=device.tac_imei,
        full_name=device.standardised_full_name,
        manufacturer=device.standardised_manufacturer,
        device_type=device.device_type,
        operating_system=device.operating_system,
        bands=device.bands,
        lte_support=parse_flag(device.lte),
        five_g_support=parse_flag(device.g5),
        sim_slot_count=parse_int(device.simslot),
        euicc=parse_flag(device.euicc),
    )


@exponential_backoff(max_retries=2, base_delay=0.5, exceptions=(OperationalError,))
def _count_devices(Session) -> int:
    with Session() as session:
        return session.query(Device).count()


class DeviceCorpus:
    """
    Read-only view over the imported corpus.

    Open once at startup with DeviceCorpus.open() and share it; each query
    uses its own short-lived session, so concurrent readers need no locking.
    Queries raise SQLAlchemyError on store faults; callers decide how to
    degrade.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.available = False
        self.total_devices = 0
        self._engine = None
        self._Session = None

    @classmethod
    def open(cls, db_path: Path, logger=None) -> "DeviceCorpus":
        """Open the corpus; any store that cannot serve queries yields an unavailable corpus."""
        logger = logger or get_logger()
        corpus = cls(db_path)
        if not db_path.exists():
            logger.warning(
                "Corpus database not found, matching will return no results",
                path=str(db_path),
                hint="run: deviceintel import-corpus --input <export>",
            )
            return corpus

        corpus._engine = create_db_engine(db_path)
        corpus._Session = sessionmaker(bind=corpus._engine)
        try:
            total = _count_devices(corpus._Session)
        except (RetryError, SQLAlchemyError) as e:
            logger.error("Corpus database could not be read", path=str(db_path), error=str(e))
            return corpus

        if total == 0:
            logger.warning("Corpus database is empty", path=str(db_path))
            return corpus

        corpus.available = True
        corpus.total_devices = total
        logger.info(f"Corpus ready: {total} devices loaded", path=str(db_path))
        return corpus

    def find_exact(self, term: str) -> Optional[ReferenceRecord]:
        """Case-insensitive full-name equality, lowest id first."""
        if not self.available:
            return None
        with self._Session() as session:
            device = (
                session.query(Device)
                .filter(func.lower(Device.standardised_full_name) == term.lower())
                .order_by(Device.id)
                .first()
            )
            return to_record(device) if device else None

    def find_containing(self, term: str, limit: int = 1) -> List[ReferenceRecord]:
        """Case-insensitive substring containment, lowest ids first."""
        if not self.available:
            return []
        with self._Session() as session:
            devices = (
                session.query(Device)
                .filter(Device.standardised_full_name.ilike(like_pattern(term), escape="\\"))
                .order_by(Device.id)
                .limit(limit)
                .all()
            )
            return [to_record(d) for d in devices]

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._Session = None
        self.available = False


class InMemoryCorpus:
    """Fixed list of records with the same query contract as DeviceCorpus."""

    db_path = None

    def __init__(self, records):
        self._records = sorted(records, key=lambda r: r.corpus_id)
        self.available = bool(self._records)
        self.total_devices = len(self._records)

    def find_exact(self, term: str) -> Optional[ReferenceRecord]:
        key = term.casefold()
        for record in self._records:
            if record.key == key:
                return record
        return None

    def find_containing(self, term: str, limit: int = 1) -> List[ReferenceRecord]:
        needle = term.casefold()
        return [r for r in self._records if needle in r.key][:limit]

    def close(self) -> None:
        pass
