"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for the device reference corpus.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, Index, Integer, String, DateTime, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Device(Base):
    """Reference corpus row (one TAC entry)."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tac_imei = Column(String)
    standardised_full_name = Column(String, nullable=False)
    standardised_manufacturer = Column(String)
    device_type = Column(String)
    operating_system = Column(String)
    bands = Column(String)
    lte = Column(String)
    g5 = Column(String)  # 5G flag
    simslot = Column(String)
    euicc = Column(String)  # "true"/"false" as exported
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("idx_full_name", "standardised_full_name"),
        Index("idx_manufacturer", "standardised_manufacturer"),
    )


Index("idx_full_name_lower", func.lower(Device.standardised_full_name))


def create_db_engine(db_path: Path):
    return create_engine(f"sqlite:///{db_path}")


def init_database(db_path: Path, reset: bool = False) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
        reset: Drop the devices table first (full re-import)
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    if reset:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    engine.dispose()
