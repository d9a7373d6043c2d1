"""
Tests for corpus import and the read-only DeviceCorpus.
"""

import pytest
from sqlalchemy.exc import OperationalError

from deviceintel import corpus as corpus_module
from deviceintel.corpus import (
    DeviceCorpus,
    InMemoryCorpus,
    import_corpus,
    is_excluded,
    parse_corpus_line,
    parse_header,
)
from deviceintel.database import Device, init_database
from deviceintel.models import ReferenceRecord


class TestParsing:
    """Test line-level parsing of the export."""

    def test_header_is_trimmed_and_lowercased(self):
        headers = parse_header(" TAC_IMEI | StandardisedFullName |eUICC\n")
        assert headers == ["tac_imei", "standardisedfullname", "euicc"]

    def test_line_maps_to_device_columns(self):
        headers = parse_header("TAC_IMEI|StandardisedFullName|5G|eUICC")
        row = parse_corpus_line("123| Apple iPhone 12 |true|true", headers)

        assert row["tac_imei"] == "123"
        assert row["standardised_full_name"] == "Apple iPhone 12"
        assert row["g5"] == "true"
        assert row["euicc"] == "true"
        # Columns absent from the header come through as None
        assert row["bands"] is None

    def test_column_count_mismatch_is_rejected(self):
        headers = parse_header("TAC_IMEI|StandardisedFullName|eUICC")
        assert parse_corpus_line("123|Apple iPhone 12", headers) is None

    @pytest.mark.parametrize("name", ["Not in Signaling", "Not Known", None])
    def test_sentinel_names_are_excluded(self, name):
        assert is_excluded({"standardised_full_name": name})

    def test_real_name_is_kept(self):
        assert not is_excluded({"standardised_full_name": "Google Pixel 7"})


class TestImport:
    """Test importing an export into SQLite."""

    def test_import_counts(self, corpus_export, tmp_path, quiet_logger):
        stats = import_corpus(corpus_export, tmp_path / "gsma.db", logger=quiet_logger)

        assert stats.lines_read == 14
        assert stats.imported == 10
        assert stats.skipped_excluded == 3
        assert stats.skipped_malformed == 1

    def test_import_excludes_sentinel_rows(self, corpus_db, open_session):
        session = open_session(corpus_db)
        names = [d.standardised_full_name for d in session.query(Device).all()]
        session.close()

        assert "Not in Signaling" not in names
        assert "Not Known" not in names
        assert all(names)

    def test_import_small_batches(self, corpus_export, tmp_path, quiet_logger, open_session):
        """Batch size does not change the result."""
        stats = import_corpus(corpus_export, tmp_path / "gsma.db", batch_size=3, logger=quiet_logger)
        assert stats.imported == 10

        session = open_session(tmp_path / "gsma.db")
        assert session.query(Device).count() == 10
        session.close()

    def test_reimport_replaces_rows(self, corpus_export, tmp_path, quiet_logger, open_session):
        db_path = tmp_path / "gsma.db"
        import_corpus(corpus_export, db_path, logger=quiet_logger)
        import_corpus(corpus_export, db_path, logger=quiet_logger)

        session = open_session(db_path)
        assert session.query(Device).count() == 10
        session.close()

    def test_missing_source_raises(self, tmp_path, quiet_logger):
        with pytest.raises(FileNotFoundError):
            import_corpus(tmp_path / "nope.csv", tmp_path / "gsma.db", logger=quiet_logger)

    def test_header_without_name_column_raises(self, tmp_path, quiet_logger):
        source = tmp_path / "bad.csv"
        source.write_text("TAC_IMEI|Brand\n123|Apple\n", encoding="utf-8")

        with pytest.raises(ValueError):
            import_corpus(source, tmp_path / "gsma.db", logger=quiet_logger)


class TestDeviceCorpus:
    """Test the read-only repository."""

    def test_open_reports_total(self, corpus):
        assert corpus.available
        assert corpus.total_devices == 10

    def test_missing_database_is_unavailable(self, unavailable_corpus, tmp_path):
        assert not unavailable_corpus.available
        assert unavailable_corpus.find_exact("Apple iPhone 12") is None
        assert unavailable_corpus.find_containing("iPhone") == []
        # Opening must not create the file
        assert not (tmp_path / "missing.db").exists()

    def test_empty_database_is_unavailable(self, tmp_path, quiet_logger):
        db_path = tmp_path / "empty.db"
        init_database(db_path)

        corpus = DeviceCorpus.open(db_path, logger=quiet_logger)
        assert not corpus.available
        assert corpus.total_devices == 0

    def test_unreadable_database_is_unavailable(self, tmp_path, quiet_logger, monkeypatch):
        db_path = tmp_path / "gsma.db"
        init_database(db_path)

        def locked(Session):
            raise corpus_module.RetryError("database is locked")

        monkeypatch.setattr(corpus_module, "_count_devices", locked)
        corpus = DeviceCorpus.open(db_path, logger=quiet_logger)
        assert not corpus.available

    def test_corrupt_database_file_is_unavailable(self, tmp_path, quiet_logger):
        """A file that is not SQLite at all degrades instead of raising."""
        db_path = tmp_path / "gsma.db"
        db_path.write_bytes(b"this is not a sqlite database at all" * 100)

        corpus = DeviceCorpus.open(db_path, logger=quiet_logger)

        assert corpus.available is False
        assert corpus.total_devices == 0
        assert corpus.find_exact("Apple iPhone 12") is None
        assert corpus.find_containing("iPhone") == []
        corpus.close()

    def test_find_exact_ignores_case(self, corpus):
        record = corpus.find_exact("APPLE IPHONE 12")
        assert record.full_name == "Apple iPhone 12"

    def test_find_containing_orders_by_id(self, corpus):
        records = corpus.find_containing("iphone 13", limit=5)
        assert [r.full_name for r in records] == ["Apple iPhone 13", "Apple iPhone 13 Pro"]

    def test_find_containing_respects_limit(self, corpus):
        assert len(corpus.find_containing("apple", limit=2)) == 2

    def test_like_wildcards_are_literal(self, corpus):
        assert corpus.find_containing("%", limit=5) == []
        assert corpus.find_containing("iPhone_1", limit=5) == []

    def test_records_parse_flags(self, corpus):
        record = corpus.find_exact("Samsung Galaxy S23 Ultra")
        assert isinstance(record, ReferenceRecord)
        assert record.lte_support is True
        assert record.five_g_support is True
        assert record.sim_slot_count == 2
        assert record.euicc is True
        assert record.manufacturer == "Samsung"

        iphone_x = corpus.find_exact("Apple iPhone X")
        assert iphone_x.euicc is False
        assert iphone_x.five_g_support is False

    def test_records_are_immutable(self, corpus):
        record = corpus.find_exact("Nokia 3310")
        with pytest.raises(AttributeError):
            record.euicc = True

    def test_count_retries_on_lock(self, corpus_db, monkeypatch):
        """The startup count is retried while an import holds the lock."""
        monkeypatch.setattr("time.sleep", lambda s: None)
        calls = [0]
        original = corpus_module._count_devices.__wrapped__

        @corpus_module.exponential_backoff(max_retries=2, base_delay=0.01, exceptions=(OperationalError,))
        def flaky(Session):
            calls[0] += 1
            if calls[0] < 2:
                raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))
            return original(Session)

        monkeypatch.setattr(corpus_module, "_count_devices", flaky)
        corpus = DeviceCorpus.open(corpus_db)

        assert corpus.available
        assert calls[0] == 2
        corpus.close()


class TestInMemoryCorpus:
    """Test the list-backed corpus."""

    def test_empty_list_is_unavailable(self):
        assert not InMemoryCorpus([]).available

    def test_queries(self):
        corpus = InMemoryCorpus([
            ReferenceRecord(corpus_id=2, full_name="iPhone 13 Pro"),
            ReferenceRecord(corpus_id=1, full_name="iPhone 13"),
        ])

        assert corpus.find_exact("IPHONE 13").corpus_id == 1
        assert [r.full_name for r in corpus.find_containing("13", limit=5)] == ["iPhone 13", "iPhone 13 Pro"]
