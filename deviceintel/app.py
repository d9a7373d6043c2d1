import argparse
import json
from pathlib import Path

from . import __version__
from .config import get_settings, load_env
from .corpus import DeviceCorpus, import_corpus
from .engine import DeviceResolutionEngine, to_record
from .logger import get_logger
from .matcher import ReferenceMatcher
from .schema import signals_from_payload, validate_payload


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db) if args.db else get_settings().corpus_db


def cmd_import_corpus(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    db_path = _db_path(args)
    try:
        stats = import_corpus(input_path, db_path, batch_size=args.batch_size)
    except ValueError as e:
        raise SystemExit(str(e))
    print(f"Imported: {stats.imported}")
    print(f"Skipped (malformed): {stats.skipped_malformed}")
    print(f"Skipped (no name): {stats.skipped_excluded}")
    print(f"Database: {db_path}")


def cmd_resolve(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        payload = json.load(f)

    errors = validate_payload(payload)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)

    corpus = DeviceCorpus.open(_db_path(args))
    try:
        engine = DeviceResolutionEngine(corpus)
        result, verdict = engine.resolve(signals_from_payload(payload))
    finally:
        corpus.close()
    print(json.dumps(to_record(result, verdict), indent=2, ensure_ascii=False))
    engine.logger.log_metrics_summary()


def cmd_search(args: argparse.Namespace) -> None:
    corpus = DeviceCorpus.open(_db_path(args))
    try:
        matcher = ReferenceMatcher(corpus)
        if args.exact:
            record = matcher.search_by_name(args.term)
            records = [record] if record else []
        else:
            records = matcher.search_many(args.term, limit=args.limit)
    finally:
        corpus.close()

    if not records:
        print(f"No devices found for: {args.term}")
        return
    print(f"Found {len(records)} device(s):\n")
    for record in records:
        print(f"Name: {record.full_name}")
        print(f"  Manufacturer: {record.manufacturer}")
        print(f"  Type: {record.device_type}")
        print(f"  OS: {record.operating_system}")
        print(f"  LTE: {record.lte_support}  5G: {record.five_g_support}  SIM slots: {record.sim_slot_count}")
        print(f"  eSIM: {record.euicc}")
        print()


def cmd_stats(args: argparse.Namespace) -> None:
    corpus = DeviceCorpus.open(_db_path(args))
    try:
        stats = ReferenceMatcher(corpus).stats()
    finally:
        corpus.close()
    print(f"Devices: {stats['totalDevices']}")
    print(f"Database: {stats['databasePath']}")


def main(argv=None):
    # Load .env if present (DEVICEINTEL_CORPUS_DB, DEVICEINTEL_LOG_LEVEL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="deviceintel", description="Device resolution and eSIM capability lookup")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    imp = subparsers.add_parser("import-corpus", help="Rebuild the reference corpus from a pipe-delimited export")
    imp.add_argument("--input", required=True, help="Path to the pipe-delimited export (header row required)")
    imp.add_argument("--db", help="Corpus database path (default: $DEVICEINTEL_CORPUS_DB or data/gsma.db)")
    imp.add_argument("--batch-size", type=int, default=1000, help="Rows per insert batch (default 1000)")
    imp.set_defaults(func=cmd_import_corpus)

    res = subparsers.add_parser("resolve", help="Resolve a collector payload JSON to a device and eSIM verdict")
    res.add_argument("--input", required=True, help="Path to payload JSON")
    res.add_argument("--db", help="Corpus database path")
    res.set_defaults(func=cmd_resolve)

    srch = subparsers.add_parser("search", help="Search the corpus by device name")
    srch.add_argument("--term", required=True, help="Device name or fragment")
    srch.add_argument("--limit", type=int, default=10, help="Maximum rows (default 10)")
    srch.add_argument("--exact", action="store_true", help="Use the exact/substring/token cascade and return one row")
    srch.add_argument("--db", help="Corpus database path")
    srch.set_defaults(func=cmd_search)

    sts = subparsers.add_parser("stats", help="Show corpus statistics")
    sts.add_argument("--db", help="Corpus database path")
    sts.set_defaults(func=cmd_stats)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        get_logger()
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
