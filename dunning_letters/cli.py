import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .assembler import DocumentAssembler, GenerationContext
from .assets import AssetCache
from .batch import BatchRunner
from .config import BATCH_DELAY, ENV_LOG_LEVEL
from .document_store import directory_sink, resolve_output_dir
from .logging_setup import setup_logging
from .stores import load_snapshot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dunning-letters",
        description="Generate dunning letter PDFs from a ledger snapshot.",
    )
    parser.add_argument("snapshot", type=Path, help="JSON snapshot with tenants, levels and fees")
    parser.add_argument(
        "--tenant",
        action="append",
        dest="tenants",
        metavar="ID",
        help="Only generate letters for this tenant id (repeatable)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Output directory for PDFs")
    parser.add_argument("--delay", type=float, default=BATCH_DELAY, help="Pause between letters in seconds")
    parser.add_argument("--log-level", default=os.getenv(ENV_LOG_LEVEL, "INFO"))
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs)

    snapshot = load_snapshot(args.snapshot)
    if args.tenants:
        wanted = set(args.tenants)
        tenants = [t for t in snapshot.ledger.tenants.values() if t.id in wanted]
        missing = wanted - {t.id for t in tenants}
        for tenant_id in sorted(missing):
            logger.warning("Tenant %s not found in snapshot", tenant_id)
    else:
        tenants = snapshot.ledger.selected_tenants()

    output_dir = resolve_output_dir(args.output)
    context = GenerationContext(
        ledger_store=snapshot.ledger,
        level_store=snapshot.levels,
        profile=snapshot.profile,
        assets=AssetCache(),
        sink=directory_sink(output_dir),
    )
    runner = BatchRunner(DocumentAssembler(context), delay=args.delay)
    result = runner.run(tenants)

    print(f"{result.successful} erfolgreich, {result.failed} fehlgeschlagen -> {output_dir}")
    for entry in result.errors:
        print(f"  {entry['tenant']}: {entry['error']}", file=sys.stderr)
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
