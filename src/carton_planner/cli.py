from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from carton_planner.calculator import run_calculation
from carton_planner.config import default_options, log_level
from carton_planner.fields import resolve_field_map
from carton_planner.notify import LogNotifier
from carton_planner.store import load_records, write_records

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="carton-planner",
        description="Size inner and master cartons for product records",
    )
    parser.add_argument("--input", required=True, help="Input records JSON file")
    parser.add_argument("--output", help="Write updated records JSON here (default: print only)")
    parser.add_argument("--inner-buffer", type=float, help="Inner carton clearance per axis")
    parser.add_argument("--master-buffer", type=float, help="Master carton clearance per axis")
    parser.add_argument(
        "--buffer-unit",
        choices=["inch", "cm"],
        help="Unit for both buffers (default from CARTON_BUFFER_UNIT or inch)",
    )
    parser.add_argument(
        "--inner-material",
        choices=["Box", "PolyBag"],
        help="Inner packaging; PolyBag drops the inner buffer and packaging weight",
    )
    parser.add_argument(
        "--all",
        dest="force_all",
        action="store_true",
        help="Process every record, ignoring selected_ids",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=log_level(), format="%(levelname)s %(name)s: %(message)s")

    try:
        options = default_options(
            force_all=args.force_all,
            inner_buffer=args.inner_buffer,
            master_buffer=args.master_buffer,
            inner_buffer_unit=args.buffer_unit,
            master_buffer_unit=args.buffer_unit,
            inner_material=args.inner_material,
        )
        store = load_records(Path(args.input))
    except (OSError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    field_map, missing = resolve_field_map(store.columns(), create_missing=True)
    if missing:
        print(f"ℹ️ Columns not in input (added on write): {', '.join(missing)}")

    notifier = LogNotifier(on_log=print)
    summary = run_calculation(store, field_map, options, notifier)
    for warning in notifier.warnings:
        print(f"⚠️ {warning}")

    if args.output:
        write_records(store, args.output)
        print(f"✅ Updated records written to {args.output}")
    print(json.dumps(summary.model_dump(), sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
