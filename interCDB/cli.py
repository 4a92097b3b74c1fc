"""Command line entry point: ``intercdb model.cdb``."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from .CDB.CDB import CDBReader
from .CDB.Exceptions import CDBError
from .CDB.options import LogOptions


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse the CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="intercdb", description="Import an ANSYS .cdb mesh and summarise it"
    )
    parser.add_argument("path", type=Path, help="ANSYS .cdb file to read")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write the log here")
    parser.add_argument("--debug", action="store_true", help="Log every block read")
    parser.add_argument(
        "--quiet", action="store_true", help="Log to --log-file only, not to stderr"
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Read one file and log what it contains. Return the exit status."""
    args = parse_args(argv)
    logger = LogOptions(
        log_file=args.log_file, debug_mode=args.debug, console=not args.quiet
    ).apply().logger
    try:
        builder = CDBReader().read(args.path)
    except CDBError as exc:
        logger.error("Import of {} failed: {}", args.path, exc)
        return 1

    for sid in builder.subdomain_ids():
        count = sum(1 for e in builder.elements() if e.subdomain_id == sid)
        logger.info("subdomain {} '{}': {} elements", sid, builder.subdomain_name(sid), count)
    info = builder.boundary_info
    for set_id in info.nodeset_ids():
        logger.info(
            "node set {} '{}': {} nodes",
            set_id,
            info.nodeset_name(set_id),
            len(info.nodes_in_set(set_id)),
        )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
