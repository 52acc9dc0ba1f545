#!/usr/bin/env python3
"""
PF2e Oracle Entrypoint

Dispatches to the appropriate mode based on command line arguments.

Modes:
  daemon   - Run the HTTP server (default)
  import   - Import all categories, or one, from GitHub and exit
  ingest   - Index stored entries into the vector store and exit
  cleanup  - Remove entries whose source files are gone (or preview them)
"""

import argparse
import json
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PF2e Oracle")
    subparsers = parser.add_subparsers(dest="mode")

    subparsers.add_parser("daemon", help="Run the HTTP server")

    import_parser = subparsers.add_parser("import", help="Import from GitHub")
    import_parser.add_argument("category", nargs="?", help="Only import this category")

    ingest_parser = subparsers.add_parser("ingest", help="Index stored entries")
    ingest_parser.add_argument("category", nargs="?", help="Only index this category")
    ingest_parser.add_argument("--force", action="store_true", help="Re-index unchanged entries too")

    cleanup_parser = subparsers.add_parser("cleanup", help="Remove orphaned entries")
    cleanup_parser.add_argument("--dry-run", action="store_true", help="List orphans without deleting")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    mode = args.mode or "daemon"

    from pf2e_oracle.configs.logging import get_logger, setup_logging

    # Initialize logging (must be called before get_logger)
    setup_logging()
    logger = get_logger("entrypoint")

    from pf2e_oracle.configs import services

    if mode == "daemon":
        from pf2e_oracle.configs import create_default_config, get_config_path
        from pf2e_oracle.http import run_server

        if create_default_config():
            logger.info(f"Created default config: {get_config_path()}")

        run_server(host="0.0.0.0", port=services.CONFIG["http_port"])
        return 0

    try:
        if mode == "import":
            service = services.get_import_service()
            result = service.import_category(args.category) if args.category else service.import_all()
            output = result.to_dict()
        elif mode == "ingest":
            result = services.get_ingestion_service().ingest(category=args.category, force=args.force)
            output = result.to_dict()
        elif args.dry_run:
            output = [orphan.to_dict() for orphan in services.get_cleanup_service().detect_orphans()]
        else:
            output = services.get_cleanup_service().cleanup_orphans().to_dict()
    finally:
        services.shutdown_services()

    logger.info(f"{mode} finished")
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
