# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Command-line entry point for the drug price guide toolkit."""

import argparse
import getpass
import json
import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from egypt_drug_guide.catalog.admin import build_full_backup
from egypt_drug_guide.catalog.fetch import DrugCatalog
from egypt_drug_guide.commands import execute_command
from egypt_drug_guide.config import remote_url, storage_dir
from egypt_drug_guide.importer.pipeline import DataImporter
from egypt_drug_guide.pages import PageContentService
from egypt_drug_guide.ratings import RatingService
from egypt_drug_guide.remote import RemoteStore
from egypt_drug_guide.session import AdminSession, ErrorReportLog, Favorites
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.storage.mirror import LocalMirror
from egypt_drug_guide.storage.read_cache import ReadCache
from egypt_drug_guide.utils.logger import configure_logging


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Egyptian Drug Price Guide toolkit")
    parser.add_argument(
        "--remote-url",
        type=str,
        default=remote_url(),
        help="Base URL of the remote JSON store",
    )
    parser.add_argument(
        "--storage-dir",
        type=Path,
        default=storage_dir(),
        help="Directory holding the local cache, mirror and session files",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Load the drug price list")
    fetch.add_argument("--force", action="store_true", help="Bypass the read cache")

    imp = sub.add_parser("import", help="Import drugs from a JSON or CSV file")
    imp.add_argument("file", type=Path)
    imp.add_argument("--mode", choices=["replace", "merge"], default="replace")
    imp.add_argument("--backup-to-mirror", action="store_true", help="Also copy imported drugs to the local mirror")

    export = sub.add_parser("export", help="Write the remote drugs document to a file")
    export.add_argument("out", type=Path)

    backup = sub.add_parser("backup", help="Write a full backup (mirror, pages, ratings) to a file")
    backup.add_argument("out", type=Path)

    sub.add_parser("sync", help="Re-validate the remote drugs document and write it back")

    console = sub.add_parser("command", help="Run an admin console command against the local mirror")
    console.add_argument("name")

    login = sub.add_parser("login", help="Mark this client as an admin session (password is prompted)")
    login.add_argument("email")

    sub.add_parser("logout", help="End the admin session")

    favorite = sub.add_parser("favorite", help="Toggle a favorite drug, or list favorites when no id is given")
    favorite.add_argument("drug_id", nargs="?")

    errors = sub.add_parser("errors", help="Show the recorded error reports")
    errors.add_argument("--clear", action="store_true", help="Delete the recorded reports")

    return parser.parse_args(args)


def setup_logging() -> None:
    """Configure logging based on environment variables."""
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"), file_sink=os.getenv("DRUG_GUIDE_LOG_FILE", "1") != "0")


def _write_json(path: Path, document: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")


def _emit(document: Any) -> None:
    print(json.dumps(document, ensure_ascii=False, indent=2))


def run(parsed: argparse.Namespace) -> bool:
    """
    Execute one subcommand.

    Returns:
        True when the command succeeded.
    """
    store = RemoteStore(base_url=parsed.remote_url)
    storage = LocalStorage(parsed.storage_dir)
    mirror = LocalMirror(storage)

    if parsed.command == "fetch":
        catalog = DrugCatalog(store, ReadCache(storage))
        result = catalog.fetch_drugs_and_shortages(force_refresh=parsed.force)
        if not result.success:
            logger.error(f"Fetch failed: {result.error}")
            return False
        logger.info(
            f"{len(result.drugs)} drugs (from cache: {result.from_cache}), "
            f"{result.critical_shortages} critical shortages, last updated {result.last_updated or '-'}"
        )
        _emit([drug.to_wire() for drug in result.drugs])
        return True

    if parsed.command == "import":
        importer = DataImporter(store, mirror)
        outcome = importer.import_from_file(parsed.file, mode=parsed.mode, backup_to_mirror=parsed.backup_to_mirror)
        _emit(outcome.to_wire())
        return outcome.success

    if parsed.command == "sync":
        outcome = DataImporter(store, mirror).import_from_remote()
        _emit(outcome.to_wire())
        return outcome.success

    if parsed.command == "export":
        document = DataImporter(store).export_to_dict()
        _write_json(parsed.out, document)
        logger.info(f"Exported {document['drugCount']} drugs to {parsed.out}")
        return True

    if parsed.command == "backup":
        backup = build_full_backup(mirror, PageContentService(store), RatingService(store, storage))
        if backup is None:
            return False
        _write_json(parsed.out, backup)
        logger.info(f"Backup written to {parsed.out}")
        return True

    if parsed.command == "command":
        outcome = execute_command(parsed.name, mirror)
        _emit(outcome.model_dump(exclude_none=True))
        return outcome.success

    if parsed.command == "login":
        session = AdminSession(storage)
        if not session.login(parsed.email, getpass.getpass("Password: ")):
            logger.error("Login failed")
            return False
        logger.info("Admin session started")
        return True

    if parsed.command == "logout":
        AdminSession(storage).logout()
        return True

    if parsed.command == "favorite":
        favorites = Favorites(storage)
        if parsed.drug_id:
            state = favorites.toggle(parsed.drug_id)
            logger.info(f"Drug {parsed.drug_id} {'added to' if state else 'removed from'} favorites")
        _emit(favorites.drug_ids())
        return True

    if parsed.command == "errors":
        log = ErrorReportLog(storage)
        if parsed.clear:
            log.clear()
            return True
        _emit(log.entries())
        return True

    raise ValueError(f"Unknown command: {parsed.command}")


def main(args: list[str] | None = None) -> None:
    """Main entry point for the toolkit."""
    setup_logging()
    parsed_args = parse_args(args)

    logger.info(f"Running '{parsed_args.command}' against {parsed_args.remote_url}")

    try:
        ok = run(parsed_args)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        ErrorReportLog(LocalStorage(parsed_args.storage_dir)).record(e, {"command": parsed_args.command})
        sys.exit(1)
    if not ok:
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
