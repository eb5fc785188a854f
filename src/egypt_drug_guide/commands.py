# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Admin console commands over the local mirror."""

import platform
import time
from collections.abc import Callable
from typing import Final

from loguru import logger

from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import CommandResult
from egypt_drug_guide.storage.mirror import LocalMirror
from egypt_drug_guide.utils.dates import localized_date, localized_from_iso, utc_now_iso


def display_site_records(mirror: LocalMirror) -> CommandResult:
    """Summarize the mirror: totals, shortage severity, price movement and freshness."""
    data = mirror.load_data()
    if data is None:
        return CommandResult(success=False, message=Messages.NO_DATA)

    stats = mirror.get_stats()
    drugs = data.drugs
    average = sum(drug.new_price for drug in drugs) / len(drugs) if drugs else 0.0
    changes = [drug.new_price - drug.old_price for drug in drugs]
    today = localized_date()

    last_updated = stats.last_updated if stats else ""
    records = {
        "totalDrugs": len(drugs),
        "totalShortages": len(data.shortages),
        "criticalShortages": sum(1 for s in data.shortages if s.status == "critical"),
        "averagePrice": f"{average:.2f}",
        "priceIncreases": sum(1 for change in changes if change > 0),
        "priceDecreases": sum(1 for change in changes if change < 0),
        "updatedToday": sum(1 for drug in drugs if drug.update_date == today),
        "lastUpdated": localized_from_iso(last_updated) or Messages.NOT_SET,
        "version": (stats.version if stats else "") or Messages.NOT_SET,
    }
    return CommandResult(success=True, message=Messages.RECORDS_OK, data=records)


def export_data(mirror: LocalMirror) -> CommandResult:
    exported = mirror.export_data()
    if exported is None:
        return CommandResult(success=False, message=Messages.NO_EXPORT_DATA)
    return CommandResult(success=True, message=Messages.EXPORT_OK, data=exported)


def clear_data(mirror: LocalMirror) -> CommandResult:
    if mirror.clear_all_data():
        return CommandResult(success=True, message=Messages.CLEAR_OK)
    return CommandResult(success=False, message=Messages.CLEAR_FAILED)


def system_info(mirror: LocalMirror) -> CommandResult:
    stats = mirror.get_stats()
    if stats is None:
        return CommandResult(success=False, message=Messages.NO_INFO)
    return CommandResult(
        success=True,
        message=Messages.INFO_OK,
        data={
            "version": stats.version,
            "lastUpdated": localized_from_iso(stats.last_updated) or Messages.NOT_SET,
            "totalDrugs": stats.total_drugs,
            "totalShortages": stats.total_shortages,
            "securityStatus": Messages.SECURED,
            "cacheStatus": Messages.ACTIVE,
        },
    )


def backup_data(mirror: LocalMirror) -> CommandResult:
    exported = mirror.export_data()
    if exported is None:
        return CommandResult(success=False, message=Messages.NO_BACKUP_DATA)
    backup = {
        **exported,
        "backupDate": utc_now_iso(),
        "backupType": "full",
        "systemInfo": {
            "platform": platform.platform(),
            "timestamp": int(time.time() * 1000),
            "version": exported.get("version"),
        },
    }
    return CommandResult(success=True, message=Messages.BACKUP_OK, data=backup)


COMMANDS: Final[dict[str, Callable[[LocalMirror], CommandResult]]] = {
    "display-records": display_site_records,
    "show-records": display_site_records,
    "records": display_site_records,
    "export": export_data,
    "export-data": export_data,
    "clear": clear_data,
    "clear-data": clear_data,
    "system-info": system_info,
    "info": system_info,
    "backup": backup_data,
    "backup-data": backup_data,
}

AVAILABLE_COMMANDS: Final[str] = "display-records, export, clear, system-info, backup"


def execute_command(command: str, mirror: LocalMirror) -> CommandResult:
    """
    Run a console command by name (case-insensitive, aliases accepted).

    Unknown names return a failed result listing the available commands.
    """
    handler = COMMANDS.get(command.strip().lower())
    if handler is None:
        return CommandResult(
            success=False,
            message=Messages.UNKNOWN_COMMAND.format(command=command, available=AVAILABLE_COMMANDS),
        )
    logger.info(f"Executing console command: {command}")
    return handler(mirror)
