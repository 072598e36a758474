"""
Response persistence.

Every accepted submission is written as its own ``resp_<time>_<session>.json``
file; those files are the system of record. The shared ``responses.xlsx``
is a convenience view that is read, extended by one row and rewritten on
every submission. It is not locked, so concurrent submissions can race on
it (or a spreadsheet viewer can hold it open); a failed append is logged
and otherwise ignored.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from errors import PersistenceError
from logging_setup import log_success, with_context
from questions import TOTAL_QUESTIONS, TRAIT_ORDER
from validation import ResponseRecord

logger = logging.getLogger(__name__)

RECORD_PREFIX = "resp_"
RECORD_SUFFIX = ".json"
SHEET_NAME = "Responses"
DEFAULT_WORKBOOK_NAME = "responses.xlsx"
HEADER_FILL = "FFE74C3C"
HEADER_FONT_COLOR = "FFFFFFFF"
HEADER_HEIGHT = 24


def build_columns(total_questions: int = TOTAL_QUESTIONS) -> List[tuple]:
    """(header, record key, width) in export order."""
    columns = [
        ("Session ID", "sessionId", 20),
        ("Timestamp", "timestamp", 22),
        ("Username", "username", 15),
    ]
    columns += [(f"Q{number}", f"q{number}", 20) for number in range(1, total_questions + 1)]
    columns += [(f"Item {number}", f"item{number}", 16) for number in range(1, total_questions + 1)]
    columns += [
        ("Result Type", "personalityType", 10),
        ("Result Name", "personalityName", 25),
    ]
    columns += [(f"Score {trait.value}", f"score{trait.value}", 10) for trait in TRAIT_ORDER]
    columns += [
        ("Suggestion", "suggestion", 40),
        ("IP Address", "ip", 16),
    ]
    return columns


COLUMNS = build_columns()
HEADERS = [header for header, _, _ in COLUMNS]


def record_to_row(data: Dict[str, Any], total_questions: int = TOTAL_QUESTIONS) -> List[Any]:
    """Flatten one persisted record (dict form) into a worksheet row."""
    answers = data.get("answers") or []
    items = data.get("items") or []
    scores = data.get("personalityScores") or {}

    values: Dict[str, Any] = {
        "sessionId": data.get("sessionId", ""),
        "timestamp": data.get("timestamp", ""),
        "username": data.get("username", ""),
        "personalityType": data.get("personalityType") or "",
        "personalityName": data.get("personalityName") or "",
        "suggestion": data.get("suggestion") or "",
        "ip": data.get("ip") or "",
    }
    for position in range(total_questions):
        values[f"q{position + 1}"] = answers[position] if position < len(answers) else ""
        values[f"item{position + 1}"] = (items[position] if position < len(items) else "") or ""
    for trait in TRAIT_ORDER:
        values[f"score{trait.value}"] = scores.get(trait.value) or 0

    return [values[key] for _, key, _ in build_columns(total_questions)]


def _init_sheet(sheet) -> None:
    sheet.title = SHEET_NAME
    sheet.append(HEADERS)
    for position, (_, _, width) in enumerate(COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(position)].width = width
    for cell in sheet[1]:
        cell.font = Font(bold=True, color=HEADER_FONT_COLOR, size=11)
        cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)
        cell.alignment = Alignment(horizontal="center", vertical="center")
    sheet.row_dimensions[1].height = HEADER_HEIGHT


def new_workbook() -> Workbook:
    workbook = Workbook()
    _init_sheet(workbook.active)
    return workbook


def record_filename(record: ResponseRecord) -> str:
    moment = record.created_at.astimezone(timezone.utc)
    stamp = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    safe_stamp = stamp.replace(":", "-").replace(".", "-")
    return f"{RECORD_PREFIX}{safe_stamp}_{record.session_id}{RECORD_SUFFIX}"


@dataclass
class BackupPolicy:
    enabled: bool = True
    directory: Optional[Path] = None
    max_files: int = 10


class ResponseStore:
    def __init__(
        self,
        directory: Path,
        workbook_name: str = DEFAULT_WORKBOOK_NAME,
        backup: Optional[BackupPolicy] = None,
    ):
        self.directory = Path(directory)
        self.workbook_path = self.directory / workbook_name
        self.backup = backup or BackupPolicy(enabled=False)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_record(self, record: ResponseRecord) -> Path:
        """Primary write. Raises ``PersistenceError``; never overwrites another record."""
        filename = record_filename(record)
        target = self.directory / filename
        temp = self.directory / f".{filename}.tmp"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(temp, "x", encoding="utf-8") as handle:
                json.dump(record.to_dict(), handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            if target.exists():
                raise FileExistsError(f"{filename} already exists")
            os.replace(temp, target)
        except OSError as exc:
            try:
                temp.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning(with_context("Could not remove partial record", file=temp.name))
            logger.error(with_context("Record write failed", file=filename, error=str(exc)))
            raise PersistenceError("Failed to save your response") from exc
        return target

    def append_to_workbook(self, record: ResponseRecord) -> None:
        """Read-modify-rewrite the shared workbook with one extra row."""
        sheet = None
        if self.workbook_path.exists():
            workbook = load_workbook(self.workbook_path)
            if SHEET_NAME in workbook.sheetnames:
                sheet = workbook[SHEET_NAME]
            else:
                sheet = workbook.create_sheet(SHEET_NAME)
                _init_sheet(sheet)
        else:
            workbook = new_workbook()
            sheet = workbook[SHEET_NAME]

        sheet.append(record_to_row(record.to_dict()))
        self.create_backup()
        workbook.save(self.workbook_path)

    def save(self, record: ResponseRecord) -> Path:
        path = self.write_record(record)
        try:
            self.append_to_workbook(record)
        except Exception as exc:
            logger.warning(
                with_context("Workbook unavailable, saved to JSON only", user=record.username, error=str(exc))
            )
        else:
            log_success(logger, "Saved to workbook and JSON", user=record.username, file=path.name)
        return path

    # ------------------------------------------------------------------
    # Backups of the shared workbook
    # ------------------------------------------------------------------

    def create_backup(self) -> Optional[Path]:
        policy = self.backup
        if not policy.enabled or policy.directory is None or not self.workbook_path.exists():
            return None
        try:
            policy.directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
            source = self.workbook_path
            backup_path = policy.directory / f"{source.stem}_{stamp}{source.suffix}"
            shutil.copyfile(source, backup_path)
            logger.info(with_context("Backup created", file=backup_path.name))
        except OSError as exc:
            logger.error(with_context("Backup failed", error=str(exc)))
            return None
        self.clean_old_backups()
        return backup_path

    def clean_old_backups(self) -> None:
        policy = self.backup
        if policy.directory is None or not policy.directory.exists():
            return
        try:
            backups = sorted(
                policy.directory.glob("*.xlsx"),
                key=lambda path: path.stat().st_mtime,
                reverse=True,
            )
            for stale in backups[policy.max_files:]:
                stale.unlink()
                logger.info(with_context("Old backup removed", file=stale.name))
        except OSError as exc:
            logger.error(with_context("Backup cleanup failed", error=str(exc)))

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def response_files(self) -> List[Path]:
        if not self.directory.exists():
            return []
        return sorted(
            path
            for path in self.directory.iterdir()
            if path.name.startswith(RECORD_PREFIX) and path.name.endswith(RECORD_SUFFIX)
        )

    def count(self) -> int:
        return len(self.response_files())

    def load_records(self) -> List[Dict[str, Any]]:
        """Every readable record, oldest first. Corrupt files are skipped."""
        records = []
        for path in self.response_files():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError):
                logger.warning(with_context("Skipped corrupt file", file=path.name))
                continue
            if not isinstance(data, dict):
                logger.warning(with_context("Skipped corrupt file", file=path.name))
                continue
            records.append(data)
        records.sort(key=lambda data: str(data.get("timestamp", "")))
        return records

    def export_workbook(self, records: Optional[List[Dict[str, Any]]] = None) -> BytesIO:
        """Fresh workbook built from the JSON records; the shared workbook is not touched."""
        if records is None:
            records = self.load_records()
        workbook = new_workbook()
        sheet = workbook[SHEET_NAME]
        for data in records:
            sheet.append(record_to_row(data))
        buffer = BytesIO()
        workbook.save(buffer)
        buffer.seek(0)
        return buffer
