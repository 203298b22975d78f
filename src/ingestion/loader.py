"""Locate and read daily report files from the log directory."""

from __future__ import annotations

import logging
import re
from datetime import date as date_type
from pathlib import Path

from src.ingestion.models import RawReport
from src.ingestion.parsers import parse_report

logger = logging.getLogger(__name__)

_REPORT_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")


def load_report(path: str | Path) -> RawReport | None:
    """Read and parse one report file.

    Returns ``None`` (after logging) when the file cannot be read, so a
    multi-day batch can carry on without it.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.exception("Failed to read report %s", path)
        return None

    return parse_report(content, path.stem)


def load_reports(paths: list[Path]) -> list[RawReport]:
    """Load reports in order, skipping any that fail to read."""
    reports: list[RawReport] = []
    for path in paths:
        report = load_report(path)
        if report is None:
            continue
        logger.info("Parsed %s: %d rooms", report.date, len(report.rooms))
        reports.append(report)
    return reports


def list_report_files(log_dir: str | Path) -> list[Path]:
    """Return all ``YYYY-MM-DD.md`` files in *log_dir*, oldest first."""
    log_dir = Path(log_dir)
    try:
        files = [p for p in log_dir.iterdir() if p.is_file() and _REPORT_NAME_RE.match(p.name)]
    except OSError:
        logger.exception("Failed to list report directory %s", log_dir)
        return []
    return sorted(files)


def report_file_for_date(log_dir: str | Path, date: str) -> Path:
    return Path(log_dir) / f"{date}.md"


def select_report_files(
    log_dir: str | Path,
    *,
    all_files: bool = False,
    date: str | None = None,
    today: date_type | None = None,
) -> list[Path]:
    """Choose which reports to process.

    Args:
        log_dir: Directory holding the daily reports.
        all_files: Process every report.
        date: Process only this ``YYYY-MM-DD`` report (if it exists).
        today: Override for the current date.  Defaults to ``date.today()``.

    Returns:
        Report paths.  Without *all_files* or *date*, today's report, or the
        most recent one when today's is missing.
    """
    if all_files:
        return list_report_files(log_dir)

    if date:
        path = report_file_for_date(log_dir, date)
        return [path] if path.exists() else []

    today = today or date_type.today()
    todays = report_file_for_date(log_dir, today.isoformat())
    if todays.exists():
        return [todays]

    available = list_report_files(log_dir)
    return available[-1:]
