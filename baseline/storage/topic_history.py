"""Topic history and run log using local JSON files with an optional Google Sheets mirror."""
from __future__ import annotations

import fcntl
import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials

from baseline.core.config import RECENT_TITLES_LIMIT, get_settings
from baseline.core.exceptions import StorageError
from baseline.domain.models import RunRecord, TopicSelection

logger = logging.getLogger(__name__)


class TopicHistoryStore:
    """Previously selected topics (the decision-maker's recency input) and the daily run log."""

    SHEET_NAME = "Topics"
    TOPICS_FILE = "topics.json"
    RUNS_FILE = "runs.json"
    MAX_RUNS = 500

    def __init__(
        self,
        storage_dir: Path,
        sheets_client: gspread.Client | None = None,
        spreadsheet_id: str | None = None,
    ):
        self.storage_dir = storage_dir
        self.storage_dir.mkdir(exist_ok=True, parents=True)
        self.sheets_client = sheets_client
        self.spreadsheet_id = spreadsheet_id

    def _read(self, filename: str) -> list[dict[str, Any]]:
        path = self.storage_dir / filename
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = json.load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def _write(self, filename: str, rows: list[dict[str, Any]]) -> None:
        path = self.storage_dir / filename
        try:
            with open(path, "w") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                json.dump(rows, f, indent=2, default=str)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Could not write {filename}: {e}") from e

    def _get_worksheet(self) -> Optional[gspread.Worksheet]:
        """Get or create the Topics worksheet."""
        if not self.sheets_client or not self.spreadsheet_id:
            return None
        try:
            spreadsheet = self.sheets_client.open_by_key(self.spreadsheet_id)
            try:
                return spreadsheet.worksheet(self.SHEET_NAME)
            except gspread.exceptions.WorksheetNotFound:
                worksheet = spreadsheet.add_worksheet(title=self.SHEET_NAME, rows=1000, cols=4)
                worksheet.update("A1:D1", [["date", "title", "category", "selected_at"]])
                return worksheet
        except Exception as e:
            logger.error(f"Failed to get Topics worksheet: {e}")
            return None

    def _mirror_to_sheets(self, row: dict[str, Any]) -> None:
        worksheet = self._get_worksheet()
        if not worksheet:
            return
        try:
            worksheet.append_row([row["date"], row["title"], row["category"], row["selected_at"]])
            logger.info(f"Mirrored topic for {row['date']} to Google Sheets")
        except Exception as e:
            logger.error(f"Failed to mirror topic for {row['date']} to Sheets: {e}")

    def record_selection(self, date: str, selection: TopicSelection) -> dict[str, Any]:
        """Persist the selected topic for a date, replacing any earlier one for that date."""
        row = {
            "date": date,
            "title": selection.selected_title,
            "category": selection.category,
            "selected_at": datetime.now(timezone.utc).isoformat(),
            "selection": selection.model_dump(),
        }
        topics = [topic for topic in self._read(self.TOPICS_FILE) if topic.get("date") != date]
        topics.append(row)
        self._write(self.TOPICS_FILE, topics)
        logger.info(f"Recorded topic '{selection.selected_title}' for {date}")
        self._mirror_to_sheets(row)
        return row

    def topic_exists_for_date(self, date: str) -> bool:
        return any(topic.get("date") == date for topic in self._read(self.TOPICS_FILE))

    def list_topics(self, limit: int = RECENT_TITLES_LIMIT) -> list[dict[str, Any]]:
        topics = sorted(self._read(self.TOPICS_FILE), key=lambda topic: str(topic.get("date", "")), reverse=True)
        return topics[:limit]

    def recent_titles(self, limit: int = RECENT_TITLES_LIMIT) -> list[str]:
        """Selected titles, most recent date first."""
        return [topic["title"] for topic in self.list_topics(limit) if topic.get("title")]

    def log_run(
        self,
        run_date: str,
        status: str,
        topic_title: str | None = None,
        error_msg: str | None = None,
        duration_ms: int = 0,
    ) -> RunRecord:
        record = RunRecord(
            run_date=run_date,
            status=status,
            topic_title=topic_title,
            error_msg=error_msg,
            duration_ms=duration_ms,
        )
        runs = self._read(self.RUNS_FILE)
        runs.append(record.model_dump(mode="json"))
        self._write(self.RUNS_FILE, runs[-self.MAX_RUNS :])
        return record

    def list_runs(self, limit: int = 50) -> list[RunRecord]:
        """Most recent runs first."""
        records: list[RunRecord] = []
        for row in reversed(self._read(self.RUNS_FILE)):
            try:
                records.append(RunRecord.model_validate(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed run record: {e}")
            if len(records) >= limit:
                break
        return records


@lru_cache(maxsize=1)
def get_topic_history() -> TopicHistoryStore:
    """Get or create the singleton history store, with Sheets mirroring when configured."""
    sheets_client = None
    spreadsheet_id = None
    settings = get_settings()

    if settings.GOOGLE_CREDENTIALS and settings.SHEET_ID:
        try:
            credentials = Credentials.from_service_account_info(
                json.loads(settings.GOOGLE_CREDENTIALS),
                scopes=["https://www.googleapis.com/auth/spreadsheets"],
            )
            sheets_client = gspread.authorize(credentials)
            spreadsheet_id = settings.SHEET_ID
            logger.info("TopicHistoryStore initialised with Google Sheets mirroring")
        except Exception as e:
            logger.error(f"Failed to initialise Google Sheets for TopicHistoryStore: {e}")
    else:
        logger.info("Google credentials or Sheet ID not configured; TopicHistoryStore using local files only")

    return TopicHistoryStore(
        storage_dir=Path(settings.HISTORY_DIR),
        sheets_client=sheets_client,
        spreadsheet_id=spreadsheet_id,
    )
