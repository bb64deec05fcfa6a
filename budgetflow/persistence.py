"""JSON snapshot persistence.

The snapshot is one object with five collections: ``items``, ``goals``,
``settings``, ``accounts`` and ``categories``. Anything malformed is
replaced by a fallback for that collection only and logged; loading never
raises for bad content.
"""
import asyncio
import json
import logging
from concurrent.futures import Executor
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, Union

from budgetflow.constants import DEFAULT_CATEGORIES, INITIAL_ACCOUNTS
from budgetflow.domain import Account, Category, PeriodSettings, SavingsGoal, Snapshot, Transaction
from budgetflow.events import Event
from budgetflow.functional import Either, Left, Right
from budgetflow.periods import current_month, validate_period

logger = logging.getLogger(__name__)

INVALID_BACKUP = "Invalid file format. Please use a valid backup."


def default_snapshot(base_currency: str = "EUR", today: Optional[date] = None) -> Snapshot:
    start, end = current_month(today)
    return Snapshot(
        transactions=(),
        goals=(),
        settings=PeriodSettings(start, end, base_currency),
        accounts=INITIAL_ACCOUNTS,
        categories=DEFAULT_CATEGORIES,
    )


def snapshot_to_dict(snapshot: Snapshot) -> dict:
    return {
        "items": [t.to_dict() for t in snapshot.transactions],
        "goals": [g.to_dict() for g in snapshot.goals],
        "settings": snapshot.settings.to_dict(),
        "accounts": [a.to_dict() for a in snapshot.accounts],
        "categories": [c.to_dict() for c in snapshot.categories],
    }


def _records(raw: Any, parse: Callable[[dict], Any], key: str, fallback: tuple) -> tuple:
    if raw is None:
        return fallback
    if not isinstance(raw, list):
        logger.warning("Data mismatch for %s: expected list, got %s. Reverting to default.", key, type(raw).__name__)
        return fallback

    parsed = []
    for record in raw:
        try:
            parsed.append(parse(record))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping invalid %s record %r: %s", key, record, e)
    return tuple(parsed)


def _settings(raw: Any, fallback: PeriodSettings) -> PeriodSettings:
    if raw is None:
        return fallback
    if not isinstance(raw, dict):
        logger.warning("Data mismatch for settings: expected object, got %s. Reverting to default.", type(raw).__name__)
        return fallback
    start = str(raw.get("startDate") or fallback.start_date)
    end = str(raw.get("endDate") or fallback.end_date)
    period = validate_period(start, end)
    if period.is_left():
        logger.warning("Invalid saved period %r..%r (%s). Reverting to default.", start, end, period.get_error())
        start, end = fallback.start_date, fallback.end_date
    return PeriodSettings(
        start_date=start,
        end_date=end,
        base_currency=str(raw.get("baseCurrency") or fallback.base_currency),
    )


def snapshot_from_dict(data: Any, fallback: Snapshot) -> Snapshot:
    if not isinstance(data, dict):
        logger.warning("Snapshot is not an object (%s); using defaults", type(data).__name__)
        return fallback
    return Snapshot(
        transactions=_records(data.get("items"), Transaction.from_dict, "items", fallback.transactions),
        goals=_records(data.get("goals"), SavingsGoal.from_dict, "goals", fallback.goals),
        settings=_settings(data.get("settings"), fallback.settings),
        accounts=_records(data.get("accounts"), Account.from_dict, "accounts", fallback.accounts),
        categories=_records(data.get("categories"), Category.from_dict, "categories", fallback.categories),
    )


def parse_backup(content: Union[str, bytes, dict], current: Snapshot) -> Either[str, Snapshot]:
    """Validate an imported backup; collections it lacks keep their current value."""
    if isinstance(content, (str, bytes)):
        try:
            content = json.loads(content)
        except ValueError:
            return Left("Error reading file. Make sure it is a valid JSON.")
    if not isinstance(content, dict) or not isinstance(content.get("items"), list):
        return Left(INVALID_BACKUP)
    return Right(snapshot_from_dict(content, current))


def backup_filename(today: Optional[date] = None) -> str:
    return f"budgetflow_backup_{(today or date.today()).isoformat()}.json"


def export_json(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2)


class JsonSnapshotStore:
    """Reads and writes the snapshot file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self, fallback: Snapshot) -> Snapshot:
        if not self.path.exists():
            return fallback
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Error parsing %s, using defaults: %s", self.path, e)
            return fallback
        return snapshot_from_dict(data, fallback)

    def save(self, snapshot: Snapshot) -> Path:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(snapshot_to_dict(snapshot), handle, indent=2)
        except OSError as e:
            raise OSError(f"Failed to save snapshot to {self.path}: {e}") from e
        logger.debug("Saved %d items to %s", len(snapshot.transactions), self.path)
        return self.path


async def save_snapshot_async(store: JsonSnapshotStore, snapshot: Snapshot) -> Path:
    """Write on a worker thread so callers never wait on disk I/O."""
    return await asyncio.to_thread(store.save, snapshot)


def _autosave(store: JsonSnapshotStore, snapshot: Snapshot) -> dict:
    try:
        store.save(snapshot)
    except OSError as e:
        logger.warning("Autosave failed: %s", e)
        return {"saved": False, "error": str(e)}
    return {"saved": True}


def autosave_handler(store: JsonSnapshotStore, executor: Optional[Executor] = None):
    """Write every published snapshot.

    With an executor the write is queued and the handler returns at once;
    a single-worker executor keeps the writes in publish order.
    """
    def _handler(event: Event, payload: dict) -> dict:
        snapshot = payload.get("snapshot")
        if snapshot is None:
            return {}
        if executor is None:
            return _autosave(store, snapshot)
        return {"queued": executor.submit(_autosave, store, snapshot)}

    return _handler
