"""Windowed, bidirectional operation feed.

The feed keeps a contiguous date window of operations in memory, newest
first, and grows it a week at a time in either direction. Whole-window loads
(initial, jump, refresh) are numbered; a result that arrives after a newer
whole-window load has started is dropped.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Callable, Optional

from ledgerkeep.database.base import Database
from ledgerkeep.domain.entities import Operation, OperationDraft
from ledgerkeep.domain.errors import StorageError
from ledgerkeep.domain.events import LedgerEvents
from ledgerkeep.domain.filters import OperationFilter
from ledgerkeep.domain.operation import OperationService
from ledgerkeep.domain.preferences import FilterPreferences

logger = logging.getLogger(__name__)

WEEK_SPAN = timedelta(days=6)


def merge_operations(existing: list[Operation], incoming: list[Operation], prepend: bool = False) -> list[Operation]:
    """Merge a page into the window by ID; rows already in the window win."""
    seen = {op.id for op in existing}
    fresh = [op for op in incoming if op.id not in seen]
    if prepend:
        return fresh + existing
    return existing + fresh


class OperationsFeed:
    """Async read model over the ledger for a scrolling operations list.

    Args:
        db: Database instance
        operations: Service used for mutations (built from ``db`` if omitted)
        events: Event hub handed to the default operation service
        preferences: Store for the active filter (defaults to the
            ``operations_active_filters`` preference)
        today: Callable returning the current date
    """

    def __init__(
        self,
        db: Database,
        operations: Optional[OperationService] = None,
        events: Optional[LedgerEvents] = None,
        preferences: Optional[FilterPreferences] = None,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.service = operations or OperationService(db, events)
        self.preferences = preferences or FilterPreferences(db)
        self._today = today

        self._operations: list[Operation] = []
        self._oldest_loaded_date: Optional[date] = None
        self._newest_loaded_date: Optional[date] = None
        self._has_more_older = True
        self._has_more_newer = False
        self._loading = False
        self._loading_more = False
        self._loading_newer = False
        self._token = 0
        # Token of the whole-window load that owns the loading flag
        self._loading_token: Optional[int] = None
        self._filter = self.preferences.load()

    # Read-only state
    @property
    def operations(self) -> list[Operation]:
        return list(self._operations)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def loading_more(self) -> bool:
        return self._loading_more

    @property
    def loading_newer(self) -> bool:
        return self._loading_newer

    @property
    def has_more_operations(self) -> bool:
        return self._has_more_older

    @property
    def has_newer_operations(self) -> bool:
        return self._has_more_newer

    @property
    def oldest_loaded_date(self) -> Optional[date]:
        return self._oldest_loaded_date

    @property
    def newest_loaded_date(self) -> Optional[date]:
        return self._newest_loaded_date

    @property
    def active_filters(self) -> OperationFilter:
        return self._filter

    @property
    def filters_active(self) -> bool:
        return self._filter.is_active

    @property
    def active_filter_count(self) -> int:
        return self._filter.active_filter_count

    async def _read(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(func, *args)

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _begin_window_load(self) -> int:
        token = self._next_token()
        self._loading = True
        self._loading_token = token
        return token

    def _end_window_load(self, token: int) -> None:
        # Only the most recently started load clears the flag, whichever finishes last
        if self._loading_token == token:
            self._loading = False
            self._loading_token = None

    def _reset_window(self) -> None:
        self._operations = []
        self._oldest_loaded_date = None
        self._newest_loaded_date = None
        self._has_more_older = True
        self._has_more_newer = False

    def _replace_window(self, rows: list[Operation], oldest: date, newest: date) -> None:
        self._operations = list(rows)
        self._oldest_loaded_date = oldest
        self._newest_loaded_date = newest

    # Whole-window loads
    async def load_initial(self, operation_filter: Optional[OperationFilter] = None) -> None:
        """Load the week ending today, or the week of the newest older operation if it is empty."""
        if operation_filter is not None:
            self._filter = operation_filter
        active = self._filter
        token = self._begin_window_load()
        today = self._today()
        try:
            rows = await self._read(self.db.get_operations_by_week_offset, 0, active, today)
            newest = today
            if not rows:
                anchor = await self._read(self.db.get_next_oldest_operation, today, active)
                if anchor is not None:
                    newest = anchor.date
                    rows = await self._read(self.db.get_operations_by_week_from_date, newest, active)
        except StorageError as e:
            logger.warning("Failed to load operations: %s", e)
            return
        finally:
            self._end_window_load(token)

        if token != self._token:
            logger.debug("Discarding stale initial load %d", token)
            return
        self._replace_window(rows, newest - WEEK_SPAN, newest)
        self._has_more_newer = False
        self._has_more_older = True
        logger.debug("Initial load: %d operations in %s..%s", len(rows), self._oldest_loaded_date, newest)

    async def jump_to_date(self, target: date) -> None:
        """Replace the window with everything from ``target`` up to today.

        A target in the future is treated as today.
        """
        today = self._today()
        if target > today:
            logger.debug("Jump target %s is after today; using %s", target, today)
            target = today
        token = self._begin_window_load()
        try:
            rows = await self._read(self.db.get_operations_by_date_range, target, today, self._filter)
        except StorageError as e:
            logger.warning("Failed to jump to %s: %s", target, e)
            return
        finally:
            self._end_window_load(token)

        if token != self._token:
            logger.debug("Discarding stale jump to %s", target)
            return
        self._replace_window(rows, target, today)
        self._has_more_newer = False
        self._has_more_older = True

    async def refresh(self) -> None:
        """Reload the loaded date range, reaching up to today when nothing newer is pending."""
        if self._oldest_loaded_date is None:
            await self.load_initial()
            return

        oldest = self._oldest_loaded_date
        newest = self._newest_loaded_date
        if not self._has_more_newer:
            newest = max(newest, self._today())

        token = self._begin_window_load()
        try:
            rows = await self._read(self.db.get_operations_by_date_range, oldest, newest, self._filter)
        except StorageError as e:
            logger.warning("Failed to refresh operations: %s", e)
            return
        finally:
            self._end_window_load(token)

        if token != self._token:
            logger.debug("Discarding stale refresh")
            return
        self._replace_window(rows, oldest, newest)

    # Extending loads
    async def load_more(self) -> None:
        """Extend the window by the week of the next older operation."""
        if self._loading or self._loading_more or not self._has_more_older:
            return

        token = self._token
        self._loading_more = True
        before = self._oldest_loaded_date or self._today()
        rows: list[Operation] = []
        try:
            anchor = await self._read(self.db.get_next_oldest_operation, before, self._filter)
            if anchor is not None:
                rows = await self._read(self.db.get_operations_by_week_from_date, anchor.date, self._filter)
        except StorageError as e:
            logger.warning("Failed to load older operations: %s", e)
            return
        finally:
            self._loading_more = False

        if token != self._token:
            logger.debug("Discarding older page loaded for a replaced window")
            return
        if anchor is None:
            self._has_more_older = False
            return
        self._operations = merge_operations(self._operations, rows)
        self._oldest_loaded_date = anchor.date - WEEK_SPAN
        if self._newest_loaded_date is None:
            self._newest_loaded_date = anchor.date

    async def load_newer(self) -> None:
        """Extend the window by the week of the next newer operation."""
        if self._loading or self._loading_newer or not self._has_more_newer:
            return

        token = self._token
        self._loading_newer = True
        after = self._newest_loaded_date or self._today()
        rows: list[Operation] = []
        try:
            anchor = await self._read(self.db.get_next_newest_operation, after, self._filter)
            if anchor is not None:
                rows = await self._read(self.db.get_operations_by_week_to_date, anchor.date, self._filter)
        except StorageError as e:
            logger.warning("Failed to load newer operations: %s", e)
            return
        finally:
            self._loading_newer = False

        if token != self._token:
            logger.debug("Discarding newer page loaded for a replaced window")
            return
        if anchor is None:
            self._has_more_newer = False
            return
        self._operations = merge_operations(self._operations, rows, prepend=True)
        self._newest_loaded_date = anchor.date + WEEK_SPAN
        if self._oldest_loaded_date is None:
            self._oldest_loaded_date = anchor.date

    # Mutations
    def validate_operation(self, draft: OperationDraft | Operation) -> Optional[str]:
        """Return the first validation message for an operation, or None if valid."""
        return self.service.validate_operation(draft)

    async def add_operation(self, draft: OperationDraft) -> Operation:
        """Record an operation and bring it into the window."""
        operation = await asyncio.to_thread(self.service.add_operation, draft)
        await self.refresh()
        return operation

    async def update_operation(self, operation_id: int, patch: dict[str, Any]) -> Operation:
        """Update an operation and reload the window around it."""
        operation = await asyncio.to_thread(self.service.update_operation, operation_id, patch)
        await self.refresh()
        return operation

    async def delete_operation(self, operation_id: int) -> Operation:
        """Delete an operation, drop it from the window and reload the window.

        The reload supersedes any load still in flight, so a page read
        before the delete cannot bring the row back.
        """
        operation = await asyncio.to_thread(self.service.delete_operation, operation_id)
        self._operations = [op for op in self._operations if op.id != operation_id]
        await self.refresh()
        return operation

    # Filters
    async def update_filters(self, operation_filter: OperationFilter) -> None:
        """Make ``operation_filter`` the active filter, persist it and reload from today."""
        self._filter = operation_filter
        await asyncio.to_thread(self.preferences.save, operation_filter)
        self._reset_window()
        await self.load_initial(operation_filter)

    async def clear_filters(self) -> None:
        await self.update_filters(OperationFilter.empty())
