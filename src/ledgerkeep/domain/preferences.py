"""Session preferences persisted in the store's key-value table."""

import json
import logging
from typing import Optional

from ledgerkeep.database.base import Database
from ledgerkeep.domain.filters import OperationFilter

logger = logging.getLogger(__name__)

FILTERS_PREFERENCE_KEY = "operations_active_filters"
LAST_ACCOUNT_PREFERENCE_KEY = "last_accessed_account_id"


class FilterPreferences:
    """Remembers the active operation filter across restarts."""

    def __init__(self, db: Database, key: str = FILTERS_PREFERENCE_KEY):
        self.db = db
        self.key = key

    def load(self) -> OperationFilter:
        """Return the stored filter, or the empty filter if none or unreadable."""
        raw = self.db.get_preference(self.key)
        if raw is None:
            return OperationFilter.empty()
        try:
            return OperationFilter.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable stored filter: %s", e)
            return OperationFilter.empty()

    def save(self, operation_filter: OperationFilter) -> None:
        self.db.set_preference(self.key, json.dumps(operation_filter.to_dict()))


def get_last_accessed_account(db: Database) -> Optional[int]:
    raw = db.get_preference(LAST_ACCOUNT_PREFERENCE_KEY)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def set_last_accessed_account(db: Database, account_id: int) -> None:
    db.set_preference(LAST_ACCOUNT_PREFERENCE_KEY, str(account_id))
