"""Compound operation filter value object."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ledgerkeep.domain.currency import to_decimal
from ledgerkeep.domain.entities import OPERATION_TYPES
from ledgerkeep.domain.errors import ValidationError


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_set(self) -> bool:
        return self.start is not None or self.end is not None


@dataclass(frozen=True)
class AmountRange:
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None

    @property
    def is_set(self) -> bool:
        return self.min is not None or self.max is not None


@dataclass(frozen=True)
class OperationFilter:
    """Filter over the operation log.

    An empty filter matches everything. Each of the six groups (types,
    accounts, categories, search text, date range, amount range) narrows
    the result independently.
    """

    types: frozenset[str] = field(default_factory=frozenset)
    account_ids: frozenset[int] = field(default_factory=frozenset)
    category_ids: frozenset[int] = field(default_factory=frozenset)
    search_text: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    amount_range: AmountRange = field(default_factory=AmountRange)

    def __post_init__(self):
        # Accept any iterable for the set fields
        object.__setattr__(self, "types", frozenset(self.types))
        object.__setattr__(self, "account_ids", frozenset(self.account_ids))
        object.__setattr__(self, "category_ids", frozenset(self.category_ids))
        unknown = self.types - set(OPERATION_TYPES)
        if unknown:
            raise ValidationError(f"Unknown operation type(s): {', '.join(sorted(unknown))}")

    @classmethod
    def empty(cls) -> "OperationFilter":
        return cls()

    @property
    def has_search_text(self) -> bool:
        return bool(self.search_text.strip())

    @property
    def is_active(self) -> bool:
        """True if any field group is populated."""
        return self.active_filter_count > 0

    @property
    def active_filter_count(self) -> int:
        """Number of populated field groups, for badge display."""
        groups = (
            bool(self.types),
            bool(self.account_ids),
            bool(self.category_ids),
            self.has_search_text,
            self.date_range.is_set,
            self.amount_range.is_set,
        )
        return sum(1 for populated in groups if populated)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "types": sorted(self.types),
            "accountIds": sorted(self.account_ids),
            "categoryIds": sorted(self.category_ids),
            "searchText": self.search_text,
            "dateRange": {
                "startDate": self.date_range.start.isoformat() if self.date_range.start else None,
                "endDate": self.date_range.end.isoformat() if self.date_range.end else None,
            },
            "amountRange": {
                "min": str(self.amount_range.min) if self.amount_range.min is not None else None,
                "max": str(self.amount_range.max) if self.amount_range.max is not None else None,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OperationFilter":
        """Build a filter from ``to_dict`` output. Missing keys mean empty."""
        date_range = data.get("dateRange") or {}
        amount_range = data.get("amountRange") or {}
        start = date_range.get("startDate")
        end = date_range.get("endDate")
        return cls(
            types=data.get("types") or (),
            account_ids=(int(a) for a in data.get("accountIds") or ()),
            category_ids=(int(c) for c in data.get("categoryIds") or ()),
            search_text=data.get("searchText") or "",
            date_range=DateRange(
                start=date.fromisoformat(start) if start else None,
                end=date.fromisoformat(end) if end else None,
            ),
            amount_range=AmountRange(
                min=to_decimal(amount_range.get("min")),
                max=to_decimal(amount_range.get("max")),
            ),
        )
