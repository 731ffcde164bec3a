"""Multi-currency transfer reconciliation.

A transfer between accounts of different currencies carries three linked
numbers: the source amount, the exchange rate and the destination amount.
Whichever of them the user touched last is authoritative; the others are
derived from it by ``TransferReconciler.reconcile``.
"""

import enum
import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable, Optional

from ledgerkeep.domain.currency import (
    RATE_DECIMAL_PLACES,
    convert_amount,
    format_amount,
    format_rate,
    to_decimal,
)
from ledgerkeep.domain.entities import TRANSFER

logger = logging.getLogger(__name__)

RATE_TOLERANCE = Decimal(1).scaleb(-RATE_DECIMAL_PLACES)

RateLookup = Callable[[str, str], Optional[str]]


class LastEditedField(enum.Enum):
    NONE = "none"
    AMOUNT = "amount"
    EXCHANGE_RATE = "exchangeRate"
    DESTINATION_AMOUNT = "destinationAmount"


@dataclass(frozen=True)
class TransferDraft:
    """Editable transfer form values.

    Numbers are kept as the strings the user typed; they are parsed only for
    arithmetic and written back already formatted.
    """

    type: str = TRANSFER
    source_currency: Optional[str] = None
    destination_currency: Optional[str] = None
    amount: str = ""
    exchange_rate: str = ""
    destination_amount: str = ""
    last_edited: LastEditedField = LastEditedField.NONE

    @property
    def is_multi_currency(self) -> bool:
        return (
            self.type == TRANSFER
            and bool(self.source_currency)
            and bool(self.destination_currency)
            and self.source_currency != self.destination_currency
        )


class TransferReconciler:
    """Derives the dependent transfer fields from the last edited one.

    Args:
        rate_lookup: Offline rate source, ``(from, to) -> rate string or None``
    """

    def __init__(self, rate_lookup: RateLookup):
        self.rate_lookup = rate_lookup

    def edit(self, draft: TransferDraft, field: LastEditedField, value: str) -> TransferDraft:
        """Record a user edit of one field and reconcile the others."""
        if field is LastEditedField.AMOUNT:
            draft = replace(draft, amount=value, last_edited=field)
        elif field is LastEditedField.EXCHANGE_RATE:
            draft = replace(draft, exchange_rate=value, last_edited=field)
        elif field is LastEditedField.DESTINATION_AMOUNT:
            draft = replace(draft, destination_amount=value, last_edited=field)
        else:
            raise ValueError("Cannot edit the NONE field")
        return self.reconcile(draft)

    def change_accounts(
        self,
        draft: TransferDraft,
        source_currency: Optional[str],
        destination_currency: Optional[str],
    ) -> TransferDraft:
        """Switch the source/destination currencies and reconcile."""
        return self.reconcile(
            replace(draft, source_currency=source_currency, destination_currency=destination_currency)
        )

    def reconcile(self, draft: TransferDraft) -> TransferDraft:
        """Return the draft with dependent fields derived."""
        if not draft.is_multi_currency:
            if draft.exchange_rate or draft.destination_amount or draft.last_edited is not LastEditedField.NONE:
                return replace(draft, exchange_rate="", destination_amount="", last_edited=LastEditedField.NONE)
            return draft

        if not draft.exchange_rate and not self._can_derive_rate(draft):
            rate = self.rate_lookup(draft.source_currency, draft.destination_currency)
            if rate:
                logger.debug(
                    "Populated rate %s for %s->%s", rate, draft.source_currency, draft.destination_currency
                )
                # System edit: derive from the rate without treating it as typed by the user
                draft = replace(draft, exchange_rate=rate, last_edited=LastEditedField.EXCHANGE_RATE)

        return self._derive(draft)

    @staticmethod
    def _can_derive_rate(draft: TransferDraft) -> bool:
        return (
            draft.last_edited is LastEditedField.DESTINATION_AMOUNT
            and bool(draft.amount)
            and bool(draft.destination_amount)
        )

    def _derive(self, draft: TransferDraft) -> TransferDraft:
        if draft.last_edited in (LastEditedField.AMOUNT, LastEditedField.EXCHANGE_RATE):
            if not draft.amount or not draft.exchange_rate:
                return draft
            converted = convert_amount(draft.amount, draft.exchange_rate, draft.destination_currency)
            if converted is not None and converted != draft.destination_amount:
                return replace(draft, destination_amount=converted)
            return draft

        if draft.last_edited is LastEditedField.DESTINATION_AMOUNT:
            source = to_decimal(draft.amount)
            destination = to_decimal(draft.destination_amount)
            if source is None or destination is None or source <= 0:
                return draft
            new_rate = Decimal(format_rate(destination / source))
            current_rate = to_decimal(draft.exchange_rate) or Decimal("0")
            if abs(current_rate - new_rate) > RATE_TOLERANCE:
                return replace(draft, exchange_rate=format_rate(new_rate))
            return draft

        return draft

    def finalize(self, draft: TransferDraft) -> dict[str, Optional[Decimal | str]]:
        """Operation fields for a reconciled draft, formatted per currency."""
        amount = to_decimal(draft.amount)
        fields: dict[str, Optional[Decimal | str]] = {
            "amount": Decimal(format_amount(amount, draft.source_currency)) if amount is not None else None,
            "exchange_rate": None,
            "destination_amount": None,
            "source_currency": None,
            "destination_currency": None,
        }
        if draft.is_multi_currency:
            rate = to_decimal(draft.exchange_rate)
            destination = to_decimal(draft.destination_amount)
            fields["exchange_rate"] = rate
            if destination is not None:
                fields["destination_amount"] = Decimal(format_amount(destination, draft.destination_currency))
            fields["source_currency"] = draft.source_currency
            fields["destination_currency"] = draft.destination_currency
        return fields
