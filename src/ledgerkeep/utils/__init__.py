"""Input parsing helpers for ledgerkeep."""

from ledgerkeep.utils.date_parser import parse_date, get_date_range
from ledgerkeep.utils.amount_parser import parse_amount, parse_positive_amount
from ledgerkeep.utils.account_resolver import resolve_account

__all__ = ["parse_date", "get_date_range", "parse_amount", "parse_positive_amount", "resolve_account"]
