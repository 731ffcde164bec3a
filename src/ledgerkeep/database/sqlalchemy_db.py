"""Generic SQLAlchemy database implementation."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from typing import Any, Iterator, Optional

from sqlalchemy import Float, cast, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ledgerkeep.database.base import Database
from ledgerkeep.database.models import (
    Account,
    Category,
    Operation,
    Preference,
    create_session_factory,
)
from ledgerkeep.database.mappers import (
    account_to_domain,
    apply_operation_fields,
    category_to_domain,
    decimal_to_column,
    operation_to_domain,
)
from ledgerkeep.domain.balance import AccountBook, BalanceReconciler
from ledgerkeep.domain.currency import round_for_currency, to_decimal
from ledgerkeep.domain.entities import (
    PATCHABLE_FIELDS,
    TRANSFER,
    Account as DomainAccount,
    Category as DomainCategory,
    Operation as DomainOperation,
    OperationDraft,
)
from ledgerkeep.domain.errors import (
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    category_not_found,
    duplicate_account_name,
    operation_not_found,
)
from ledgerkeep.domain.filters import OperationFilter
from ledgerkeep.domain.validation import require_valid_operation

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
TRANSFER_ONLY_FIELDS = ("to_account_id", "exchange_rate", "destination_amount", "source_currency", "destination_currency")


class SessionAccountBook(AccountBook):
    """Account balances seen through the session of the current transaction."""

    def __init__(self, session: Session):
        self.session = session

    def adjust_balance(self, account_id: int, delta: Decimal) -> Decimal:
        account = self.session.get(Account, account_id)
        if account is None:
            raise ReferentialIntegrityError(account_not_found(account_id))
        new_balance = round_for_currency(Decimal(account.balance) + delta, account.currency)
        account.balance = str(new_balance)
        return new_balance


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        # Serializes ledger mutations so balance deltas never interleave
        self._write_lock = threading.RLock()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """One unit of work: commit on success, roll back on any error.

        SQLAlchemy failures surface as StorageError; domain errors raised
        inside the block propagate unchanged after the rollback.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except DomainError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database error, transaction rolled back: %s", e)
            raise StorageError(f"Database error: {e}") from e
        finally:
            session.close()

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        self.session_factory.kw["bind"].dispose()

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Account operations
    def create_account(
        self,
        name: str,
        currency: str,
        balance: Decimal = Decimal("0"),
        hidden: bool = False,
        display_order: Optional[int] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        with self._session_scope() as session:
            if session.query(Account).filter(Account.name == name).first() is not None:
                raise ConflictError(duplicate_account_name(name))
            if display_order is None:
                display_order = (session.query(func.max(Account.display_order)).scalar() or 0) + 1
            account = Account(
                name=name,
                currency=currency.upper(),
                balance=str(round_for_currency(balance, currency)),
                hidden=hidden,
                display_order=display_order,
            )
            session.add(account)
            session.flush()
            return account.id

    def get_account(self, account_id: int) -> Optional[DomainAccount]:
        """Get account by ID."""
        with self._session_scope() as session:
            account = session.get(Account, account_id)
            if account is None:
                return None
            return account_to_domain(account)

    def list_accounts(self, include_hidden: bool = True) -> list[DomainAccount]:
        """List accounts ordered by display order, then ID."""
        with self._session_scope() as session:
            query = session.query(Account)
            if not include_hidden:
                query = query.filter(Account.hidden.is_(False))
            accounts = query.order_by(Account.display_order, Account.id).all()
            return [account_to_domain(acc) for acc in accounts]

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        hidden: Optional[bool] = None,
        display_order: Optional[int] = None,
    ) -> None:
        """Update account metadata. Balance is never updated here."""
        with self._session_scope() as session:
            account = session.get(Account, account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))

            if name is not None:
                # Check for duplicate name (excluding current account)
                existing = session.query(Account).filter(Account.name == name, Account.id != account_id).first()
                if existing is not None:
                    raise ConflictError(duplicate_account_name(name))
                account.name = name
            if hidden is not None:
                account.hidden = hidden
            if display_order is not None:
                account.display_order = display_order

    def delete_account(self, account_id: int, reassign_to: Optional[int] = None) -> int:
        """Delete an account, first moving its operations to ``reassign_to`` if given.

        The move and the delete share one transaction. Returns the number of
        operations moved.
        """
        with self._write_lock, self._session_scope() as session:
            account = session.get(Account, account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))

            moved = 0
            if reassign_to is not None:
                moved = self._move_operations(session, account_id, reassign_to)

            operation_count = self._count_account_operations(session, account_id)
            if operation_count > 0:
                raise DependencyError(account_delete_blocked(account_id, operation_count))
            session.delete(account)
            session.flush()
            return moved

    @staticmethod
    def _count_account_operations(session: Session, account_id: int) -> int:
        return (
            session.query(Operation)
            .filter(or_(Operation.account_id == account_id, Operation.to_account_id == account_id))
            .count()
        )

    def get_account_operation_count(self, account_id: int) -> int:
        """Count operations referencing the account as source or destination."""
        with self._session_scope() as session:
            return self._count_account_operations(session, account_id)

    def reassign_operations(self, from_account_id: int, to_account_id: int) -> int:
        """Move every operation leg from one account to another, rebalancing both."""
        with self._write_lock, self._session_scope() as session:
            return self._move_operations(session, from_account_id, to_account_id)

    @staticmethod
    def _move_operations(session: Session, from_account_id: int, to_account_id: int) -> int:
        """Repoint operation legs inside ``session``.

        Transfers between the two accounts would become self-transfers, so
        they block the move. The accounts must share a currency because
        amounts are not converted.
        """
        source = session.get(Account, from_account_id)
        target = session.get(Account, to_account_id)
        if source is None:
            raise NotFoundError(account_not_found(from_account_id))
        if target is None:
            raise NotFoundError(account_not_found(to_account_id))
        if source.currency != target.currency:
            raise ValidationError(
                f"Cannot move operations from {source.currency} account to {target.currency} account"
            )

        rows = (
            session.query(Operation)
            .filter(or_(Operation.account_id == from_account_id, Operation.to_account_id == from_account_id))
            .all()
        )
        reconciler = BalanceReconciler(SessionAccountBook(session))
        for row in rows:
            old = operation_to_domain(row)
            new = old
            if old.account_id == from_account_id:
                new = replace(new, account_id=to_account_id)
            if old.to_account_id == from_account_id:
                new = replace(new, to_account_id=to_account_id)
            if new.is_transfer and new.account_id == new.to_account_id:
                raise DependencyError(
                    f"Operation {old.id} is a transfer between accounts {from_account_id} "
                    f"and {to_account_id}; delete it first"
                )
            apply_operation_fields(row, new)
            reconciler.apply_update(old, new)
        session.flush()

        logger.info("Moved %d operations from account %s to %s", len(rows), from_account_id, to_account_id)
        return len(rows)

    # Category operations
    def create_category(
        self,
        name: str,
        category_type: str,
        parent_id: Optional[int] = None,
        icon: Optional[str] = None,
        is_shadow: bool = False,
    ) -> int:
        """Create a category. Returns category ID."""
        with self._session_scope() as session:
            category = Category(
                name=name,
                category_type=category_type,
                parent_id=parent_id,
                icon=icon,
                is_shadow=is_shadow,
            )
            session.add(category)
            session.flush()
            return category.id

    def get_category(self, category_id: int) -> Optional[DomainCategory]:
        """Get category by ID."""
        with self._session_scope() as session:
            cat = session.get(Category, category_id)
            if cat is None:
                return None
            return category_to_domain(cat)

    def get_category_by_path(self, path: str) -> Optional[DomainCategory]:
        """Get category by path (e.g., 'Food & Dining > Groceries')."""
        parts = [p.strip() for p in path.split(">")]
        with self._session_scope() as session:
            cat = None
            current_parent_id = None
            for part in parts:
                query = session.query(Category).filter(Category.name == part)
                if current_parent_id is None:
                    query = query.filter(Category.parent_id.is_(None))
                else:
                    query = query.filter(Category.parent_id == current_parent_id)

                cat = query.first()
                if cat is None:
                    return None
                current_parent_id = cat.id

            if cat is None:
                return None
            return category_to_domain(cat)

    def list_categories(self, parent_id: Optional[int] = None, all_levels: bool = False) -> list[DomainCategory]:
        """List categories under a parent (roots when None), or every category."""
        with self._session_scope() as session:
            query = session.query(Category)
            if not all_levels:
                if parent_id is None:
                    query = query.filter(Category.parent_id.is_(None))
                else:
                    query = query.filter(Category.parent_id == parent_id)
            categories = query.order_by(Category.name, Category.id).all()
            return [category_to_domain(cat) for cat in categories]

    def get_shadow_category(self, category_type: str) -> Optional[DomainCategory]:
        """Get the system shadow category used for balance adjustments."""
        with self._session_scope() as session:
            cat = (
                session.query(Category)
                .filter(Category.is_shadow.is_(True), Category.category_type == category_type)
                .order_by(Category.id)
                .first()
            )
            if cat is None:
                return None
            return category_to_domain(cat)

    @staticmethod
    def _get_all_descendant_ids(session: Session, category_ids: set[int]) -> set[int]:
        """Get all descendant category IDs (including the categories themselves)."""
        result = set(category_ids)
        frontier = set(category_ids)
        while frontier:
            children = session.query(Category.id).filter(Category.parent_id.in_(frontier)).all()
            frontier = {child_id for (child_id,) in children} - result
            result |= frontier
        return result

    # Operation operations
    @staticmethod
    def _require_references(session: Session, operation: DomainOperation | OperationDraft) -> tuple[Account, Optional[Account]]:
        """Load the accounts an operation points at and check its category exists."""
        source = session.get(Account, operation.account_id)
        if source is None:
            raise ReferentialIntegrityError(account_not_found(operation.account_id))

        destination = None
        if operation.type == TRANSFER and operation.to_account_id is not None:
            destination = session.get(Account, operation.to_account_id)
            if destination is None:
                raise ReferentialIntegrityError(account_not_found(operation.to_account_id))

        if operation.category_id is not None and session.get(Category, operation.category_id) is None:
            raise ReferentialIntegrityError(category_not_found(operation.category_id))
        return source, destination

    @staticmethod
    def _normalize_amounts(
        operation: DomainOperation | OperationDraft, source: Account, destination: Optional[Account]
    ) -> dict[str, Any]:
        """Round amounts per account currency and fill transfer currency metadata."""
        fields: dict[str, Any] = {"amount": round_for_currency(to_decimal(operation.amount), source.currency)}
        if operation.type != TRANSFER:
            for name in TRANSFER_ONLY_FIELDS:
                fields[name] = None
            return fields

        if destination is not None and destination.currency != source.currency:
            if operation.destination_amount is None:
                raise ValidationError("Destination amount is required for multi-currency transfers")
            fields["destination_amount"] = round_for_currency(
                to_decimal(operation.destination_amount), destination.currency
            )
            fields["source_currency"] = source.currency
            fields["destination_currency"] = destination.currency
        else:
            # Same-currency transfer: the destination receives the source amount
            fields["exchange_rate"] = None
            fields["destination_amount"] = None
            fields["source_currency"] = None
            fields["destination_currency"] = None
        return fields

    def create_operation(self, draft: OperationDraft) -> DomainOperation:
        """Persist a new operation and apply its balance effect atomically."""
        require_valid_operation(draft)
        with self._write_lock, self._session_scope() as session:
            source, destination = self._require_references(session, draft)
            draft = replace(draft, **self._normalize_amounts(draft, source, destination))

            row = Operation()
            apply_operation_fields(row, draft)
            session.add(row)
            session.flush()

            operation = operation_to_domain(row)
            BalanceReconciler(SessionAccountBook(session)).apply_create(operation)
            logger.info("Created %s operation %s on account %s", operation.type, operation.id, operation.account_id)
            return operation

    def get_operation(self, operation_id: int) -> Optional[DomainOperation]:
        """Get operation by ID."""
        with self._session_scope() as session:
            row = session.get(Operation, operation_id)
            if row is None:
                return None
            return operation_to_domain(row)

    @staticmethod
    def _coerce_patch(patch: dict[str, Any]) -> dict[str, Any]:
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown operation field(s): {', '.join(sorted(unknown))}")

        coerced = dict(patch)
        for name in ("amount", "exchange_rate", "destination_amount"):
            if name in coerced and coerced[name] is not None:
                value = to_decimal(coerced[name])
                if value is None:
                    raise ValidationError(f"Invalid {name.replace('_', ' ')}: '{coerced[name]}'")
                coerced[name] = value
        if isinstance(coerced.get("date"), str):
            try:
                coerced["date"] = date.fromisoformat(coerced["date"])
            except ValueError as e:
                raise ValidationError(f"Invalid date: {e}") from e
        return coerced

    def update_operation(self, operation_id: int, patch: dict[str, Any]) -> DomainOperation:
        """Update an operation, reversing the old balance effect and applying the new."""
        patch = self._coerce_patch(patch)
        with self._write_lock, self._session_scope() as session:
            row = session.get(Operation, operation_id)
            if row is None:
                raise NotFoundError(operation_not_found(operation_id))

            old = operation_to_domain(row)
            if not patch:
                return old

            new = replace(old, **patch)
            require_valid_operation(new)
            source, destination = self._require_references(session, new)
            new = replace(new, **self._normalize_amounts(new, source, destination))

            apply_operation_fields(row, new)
            BalanceReconciler(SessionAccountBook(session)).apply_update(old, new)
            logger.info("Updated operation %s (%s)", operation_id, ", ".join(sorted(patch)))
            return new

    def delete_operation(self, operation_id: int) -> DomainOperation:
        """Delete an operation and reverse its balance effect. Returns the deleted row."""
        with self._write_lock, self._session_scope() as session:
            row = session.get(Operation, operation_id)
            if row is None:
                raise NotFoundError(operation_not_found(operation_id))

            operation = operation_to_domain(row)
            session.delete(row)
            BalanceReconciler(SessionAccountBook(session)).apply_delete(operation)
            logger.info("Deleted operation %s", operation_id)
            return operation

    def _apply_filter(self, session: Session, query: Query, operation_filter: Optional[OperationFilter]) -> Query:
        """Narrow an operations query by every populated filter group."""
        if operation_filter is None or not operation_filter.is_active:
            return query

        if operation_filter.types:
            query = query.filter(Operation.type.in_(operation_filter.types))
        if operation_filter.account_ids:
            query = query.filter(
                or_(
                    Operation.account_id.in_(operation_filter.account_ids),
                    Operation.to_account_id.in_(operation_filter.account_ids),
                )
            )
        if operation_filter.category_ids:
            category_ids = self._get_all_descendant_ids(session, set(operation_filter.category_ids))
            query = query.filter(Operation.category_id.in_(category_ids))
        if operation_filter.has_search_text:
            text = operation_filter.search_text.strip().lower()
            matching_categories = select(Category.id).where(func.lower(Category.name).contains(text, autoescape=True))
            query = query.filter(
                or_(
                    func.lower(Operation.description).contains(text, autoescape=True),
                    Operation.category_id.in_(matching_categories),
                )
            )
        if operation_filter.date_range.start is not None:
            query = query.filter(Operation.date >= operation_filter.date_range.start)
        if operation_filter.date_range.end is not None:
            query = query.filter(Operation.date <= operation_filter.date_range.end)
        if operation_filter.amount_range.min is not None:
            query = query.filter(cast(Operation.amount, Float) >= float(operation_filter.amount_range.min))
        if operation_filter.amount_range.max is not None:
            query = query.filter(cast(Operation.amount, Float) <= float(operation_filter.amount_range.max))
        return query

    def get_operations_by_date_range(
        self, start_date: date, end_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[DomainOperation]:
        """Operations with start_date <= date <= end_date, newest first."""
        with self._session_scope() as session:
            query = session.query(Operation).filter(Operation.date >= start_date, Operation.date <= end_date)
            query = self._apply_filter(session, query, operation_filter)
            rows = query.order_by(Operation.date.desc(), Operation.id.desc()).all()
            return [operation_to_domain(row) for row in rows]

    def get_operations_by_week_offset(
        self, week_offset: int, operation_filter: Optional[OperationFilter] = None, today: Optional[date] = None
    ) -> list[DomainOperation]:
        """Operations in the 7-day window ending ``7 * week_offset`` days before today."""
        if today is None:
            today = date.today()
        end_date = today - timedelta(days=WEEK_DAYS * week_offset)
        start_date = end_date - timedelta(days=WEEK_DAYS - 1)
        return self.get_operations_by_date_range(start_date, end_date, operation_filter)

    def get_operations_by_week_from_date(
        self, from_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[DomainOperation]:
        """Operations in the 7-day window ending at ``from_date`` (paging older)."""
        start_date = from_date - timedelta(days=WEEK_DAYS - 1)
        return self.get_operations_by_date_range(start_date, from_date, operation_filter)

    def get_operations_by_week_to_date(
        self, to_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[DomainOperation]:
        """Operations in the 7-day window starting at ``to_date`` (paging newer)."""
        end_date = to_date + timedelta(days=WEEK_DAYS - 1)
        return self.get_operations_by_date_range(to_date, end_date, operation_filter)

    def get_next_oldest_operation(
        self, before_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> Optional[DomainOperation]:
        """Most recent operation dated strictly before ``before_date``."""
        with self._session_scope() as session:
            query = session.query(Operation).filter(Operation.date < before_date)
            query = self._apply_filter(session, query, operation_filter)
            row = query.order_by(Operation.date.desc(), Operation.id.desc()).first()
            return operation_to_domain(row) if row is not None else None

    def get_next_newest_operation(
        self, after_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> Optional[DomainOperation]:
        """Oldest operation dated strictly after ``after_date``."""
        with self._session_scope() as session:
            query = session.query(Operation).filter(Operation.date > after_date)
            query = self._apply_filter(session, query, operation_filter)
            row = query.order_by(Operation.date.asc(), Operation.id.asc()).first()
            return operation_to_domain(row) if row is not None else None

    # Preference operations
    def get_preference(self, key: str) -> Optional[str]:
        """Get a stored preference value."""
        with self._session_scope() as session:
            pref = session.get(Preference, key)
            return pref.value if pref is not None else None

    def set_preference(self, key: str, value: Optional[str]) -> None:
        """Store a preference value."""
        with self._session_scope() as session:
            pref = session.get(Preference, key)
            if pref is None:
                session.add(Preference(key=key, value=value, updated_at=datetime.now(UTC)))
            else:
                pref.value = value
