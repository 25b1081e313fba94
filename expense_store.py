"""
Record store for users and expenses

Every expense operation takes the owner's id and filters on it, so one user
can never see or touch another user's rows.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

import expense_query
from errors import ConflictError, NotFoundError, RequestValidationError
from models import Expense, User, ROLE_USER

logger = logging.getLogger(__name__)

EXPENSE_FIELDS = ("amount", "description", "category", "payment_method", "date")
# Expense ids are 32-bit INTEGER columns on PostgreSQL
MAX_ID = 2 ** 31 - 1


def parse_expense_id(value) -> int:
    """Validate a caller-supplied expense id before it reaches a query."""
    if isinstance(value, bool):
        raise RequestValidationError("Invalid expense ID.")
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit():
            value = int(value)
    if isinstance(value, int) and 0 < value <= MAX_ID:
        return value
    raise RequestValidationError("Invalid expense ID.")


def parse_expense_ids(values: Iterable) -> List[int]:
    """All-or-nothing: one malformed id rejects the whole list."""
    values = list(values)
    if not values:
        raise RequestValidationError("Invalid or missing expense IDs.")
    try:
        return [parse_expense_id(v) for v in values]
    except RequestValidationError:
        raise RequestValidationError("Invalid or missing expense IDs.") from None


class ExpenseStore:
    def __init__(self, db):
        self.db = db

    # ---------------- Users ----------------

    def create_user(self, username, email, password_hash, role=ROLE_USER) -> User:
        if self.find_user_by_email(email):
            raise ConflictError()
        user = User(username=username, email=email, password=password_hash, role=role)
        try:
            with self.db.session() as session:
                session.add(user)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            raise ConflictError() from None
        return user

    def find_user_by_email(self, email) -> Optional[User]:
        with self.db.session() as session:
            return session.scalar(select(User).where(User.email == email))

    def get_user(self, user_id) -> Optional[User]:
        with self.db.session() as session:
            return session.get(User, user_id)

    # ---------------- Expenses ----------------

    def add_expense(self, owner_id, fields: Dict) -> Expense:
        missing = [name for name in EXPENSE_FIELDS if fields.get(name) in (None, "")]
        if missing:
            raise RequestValidationError("All fields are required.")
        expense = Expense(user_id=owner_id, **{name: fields[name] for name in EXPENSE_FIELDS})
        with self.db.session() as session:
            session.add(expense)
        return expense

    def insert_many(self, owner_id, records: List[Dict]) -> int:
        """Insert a batch in one transaction; any failure rolls all of it back."""
        with self.db.session() as session:
            session.add_all(
                Expense(user_id=owner_id, **{name: r[name] for name in EXPENSE_FIELDS})
                for r in records
            )
        return len(records)

    def get_expense(self, owner_id, expense_id) -> Expense:
        expense_id = parse_expense_id(expense_id)
        with self.db.session() as session:
            expense = session.scalar(
                select(Expense).where(Expense.id == expense_id, Expense.user_id == owner_id)
            )
        if expense is None:
            raise NotFoundError("Expense not found.")
        return expense

    def update_expense(self, owner_id, expense_id, changes: Dict) -> Expense:
        expense_id = parse_expense_id(expense_id)
        unknown = set(changes) - set(EXPENSE_FIELDS)
        if unknown:
            raise RequestValidationError(f"Cannot update: {', '.join(sorted(unknown))}")
        if not changes:
            raise RequestValidationError("Nothing to update.")
        with self.db.session() as session:
            # Wrong owner and missing id look the same from outside
            expense = session.scalar(
                select(Expense).where(Expense.id == expense_id, Expense.user_id == owner_id)
            )
            if expense is None:
                raise NotFoundError("Expense not found.")
            for name, value in changes.items():
                setattr(expense, name, value)
        return expense

    def delete_expenses(self, owner_id, expense_ids: Iterable) -> int:
        ids = parse_expense_ids(expense_ids)
        with self.db.session() as session:
            result = session.execute(
                delete(Expense)
                .where(Expense.id.in_(ids), Expense.user_id == owner_id)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount
        if not deleted:
            raise NotFoundError("No expenses found with the provided IDs.")
        logger.info("Deleted %d expense(s) for user %s", deleted, owner_id)
        return deleted

    def list_expenses(self, owner_id, query, max_limit=None):
        with self.db.session() as session:
            return expense_query.fetch_page(session, owner_id, query, max_limit=max_limit)

    def all_expenses(self, owner_id, criteria):
        with self.db.session() as session:
            return expense_query.fetch_all(session, owner_id, criteria)
