"""
Filtering, sorting and pagination of expense listings
"""
import math
import re
from typing import List, NamedTuple

from sqlalchemy import func, select

from errors import RequestValidationError
from models import Expense

# Public sort keys -> model columns
SORT_FIELDS = {
    "date": Expense.date,
    "amount": Expense.amount,
    "category": Expense.category,
    "paymentMethod": Expense.payment_method,
    "description": Expense.description,
    "createdAt": Expense.created_at,
}

DEFAULT_SORT = "-date"


class ExpensePage(NamedTuple):
    expenses: List[Expense]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self):
        return math.ceil(self.total / self.limit) if self.total else 0

    def to_dict(self):
        return {
            "expenses": [e.to_dict() for e in self.expenses],
            "totalExpenses": self.total,
            "currentPage": self.page,
            "totalPages": self.total_pages,
        }


def build_conditions(owner_id, criteria):
    """WHERE clauses for an ExpenseFilter. The owner clause is always first."""
    conditions = [Expense.user_id == owner_id]
    if criteria.category:
        conditions.append(Expense.category == criteria.category)
    if criteria.payment_method:
        conditions.append(Expense.payment_method == criteria.payment_method)
    if criteria.date_from:
        conditions.append(Expense.date >= criteria.date_from)
    if criteria.date_to:
        conditions.append(Expense.date <= criteria.date_to)
    return conditions


def parse_sort(sort):
    """Turn ``"-date"`` or ``"category -amount"`` into ORDER BY clauses.

    A leading ``-`` means descending, ``+`` or nothing ascending. The id is
    appended as a tie-break in the direction of the first key so page
    boundaries never shift between requests.
    """
    keys = [k for k in re.split(r"[\s,]+", (sort or "").strip()) if k] or [DEFAULT_SORT]
    clauses = []
    first_descending = None
    for key in keys:
        descending = key.startswith("-")
        name = key.lstrip("+-")
        column = SORT_FIELDS.get(name)
        if column is None:
            raise RequestValidationError(
                "Invalid sort field.",
                details=[{"field": "sort", "message": f"cannot sort by '{name}'"}],
            )
        if first_descending is None:
            first_descending = descending
        clauses.append(column.desc() if descending else column.asc())
    clauses.append(Expense.id.desc() if first_descending else Expense.id.asc())
    return clauses


def fetch_page(session, owner_id, query, max_limit=None) -> ExpensePage:
    if max_limit and query.limit > max_limit:
        raise RequestValidationError(
            "Invalid query parameters.",
            details=[{"field": "limit", "message": f"must be at most {max_limit}"}],
        )
    conditions = build_conditions(owner_id, query)
    order_by = parse_sort(query.sort)

    total = session.scalar(select(func.count(Expense.id)).where(*conditions)) or 0
    offset = (query.page - 1) * query.limit
    if offset >= total:
        # Past the last page; huge offsets would also overflow the driver's integer
        return ExpensePage([], total, query.page, query.limit)

    stmt = (
        select(Expense)
        .where(*conditions)
        .order_by(*order_by)
        .offset(offset)
        .limit(min(query.limit, total - offset))
    )
    expenses = list(session.scalars(stmt))
    return ExpensePage(expenses, total, query.page, query.limit)


def fetch_all(session, owner_id, criteria, sort=DEFAULT_SORT):
    """Every matching expense, unpaginated. Used by stats and export."""
    stmt = select(Expense).where(*build_conditions(owner_id, criteria)).order_by(*parse_sort(sort))
    return list(session.scalars(stmt))
