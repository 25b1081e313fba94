# Tests for filtering, sorting and pagination of expense listings

from datetime import date, timedelta
from decimal import Decimal

import pytest

from errors import RequestValidationError
from expense_query import parse_sort
from schemas import ExpenseFilter, ExpenseQuery

START = date(2024, 1, 1)


@pytest.fixture
def owner(store):
    return store.create_user("alice", "a@x.com", "hash").id


@pytest.fixture
def seeded(store, owner):
    """23 expenses, one per day, alternating categories and payment methods"""
    records = [
        {
            "amount": Decimal(10 + i),
            "description": f"item {i}",
            "category": "food" if i % 2 == 0 else "travel",
            "payment_method": "cash" if i % 3 == 0 else "credit",
            "date": START + timedelta(days=i),
        }
        for i in range(23)
    ]
    store.insert_many(owner, records)
    return records


def query(**kwargs):
    return ExpenseQuery.model_validate(kwargs)


def test_default_sort_is_newest_first(store, owner, seeded):
    page = store.list_expenses(owner, query())
    dates = [e.date for e in page.expenses]
    assert dates == sorted(dates, reverse=True)
    assert len(page.expenses) == 10
    assert page.total == 23
    assert page.total_pages == 3


@pytest.mark.parametrize("limit", [1, 4, 7, 10, 23, 50])
def test_pages_partition_the_matching_set(store, owner, seeded, limit):
    """Test: Walking every page yields each record exactly once"""
    first = store.list_expenses(owner, query(limit=limit))
    seen = []
    for page_no in range(1, first.total_pages + 1):
        page = store.list_expenses(owner, query(limit=limit, page=page_no))
        assert len(page.expenses) <= limit
        seen.extend(e.id for e in page.expenses)
    assert len(seen) == len(set(seen)) == 23


def test_pages_partition_with_duplicate_sort_keys(store, owner, seeded):
    seen = []
    for page_no in range(1, 7):
        page = store.list_expenses(owner, query(sort="category", limit=4, page=page_no))
        seen.extend(e.id for e in page.expenses)
    assert len(seen) == len(set(seen)) == 23


def test_page_past_the_end_is_empty(store, owner, seeded):
    page = store.list_expenses(owner, query(page=99))
    assert page.expenses == []
    assert page.total == 23
    assert page.to_dict()["currentPage"] == 99


def test_offset_beyond_integer_range_is_empty(store, owner, seeded):
    page = store.list_expenses(owner, query(page=10 ** 19, limit=50))
    assert page.expenses == []
    assert page.total == 23


def test_last_partial_page(store, owner, seeded):
    page = store.list_expenses(owner, query(page=3, limit=10))
    assert len(page.expenses) == 3


def test_no_matches_means_zero_pages(store, owner, seeded):
    page = store.list_expenses(owner, query(category="rent"))
    assert page.total == 0
    assert page.total_pages == 0


def test_category_and_payment_filters(store, owner, seeded):
    page = store.list_expenses(owner, query(category="food", paymentMethod="cash", limit=50))
    expected = [r for r in seeded if r["category"] == "food" and r["payment_method"] == "cash"]
    assert page.total == len(expected)
    assert all(e.category == "food" and e.payment_method == "cash" for e in page.expenses)


@pytest.mark.parametrize("date_from,date_to", [
    (date(2024, 1, 5), date(2024, 1, 10)),
    (date(2024, 1, 5), None),
    (None, date(2024, 1, 3)),
    (date(2024, 1, 7), date(2024, 1, 7)),
    (date(2023, 1, 1), date(2023, 12, 31)),
])
def test_date_range_is_inclusive(store, owner, seeded, date_from, date_to):
    q = query(dateFrom=date_from, dateTo=date_to, limit=50)
    page = store.list_expenses(owner, q)

    def wanted(d):
        return (date_from is None or d >= date_from) and (date_to is None or d <= date_to)

    assert sorted(e.date for e in page.expenses) == sorted(r["date"] for r in seeded if wanted(r["date"]))


def test_sort_ascending_by_amount(store, owner, seeded):
    page = store.list_expenses(owner, query(sort="amount", limit=5))
    assert [e.amount for e in page.expenses] == [Decimal(v) for v in range(10, 15)]


def test_multi_key_sort(store, owner, seeded):
    page = store.list_expenses(owner, query(sort="category -date", limit=50))
    keys = [(e.category, e.date) for e in page.expenses]
    food = [k for k in keys if k[0] == "food"]
    assert keys[: len(food)] == food
    assert [d for _, d in food] == sorted((d for _, d in food), reverse=True)


def test_other_owner_never_matches(store, owner, seeded):
    stranger = store.create_user("bob", "b@y.com", "hash").id
    assert store.list_expenses(stranger, query()).total == 0
    assert store.all_expenses(stranger, ExpenseFilter()) == []


def test_parse_sort_rejects_unknown_fields():
    with pytest.raises(RequestValidationError):
        parse_sort("-user_id")


def test_parse_sort_default():
    clauses = parse_sort("")
    assert len(clauses) == 2


def test_limit_cap(store, owner):
    with pytest.raises(RequestValidationError):
        store.list_expenses(owner, query(limit=101), max_limit=100)
