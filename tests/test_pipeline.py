from datetime import timedelta

import pytest

from crm.client.entities import SortOption
from crm.client.pipeline import (
    apply_pipeline,
    filter_recent,
    paginate_customers,
    search_customers,
    sort_customers,
)
from tests.fakes import BASE_TIME, make_customer


@pytest.fixture
def people():
    return [
        make_customer(1, "Zoe Quinn", email="zoe@corp.io"),
        make_customer(2, "adam smith", email="adam@example.com", phone_number="+1 555 123 4567"),
        make_customer(3, "Bea Adams", email="bea@mail.org"),
        make_customer(4, "Carl", email="carl@example.com", address="12 Adamson Road"),
    ]


def test_search_is_case_insensitive_on_name_and_email(people):
    assert [c.id for c in search_customers(people, "ADAM")] == ["c2", "c3"]
    assert [c.id for c in search_customers(people, "example.com")] == ["c2", "c4"]


def test_search_ignores_phone_and_address(people):
    assert search_customers(people, "555") == []
    assert search_customers(people, "Adamson") == []


@pytest.mark.parametrize("term", ["", "   "])
def test_blank_search_returns_everything(people, term):
    assert search_customers(people, term) == people


def test_search_is_idempotent(people):
    once = search_customers(people, "a")
    assert search_customers(once, "a") == once


def test_recent_filter_uses_cutoff():
    now = BASE_TIME + timedelta(days=10)
    old = make_customer(1, minutes=0)
    fresh = make_customer(2, minutes=60 * 24 * 5)
    assert filter_recent([old, fresh], 7, now) == [fresh]


def test_sort_by_name_ignores_accents_and_case():
    names = ["Zoe Adams", "Émile Zola", "Ángel Ruiz", "adam smith", "Bea Adams"]
    customers = [make_customer(i, n) for i, n in enumerate(names, start=1)]
    expected = ["adam smith", "Ángel Ruiz", "Bea Adams", "Émile Zola", "Zoe Adams"]
    assert [c.full_name for c in sort_customers(customers, "name", "asc")] == expected
    assert [c.full_name for c in sort_customers(customers, "name", "desc")] == expected[::-1]


def test_accents_only_break_ties():
    customers = [make_customer(1, "Élan Vital"), make_customer(2, "Elan Vital"), make_customer(3, "elan vital")]
    assert [c.id for c in sort_customers(customers, "name", "asc")] == ["c3", "c2", "c1"]


def test_sort_by_date_desc(people):
    assert [c.id for c in sort_customers(people, "date", "desc")] == ["c4", "c3", "c2", "c1"]


@pytest.mark.parametrize("order", ["asc", "desc"])
def test_sort_is_stable_for_equal_keys(order):
    tied = [make_customer(i, "Same Name", minutes=0) for i in range(1, 6)]
    assert [c.id for c in sort_customers(tied, "name", order)] == ["c1", "c2", "c3", "c4", "c5"]
    assert [c.id for c in sort_customers(tied, "date", order)] == ["c1", "c2", "c3", "c4", "c5"]


def test_sort_rejects_unknown_key(people):
    with pytest.raises(ValueError):
        sort_customers(people, "email", "asc")


def test_pages_concatenate_back_to_the_input():
    items = [make_customer(i) for i in range(1, 24)]
    first = paginate_customers(items, 1, 10)
    assert first.total == 23
    assert first.total_pages == 3
    pages = [paginate_customers(items, p, 10).items for p in range(1, first.total_pages + 1)]
    assert [len(p) for p in pages] == [10, 10, 3]
    assert sum(pages, []) == items


def test_page_flags():
    items = [make_customer(i) for i in range(1, 24)]
    first, middle, last = (paginate_customers(items, p, 10) for p in (1, 2, 3))
    assert (first.has_prev, first.has_next) == (False, True)
    assert (middle.has_prev, middle.has_next) == (True, True)
    assert (last.has_prev, last.has_next) == (True, False)


@pytest.mark.parametrize("page", [0, -1, 4, 99])
def test_out_of_range_page_is_empty(page):
    items = [make_customer(i) for i in range(1, 24)]
    assert paginate_customers(items, page, 10).items == []


def test_empty_collection_has_zero_pages():
    result = paginate_customers([], 1, 10)
    assert result.items == []
    assert result.total_pages == 0
    assert not result.has_next


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        paginate_customers([make_customer(1)], 1, 0)


def test_pipeline_filters_before_paginating(people):
    page = apply_pipeline(people, term="a", sort=SortOption("name", "asc"), page=1, page_size=2)
    # only Zoe Quinn has no "a" in name or email
    assert page.total == 3
    assert [c.full_name for c in page.items] == ["adam smith", "Bea Adams"]


def test_pipeline_default_sort_is_newest_first(people):
    assert [c.id for c in apply_pipeline(people).items] == ["c4", "c3", "c2", "c1"]


def test_alphabetical_filter_forces_name_ascending(people):
    page = apply_pipeline(people, sort=SortOption("date", "desc"), filter_type="alphabetical")
    assert [c.full_name for c in page.items][0] == "adam smith"


def test_recent_filter_in_pipeline():
    now = BASE_TIME + timedelta(days=10)
    items = [make_customer(1, minutes=0), make_customer(2, minutes=60 * 24 * 6)]
    page = apply_pipeline(items, filter_type="recent", recent_days=7, now=now)
    assert [c.id for c in page.items] == ["c2"]
