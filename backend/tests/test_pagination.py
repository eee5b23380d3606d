"""Tests for the pagination envelope helpers."""

import pytest

from app.core.pagination import Page, page_count, page_offset, paginated_response


@pytest.mark.parametrize(
    "total, limit, pages",
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (91, 10, 10), (5, 100, 1)],
)
def test_page_count(total, limit, pages):
    assert page_count(total, limit) == pages


def test_page_offset():
    assert page_offset(1, 10) == 0
    assert page_offset(3, 25) == 50


def test_paginated_response_merges_extra_keys():
    body = paginated_response([1, 2], page=2, limit=2, total=5, summary={"x": 1})
    assert body == {
        "success": True,
        "data": [1, 2],
        "pagination": {"page": 2, "limit": 2, "total": 5, "pages": 3},
        "summary": {"x": 1},
    }


def test_page_past_the_end_keeps_totals():
    page = Page(items=[], total=15, page=4, limit=10)
    assert page.pages == 2
    body = page.envelope([])
    assert body["data"] == []
    assert body["pagination"] == {"page": 4, "limit": 10, "total": 15, "pages": 2}
