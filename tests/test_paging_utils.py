import math

import pytest

from datacore.core.exceptions import ValidationError
from datacore.utils.paging import (
    calculate_offset,
    calculate_total_pages,
    create_cursor_page,
    create_pagination,
    get_pagination_meta,
    validate_pagination,
)


def test_offset_pagination_first_and_last_page():
    first = create_pagination(list(range(10)), 25, page=1, limit=10)
    assert first.pagination.has_next is True
    assert first.pagination.has_prev is False
    assert first.pagination.total_pages == 3

    last = create_pagination(list(range(5)), 25, page=3, limit=10)
    assert last.pagination.has_next is False
    assert last.pagination.has_prev is True


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 25, 100, 101])
@pytest.mark.parametrize("limit", [1, 3, 10])
def test_has_next_matches_remaining_items(total, limit):
    for page in range(1, max(1, math.ceil(total / limit)) + 1):
        meta = get_pagination_meta(page, limit, total)
        assert meta.has_next == (page * limit < total)
        assert meta.has_prev == (page > 1)


def test_pagination_defaults_and_dict_shape():
    result = create_pagination(["a"], 1)
    assert result.pagination.page == 1
    assert result.pagination.limit == 10
    assert result.to_dict() == {
        "data": ["a"],
        "pagination": {"page": 1, "limit": 10, "total": 1, "hasNext": False, "hasPrev": False},
    }


def test_offset_and_total_pages():
    assert calculate_offset(1, 10) == 0
    assert calculate_offset(3, 10) == 20
    assert calculate_total_pages(25, 10) == 3
    assert calculate_total_pages(0, 10) == 0


def test_page_window_flags():
    window = get_pagination_meta(2, 10, 25)
    assert window.offset == 10
    assert not window.is_first_page
    assert not window.is_last_page
    assert get_pagination_meta(3, 10, 25).is_last_page


def test_cursor_page_with_extra_row():
    items = [{"id": f"id-{i}"} for i in range(11)]
    page = create_cursor_page(items, lambda item: item["id"], 10)
    assert len(page.data) == 10
    assert page.next_cursor == "id-9"
    assert page.has_more is True
    assert page.has_prev is False


def test_cursor_page_without_extra_row():
    items = [{"id": f"id-{i}"} for i in range(5)]
    page = create_cursor_page(items, lambda item: item["id"], 10)
    assert len(page.data) == 5
    assert page.next_cursor is None
    assert page.has_more is False


def test_validate_pagination_accepts_defaults_and_bounds():
    validate_pagination()
    validate_pagination(1, 1)
    validate_pagination(5, 100)


def test_validate_pagination_reports_all_issues():
    with pytest.raises(ValidationError) as exc_info:
        validate_pagination(0, 101)
    fields = [issue["field"] for issue in exc_info.value.issues]
    assert fields == ["page", "limit"]
    assert exc_info.value.issues[1]["code"] == "too_big"


def test_validate_pagination_custom_cap():
    with pytest.raises(ValidationError):
        validate_pagination(1, 30, max_limit=25)
    with pytest.raises(ValidationError):
        validate_pagination(1, 0)
