from __future__ import annotations

from datetime import UTC, datetime

import pytest

from asset_import.models.error_record import ErrorCategory, RejectionEntry, RejectionSource
from asset_import.models.processing_result import success_rate
from asset_import.models.row_data import AcceptedRecord
from asset_import.services.summary import (
    rejection_breakdown,
    render_summary_fields,
    render_summary_line,
    summarize,
    to_view_model,
)


def _accepted(*rows: int) -> list[AcceptedRecord]:
    return [AcceptedRecord(row_number=r, data={"category": f"C{r}"}, id=r * 10) for r in rows]


def _rejected(row: int, category: ErrorCategory = ErrorCategory.MISSING_REQUIRED) -> RejectionEntry:
    return RejectionEntry(row_number=row, data={}, error="nope", category=category)


@pytest.mark.parametrize("total", [0, 1, 7, 13])
def test_counts_always_add_up(total: int):
    for added in range(total + 1):
        accepted = _accepted(*range(2, 2 + added))
        rejected = [_rejected(r) for r in range(2 + added, 2 + total)]
        s = summarize(accepted, rejected).summary
        assert s.total == total
        assert s.added + s.rejected == s.total
        assert s.success_rate == (0 if total == 0 else int(100 * added / total + 0.5))


@pytest.mark.parametrize(
    "added,total,expected",
    [(0, 0, 0), (0, 5, 0), (5, 5, 100), (2, 3, 67), (1, 3, 33), (1, 8, 13), (1, 200, 1)],
)
def test_success_rate(added: int, total: int, expected: int):
    assert success_rate(added, total) == expected


def test_duplicate_row_numbers_rejected():
    with pytest.raises(ValueError, match="row 3 reported twice"):
        summarize(_accepted(2, 3), [_rejected(3)])


def test_result_is_sorted_and_carries_metadata():
    created = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)
    result = summarize(
        _accepted(5, 2),
        [_rejected(4), _rejected(3)],
        kind="categories",
        source_file="cats.xlsx",
        skipped_rows=2,
        created_at=created,
    )
    assert [a.row_number for a in result.added] == [2, 5]
    assert [r.row_number for r in result.rejected] == [3, 4]
    assert result.kind == "categories"
    assert result.source_file == "cats.xlsx"
    assert result.skipped_rows == 2
    assert result.created_at == created


def test_breakdown_in_taxonomy_order():
    result = summarize(
        [],
        [
            _rejected(2, ErrorCategory.SERVER_ERROR),
            _rejected(3, ErrorCategory.DUPLICATE_IN_BATCH),
            _rejected(4, ErrorCategory.SERVER_ERROR),
            _rejected(5, ErrorCategory.MISSING_REQUIRED),
        ],
    )
    assert list(rejection_breakdown(result).items()) == [
        (ErrorCategory.MISSING_REQUIRED, 1),
        (ErrorCategory.DUPLICATE_IN_BATCH, 1),
        (ErrorCategory.SERVER_ERROR, 2),
    ]


def test_render_summary_line():
    result = summarize(_accepted(2, 3), [_rejected(4, ErrorCategory.ALREADY_EXISTS)])
    assert render_summary_line(result) == "SUMMARY total=3 added=2 rejected=1 success_rate=67% AlreadyExists=1"


def test_render_summary_line_empty_import():
    assert render_summary_line(summarize([], [])) == "SUMMARY total=0 added=0 rejected=0 success_rate=0%"


def test_summary_fields_carry_no_label():
    result = summarize(_accepted(2), [_rejected(3, ErrorCategory.SERVER_ERROR)])
    assert render_summary_fields(result) == "total=2 added=1 rejected=1 success_rate=50% ServerError=1"
    assert render_summary_line(result) == f"SUMMARY {render_summary_fields(result)}"


def test_view_model():
    entry = RejectionEntry(
        row_number=3,
        data={"category": "X"},
        error="Category already exists",
        category=ErrorCategory.ALREADY_EXISTS,
        source=RejectionSource.REMOTE,
    )
    vm = to_view_model(summarize(_accepted(2), [entry], kind="categories"))
    assert vm["summary"] == {"total": 2, "added": 1, "rejected": 1, "success_rate": 50}
    assert vm["breakdown"] == {"AlreadyExists": 1}
    assert vm["added"] == [{"row_number": 2, "id": 20, "data": {"category": "C2"}}]
    assert vm["rejected"][0]["message"] == "⚠️ Category already exists"
    assert vm["rejected"][0]["source"] == "remote"
