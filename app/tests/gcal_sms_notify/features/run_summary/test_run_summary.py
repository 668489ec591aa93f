"""実行サマリ集計のテスト。"""

from __future__ import annotations

import pytest

from gcal_sms_notify.core.models import QuotaState
from gcal_sms_notify.features.run_summary.usecase_run_summary import NO_EVENTS_LINE, RunSummary


def _quota(admitted: int) -> QuotaState:
    return QuotaState(month="2024-05", baseline=0, admitted_this_run=admitted, ceiling=100)


def test_lines_keep_order_and_end_with_tally() -> None:
    summary = RunSummary(title="Summary for Wed, May 1st")
    summary.add("SMS sent to +15551234567: hi")
    summary.add("Non-notification event: Lunch")

    summary.close(_quota(1), period_label="May 2024")

    assert summary.lines == [
        "SMS sent to +15551234567: hi",
        "Non-notification event: Lunch",
        "1 of 100 SMS sent for May 2024",
    ]
    assert summary.closed


def test_no_events_line() -> None:
    summary = RunSummary(title="t")
    summary.add_no_events()
    summary.close(_quota(0), period_label="May 2024")

    assert summary.lines == [NO_EVENTS_LINE, "0 of 100 SMS sent for May 2024"]


def test_cannot_append_after_close() -> None:
    summary = RunSummary(title="t")
    summary.close(_quota(0), period_label="May 2024")

    with pytest.raises(RuntimeError):
        summary.add("late")


def test_render_html_escapes_items() -> None:
    summary = RunSummary(title="Summary for Wed, May 1st")
    summary.add("Non-notification event: <b>R&D</b>")

    assert summary.render_html() == (
        "<h1>Summary for Wed, May 1st</h1>"
        "<ul><li>Non-notification event: &lt;b&gt;R&amp;D&lt;/b&gt;</li></ul>"
    )
