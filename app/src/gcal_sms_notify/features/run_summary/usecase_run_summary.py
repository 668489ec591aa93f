"""1回の実行で起きたことを行単位で集め、サマリメール本文を組み立てる。"""

from __future__ import annotations

from html import escape

from gcal_sms_notify.core.models import QuotaState

NO_EVENTS_LINE = "No upcoming events for today"


class RunSummary:
    """イベント順の結果行と最終集計行を保持する。`close()` 以降は追記できない。"""

    def __init__(self, *, title: str) -> None:
        self.title = title
        self._lines: list[str] = []
        self._closed = False

    def add(self, line: str) -> None:
        if self._closed:
            raise RuntimeError("RunSummary は既に確定済みです。")
        self._lines.append(line)

    def extend(self, lines: list[str]) -> None:
        for line in lines:
            self.add(line)

    def add_no_events(self) -> None:
        self.add(NO_EVENTS_LINE)

    def close(self, quota: QuotaState, *, period_label: str) -> None:
        """集計行を足して確定する。"""

        self.add(f"{quota.used} of {quota.ceiling} SMS sent for {period_label}")
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def render_html(self) -> str:
        items = "".join(f"<li>{escape(line)}</li>" for line in self._lines)
        return f"<h1>{escape(self.title)}</h1><ul>{items}</ul>"
