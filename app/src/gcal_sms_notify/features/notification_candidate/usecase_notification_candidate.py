"""カレンダーイベントを SMS 通知候補へ変換するユースケース。"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from typing import Mapping
from zoneinfo import ZoneInfo

from gcal_sms_notify.core.logging import get_logger, log_event
from gcal_sms_notify.core.models import NotificationCandidate
from gcal_sms_notify.features.phone_directory.usecase_phone_directory import PhoneDirectory
from gcal_sms_notify.shared.schemas.calendar import EventStartModel, GoogleCalendarEventModel

EVENT_MARKER = re.compile(r"\*([^*]+)\*")
TEMPLATE_VAR = re.compile(r"\{\{\s*([A-Z0-9_]+)\s*\}\}", re.IGNORECASE)
_FORMAT_DIRECTIVE = re.compile(r"%-?.")
_UNRESOLVED = "?"


class NonQualifyingEventError(ValueError):
    """`*名前*` の指定が無く、通知対象ではないイベント。"""

    def __init__(self, summary: str | None) -> None:
        super().__init__(f"Non-notification event: {summary}")
        self.summary = summary


def interpolate(template: str, variables: Mapping[str, str | None]) -> str:
    """`{{ name }}` を置換する。値が無い/空の変数は `?` になる。"""

    return TEMPLATE_VAR.sub(
        lambda match: variables.get(match.group(1)) or _UNRESOLVED,
        template,
    )


def format_local(value: datetime, pattern: str) -> str:
    """strftime に `%o` (序数付きの日), `%i` (ゼロ埋め無し12時間), `%P` (小文字 am/pm) を足した整形。"""

    def _replace(match: re.Match[str]) -> str:
        directive = match.group(0)
        if directive == "%o":
            return _ordinal(value.day)
        if directive == "%i":
            return str(value.hour % 12 or 12)
        if directive == "%P":
            return "am" if value.hour < 12 else "pm"
        return value.strftime(directive)

    return _FORMAT_DIRECTIVE.sub(_replace, pattern)


def resolve_local_start(start: EventStartModel, default_time_zone: str) -> datetime:
    """イベント開始をイベント自身 (無ければカレンダー) のタイムゾーンの aware datetime にする。"""

    tz = ZoneInfo(start.timeZone or default_time_zone)
    if start.is_all_day:
        # 終日イベントはその日の 0:00 とみなす
        return datetime.combine(date.fromisoformat(start.date or ""), time.min, tzinfo=tz)

    parsed = _parse_datetime(start.dateTime or "")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


class NotificationCandidateBuilder:
    """1回の実行中に使い回す通知候補の組み立て役。"""

    def __init__(
        self,
        *,
        directory: PhoneDirectory,
        calendar_time_zone: str,
        template: str,
        max_chars: int,
        reply_to: str | None,
        date_format: str,
        time_format: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self.directory = directory
        self.calendar_time_zone = calendar_time_zone
        self.template = template
        self.max_chars = max_chars
        self.reply_to = reply_to
        self.date_format = date_format
        self.time_format = time_format
        self._log = logger or get_logger("NotificationCandidateBuilder")

    def build(self, event: GoogleCalendarEventModel) -> NotificationCandidate:
        """通知候補を返す。通知対象外なら NonQualifyingEventError。"""

        log_event(self._log, logging.DEBUG, "Reading event", summary=event.summary, event_id=event.id)
        summary = event.summary or ""
        match = EVENT_MARKER.search(summary)
        if match is None:
            raise NonQualifyingEventError(event.summary)

        recipient_name = match.group(1)
        event_summary = EVENT_MARKER.sub("", summary, count=1).strip()
        start = resolve_local_start(event.start, self.calendar_time_zone)
        message = interpolate(
            self.template,
            {
                "eventSummary": event_summary,
                "recipientName": recipient_name,
                "smsReplyTo": self.reply_to,
                "date": format_local(start, self.date_format),
                "time": format_local(start, self.time_format),
            },
        )
        if self.max_chars > 0:
            message = message[: self.max_chars]

        return NotificationCandidate(
            recipient_name=recipient_name,
            phone_number=self.directory.get(recipient_name.strip().lower()),
            message=message,
            event_id=event.id,
        )


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _parse_datetime(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
