"""Google Calendar API (events.list / calendars.get) のレスポンススキーマ。"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventStartModel(BaseModel):
    """イベント開始。終日なら date、時刻指定なら dateTime のどちらか一方。"""

    date: str | None = Field(None, description="YYYY-MM-DD形式の日付（終日イベント）")
    dateTime: str | None = Field(None, description="ISO8601形式の日時（例: 2024-05-01T09:00:00-04:00）")
    timeZone: str | None = Field(None, description="IANA タイムゾーン（例: US/Eastern）")

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _require_date_or_datetime(self) -> "EventStartModel":
        if not self.date and not self.dateTime:
            raise ValueError("start には date か dateTime が必要です。")
        return self

    @property
    def is_all_day(self) -> bool:
        return self.date is not None and self.dateTime is None


class GoogleCalendarEventModel(BaseModel):
    """events.list() の items 1件。通知判定に必要な項目のみ扱う。"""

    id: str | None = None
    summary: str | None = None
    start: EventStartModel

    model_config = ConfigDict(extra="ignore")


class GoogleCalendarModel(BaseModel):
    """calendars.get() のレスポンス。"""

    id: str
    timeZone: str | None = None

    model_config = ConfigDict(extra="ignore")
