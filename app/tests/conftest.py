from __future__ import annotations

import os
from typing import Iterator

os.environ.setdefault("CALENDAR_GCAL_ID", "primary")
os.environ.setdefault("CONTACTS_SHEETS_ID", "contacts-sheet")

import pytest

from gcal_sms_notify.core import settings as core_settings

_OPTIONAL_ENV = (
    "APP_ENV",
    "IS_SMS_ENABLED",
    "IS_EMAIL_ENABLED",
    "IS_VERBOSE",
    "SMS_MONTHLY_QUOTA",
    "SMS_MAX_CHARS",
    "SMS_MESSAGE_TMPL",
    "EMAIL_RECIPIENTS",
    "DEFAULT_TIME_ZONE",
)


@pytest.fixture(autouse=True)
def basic_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """設定読み込みに必要な環境変数をテスト時にセットする。"""

    monkeypatch.setenv("CALENDAR_GCAL_ID", "primary")
    monkeypatch.setenv("CONTACTS_SHEETS_ID", "contacts-sheet")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
    for name in _OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)
    core_settings.load_settings.cache_clear()
    yield
    core_settings.load_settings.cache_clear()
