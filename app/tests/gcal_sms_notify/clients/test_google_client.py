"""Google クライアントヘルパーのテスト。"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from google.oauth2.credentials import Credentials

from gcal_sms_notify.clients import google_client
from gcal_sms_notify.clients.google_client import GoogleSession
from gcal_sms_notify.core.models import StoredGoogleToken

_TOKEN = StoredGoogleToken("access", "refresh", 1714550400000)


def test_build_credentials_restores_expiry_as_naive_utc() -> None:
    credentials = google_client.build_credentials(token=_TOKEN, client_id="id", client_secret="secret")

    assert credentials.token == "access"
    assert credentials.refresh_token == "refresh"
    assert credentials.expiry == datetime(2024, 5, 1, 8, 0, 0)


def test_snapshot_round_trips_expiry_and_carries_id_token() -> None:
    credentials = google_client.build_credentials(token=_TOKEN, client_id="id", client_secret="secret")

    snapshot = google_client.snapshot_from_credentials(credentials)

    assert snapshot.expiry_date == 1714550400000
    assert snapshot.id_token is None
    assert not snapshot.is_refreshed


def test_list_events_follows_pages() -> None:
    service = MagicMock()
    list_call = service.events.return_value.list.return_value
    list_call.execute.side_effect = [
        {"items": [{"id": "a"}], "nextPageToken": "p2"},
        {"items": [{"id": "b"}]},
    ]

    items = google_client.list_events(
        service,
        calendar_id="primary",
        time_min="2024-05-01T00:00:00-04:00",
        time_max="2024-05-02T00:00:00-04:00",
    )

    assert [item["id"] for item in items] == ["a", "b"]
    calls = service.events.return_value.list.call_args_list
    assert calls[0].kwargs["singleEvents"] is True
    assert calls[0].kwargs["orderBy"] == "startTime"
    assert calls[1].kwargs["pageToken"] == "p2"


def test_get_sheet_values_defaults_to_empty() -> None:
    service = MagicMock()
    service.spreadsheets.return_value.values.return_value.get.return_value.execute.return_value = {}

    assert google_client.get_sheet_values(service, spreadsheet_id="s", range_="A:B") == []


def test_session_requires_client_credentials() -> None:
    with pytest.raises(ValueError):
        GoogleSession.from_token(_TOKEN, client_id=None, client_secret="secret")


def test_session_snapshot_reads_live_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(google_client, "build", MagicMock())
    session = GoogleSession.from_token(_TOKEN, client_id="id", client_secret="secret")
    assert isinstance(session.credentials, Credentials)

    session.credentials.token = "rotated"

    assert session.snapshot().access_token == "rotated"
