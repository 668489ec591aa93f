"""Google Calendar / Sheets SDK を扱うヘルパー。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build

from gcal_sms_notify.core.models import CredentialSnapshot, StoredGoogleToken

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
)


def build_credentials(
    *,
    token: StoredGoogleToken,
    client_id: str,
    client_secret: str,
    scopes: Sequence[str] | None = None,
) -> Credentials:
    """保存済みトークンから Google API 認証情報を構築する。"""

    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=GOOGLE_TOKEN_URI,
        scopes=list(scopes or GOOGLE_SCOPES),
        expiry=_expiry_from_millis(token.expiry_date),
    )


def snapshot_from_credentials(credentials: Credentials) -> CredentialSnapshot:
    """実行終了時点の認証情報を CredentialSnapshot に写す。"""

    return CredentialSnapshot(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token,
        expiry_date=_expiry_to_millis(credentials.expiry),
        id_token=getattr(credentials, "id_token", None),
    )


def build_calendar_service(*, credentials: Credentials) -> Resource:
    """google-api-python-client の Calendar Service を生成する。"""

    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


def build_sheets_service(*, credentials: Credentials) -> Resource:
    """google-api-python-client の Sheets Service を生成する。"""

    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def get_calendar(service: Any, calendar_id: str) -> dict[str, Any]:
    return service.calendars().get(calendarId=calendar_id).execute()


def list_events(
    service: Any,
    *,
    calendar_id: str,
    time_min: str,
    time_max: str,
) -> list[dict[str, Any]]:
    """期間内のイベントを開始時刻順に全ページ取得する。繰り返し予定は展開済み。"""

    items: list[dict[str, Any]] = []
    page_token: str | None = None
    while True:
        response = (
            service.events()
            .list(
                calendarId=calendar_id,
                timeMin=time_min,
                timeMax=time_max,
                singleEvents=True,
                orderBy="startTime",
                pageToken=page_token,
            )
            .execute()
        )
        if response is None:
            raise ValueError("Google Calendar からのレスポンスが空です。")
        items.extend(response.get("items", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            return items


def get_sheet_values(service: Any, *, spreadsheet_id: str, range_: str) -> list[list[str]]:
    response = (
        service.spreadsheets()
        .values()
        .get(spreadsheetId=spreadsheet_id, range=range_)
        .execute()
    )
    return response.get("values", [])


def _expiry_from_millis(expiry_date: int | None) -> datetime | None:
    if not expiry_date:
        return None
    # google-auth は naive な UTC datetime を期待する
    return datetime.fromtimestamp(expiry_date / 1000, tz=timezone.utc).replace(tzinfo=None)


def _expiry_to_millis(expiry: datetime | None) -> int | None:
    if expiry is None:
        return None
    return int(expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)


class GoogleSession:
    """1回の実行で使う認可済み Calendar / Sheets サービスの組。

    httplib2 はスレッドセーフではないため、各サービスは同時に1タスクからのみ使う。
    """

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self._calendar = build_calendar_service(credentials=credentials)
        self._sheets = build_sheets_service(credentials=credentials)

    @classmethod
    def from_token(
        cls,
        token: StoredGoogleToken,
        *,
        client_id: str | None,
        client_secret: str | None,
    ) -> "GoogleSession":
        if not (client_id and client_secret and token.refresh_token):
            raise ValueError("Google API 用のクライアント資格情報が不足しています。")
        credentials = build_credentials(
            token=token,
            client_id=client_id,
            client_secret=client_secret,
        )
        return cls(credentials)

    def get_calendar(self, calendar_id: str) -> dict[str, Any]:
        return get_calendar(self._calendar, calendar_id)

    def list_events(self, calendar_id: str, *, time_min: str, time_max: str) -> list[dict[str, Any]]:
        return list_events(self._calendar, calendar_id=calendar_id, time_min=time_min, time_max=time_max)

    def get_contact_rows(self, spreadsheet_id: str, range_: str) -> list[list[str]]:
        return get_sheet_values(self._sheets, spreadsheet_id=spreadsheet_id, range_=range_)

    def snapshot(self) -> CredentialSnapshot:
        return snapshot_from_credentials(self.credentials)
