"""アプリ全体で共有する設定読み込みロジック。"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv


_DEFAULT_REGION = "us-east-1"
_DEFAULT_TZ = "US/Eastern"
_LOCAL_ENV = "local"
_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_SMS_TEMPLATE = (
    "This message is to confirm {{ eventSummary }} on {{ date }} at {{ time }} "
    "for {{ recipientName }}. Please confirm by texting {{ smsReplyTo }} directly."
)
DEFAULT_DATE_FORMAT = "%a, %b %o"
DEFAULT_TIME_FORMAT = "%i:%M%P"


@dataclass(slots=True)
class Settings:
    """環境非依存で参照できる設定値の集合。"""

    app_env: str
    region: str
    timezone_default: str
    calendar_id: str
    contacts_sheet_id: str
    contacts_range: str
    google_client_id: str | None
    google_client_secret: str | None
    verbose: bool
    sms_enabled: bool
    sms_reply_to: str | None
    sms_monthly_quota: int
    sms_max_chars: int
    sms_template: str
    sms_type: str
    email_enabled: bool
    email_from: str | None
    email_subject: str
    email_recipients: list[str]
    date_format: str
    time_format: str
    quota_table: str = "SmsCount"
    token_table: str = "Token"
    google_token_id: str = "gcalsns-google"
    ssm_path_prefix: str | None = None

    @property
    def is_local(self) -> bool:
        return self.app_env == _LOCAL_ENV


def _parse_bool(raw: str | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY


def _parse_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"環境変数 {name} は整数である必要があります: {raw!r}") from exc


def _parse_csv_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get_required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"環境変数 {name} が未設定です。")
    return value


def _fetch_ssm_parameters(
    region: str, names: Iterable[str], prefix: str
) -> dict[str, str]:
    name_list = [f"{prefix}/{name}" for name in names]
    client = boto3.client("ssm", region_name=region)
    try:
        resp = client.get_parameters(Names=name_list, WithDecryption=True)
    except ClientError as exc:  # pragma: no cover - boto3 例外ラップ
        raise RuntimeError("SSM パラメータ取得に失敗しました。") from exc

    found = {item["Name"]: item["Value"] for item in resp.get("Parameters", [])}
    missing = {name for name in name_list if name not in found}
    if missing:
        raise ValueError(f"SSM パラメータ未設定: {', '.join(sorted(missing))}")
    return found


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """環境に応じて `.env` または SSM から設定を構築する。"""

    app_env = os.getenv("APP_ENV", _LOCAL_ENV)
    if app_env == _LOCAL_ENV:
        # 既にセット済みの環境変数は上書きしない
        load_dotenv(override=False)

    region = os.getenv("REGION", _DEFAULT_REGION)
    ssm_path_prefix: str | None = None

    if app_env == _LOCAL_ENV:
        google_client_id = os.getenv("GOOGLE_CLIENT_ID")
        google_client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
    else:
        ssm_path_prefix = os.getenv("SSM_PATH_PREFIX", "/app/prod")
        values = _fetch_ssm_parameters(
            region=region,
            names=["google/oauth_client_id", "google/oauth_client_secret"],
            prefix=ssm_path_prefix,
        )
        google_client_id = values[f"{ssm_path_prefix}/google/oauth_client_id"]
        google_client_secret = values[f"{ssm_path_prefix}/google/oauth_client_secret"]

    return Settings(
        app_env=app_env,
        region=region,
        timezone_default=os.getenv("DEFAULT_TIME_ZONE", _DEFAULT_TZ),
        calendar_id=_get_required_env("CALENDAR_GCAL_ID"),
        contacts_sheet_id=_get_required_env("CONTACTS_SHEETS_ID"),
        contacts_range=os.getenv("CONTACTS_SHEET_RANGE", "A:B"),
        google_client_id=google_client_id,
        google_client_secret=google_client_secret,
        verbose=_parse_bool(os.getenv("IS_VERBOSE")),
        sms_enabled=_parse_bool(os.getenv("IS_SMS_ENABLED")),
        sms_reply_to=os.getenv("SMS_REPLY_TO"),
        sms_monthly_quota=_parse_int("SMS_MONTHLY_QUOTA", os.getenv("SMS_MONTHLY_QUOTA"), 100),
        sms_max_chars=_parse_int("SMS_MAX_CHARS", os.getenv("SMS_MAX_CHARS"), 140),
        sms_template=os.getenv("SMS_MESSAGE_TMPL") or DEFAULT_SMS_TEMPLATE,
        sms_type=os.getenv("SMS_TYPE", "Promotional"),
        email_enabled=_parse_bool(os.getenv("IS_EMAIL_ENABLED")),
        email_from=os.getenv("EMAIL_FROM"),
        email_subject=os.getenv("EMAIL_SUBJECT", ""),
        email_recipients=_parse_csv_list(os.getenv("EMAIL_RECIPIENTS")),
        date_format=os.getenv("FRIENDLY_DATE_FORMAT") or DEFAULT_DATE_FORMAT,
        time_format=os.getenv("FRIENDLY_TIME_FORMAT") or DEFAULT_TIME_FORMAT,
        quota_table=os.getenv("QUOTA_TABLE", "SmsCount"),
        token_table=os.getenv("TOKEN_TABLE", "Token"),
        google_token_id=os.getenv("GOOGLE_TOKEN_ID", "gcalsns-google"),
        ssm_path_prefix=ssm_path_prefix,
    )
