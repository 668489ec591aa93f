"""1回分の通知実行 (NotifyRun) の組み立てを担当するモジュール。"""

from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import Callable

from .clients.dynamodb_client import DynamoDBClient
from .clients.google_client import GoogleSession
from .core.settings import Settings, load_settings
from .features.credential_reconcile.usecase_credential_reconcile import CredentialReconciler
from .features.notify_run.usecase_notify_run import NotifyRun
from .features.sms_dispatch.usecase_sms_dispatch import SmsDispatcher
from .features.summary_email.usecase_summary_email import SummaryEmailSender
from .stores.google_token_store import GoogleTokenStore
from .stores.sms_count_store import SmsCountStore


def create_runner(
    settings: Settings | None = None,
    *,
    dynamodb: DynamoDBClient | None = None,
    now: Callable[[], datetime] | None = None,
) -> NotifyRun:
    """設定から各コンポーネントを生成し、依存を注入した NotifyRun を返す。"""

    settings = settings or load_settings()
    dynamodb = dynamodb or DynamoDBClient(region=settings.region)
    token_store = GoogleTokenStore(
        table=settings.token_table,
        token_id=settings.google_token_id,
        client=dynamodb,
    )
    return NotifyRun(
        settings=settings,
        session_factory=partial(
            GoogleSession.from_token,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
        ),
        token_store=token_store,
        count_store=SmsCountStore(table=settings.quota_table, client=dynamodb),
        dispatcher=SmsDispatcher(
            enabled=settings.sms_enabled,
            region=settings.region,
            sms_type=settings.sms_type,
        ),
        email_sender=SummaryEmailSender(
            enabled=settings.email_enabled,
            region=settings.region,
            source=settings.email_from,
            subject=settings.email_subject,
            recipients=settings.email_recipients,
        ),
        reconciler=CredentialReconciler(token_store=token_store),
        now=now,
    )
