"""当日のカレンダーを走査して SMS 通知を送る1回分の実行。

INIT → AUTHORIZED → FETCHED → PROCESSED → FINALIZED の順に進む。
認可と取得の失敗だけが致命的 (FAILED) で、それ以降の失敗は結果行として残す。
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Callable, NoReturn, Protocol
from zoneinfo import ZoneInfo

from gcal_sms_notify.core.logging import get_logger, log_error, log_event
from gcal_sms_notify.core.models import CredentialSnapshot, QuotaState, RunReport, StoredGoogleToken
from gcal_sms_notify.core.settings import Settings
from gcal_sms_notify.features.credential_reconcile.usecase_credential_reconcile import (
    CredentialReconciler,
)
from gcal_sms_notify.features.notification_candidate.usecase_notification_candidate import (
    NonQualifyingEventError,
    NotificationCandidateBuilder,
    format_local,
)
from gcal_sms_notify.features.phone_directory.usecase_phone_directory import (
    PhoneDirectory,
    build_phone_directory,
)
from gcal_sms_notify.features.quota_gate.usecase_quota_gate import QuotaGate
from gcal_sms_notify.features.run_summary.usecase_run_summary import RunSummary
from gcal_sms_notify.features.sms_dispatch.usecase_sms_dispatch import SmsDispatcher
from gcal_sms_notify.features.summary_email.usecase_summary_email import SummaryEmailSender
from gcal_sms_notify.shared.schemas.calendar import GoogleCalendarEventModel, GoogleCalendarModel
from gcal_sms_notify.stores.google_token_store import GoogleTokenStore
from gcal_sms_notify.stores.sms_count_store import SmsCountStore


class RunState(str, Enum):
    INIT = "INIT"
    AUTHORIZED = "AUTHORIZED"
    FETCHED = "FETCHED"
    PROCESSED = "PROCESSED"
    FINALIZED = "FINALIZED"
    FAILED = "FAILED"


class RunFailedError(RuntimeError):
    """認可または入力取得に失敗し、何も書き込まずに中断したことを表す例外。"""

    def __init__(self, message: str, *, state: RunState) -> None:
        super().__init__(message)
        self.state = state


class GoogleSessionLike(Protocol):
    def get_calendar(self, calendar_id: str) -> dict[str, Any]: ...

    def list_events(self, calendar_id: str, *, time_min: str, time_max: str) -> list[dict[str, Any]]: ...

    def get_contact_rows(self, spreadsheet_id: str, range_: str) -> list[list[str]]: ...

    def snapshot(self) -> CredentialSnapshot: ...


SessionFactory = Callable[[StoredGoogleToken], GoogleSessionLike]


class NotifyRun:
    """1回の実行を組み立てて進める。インスタンスは実行ごとに作り直す。"""

    def __init__(
        self,
        *,
        settings: Settings,
        session_factory: SessionFactory,
        token_store: GoogleTokenStore,
        count_store: SmsCountStore,
        dispatcher: SmsDispatcher,
        email_sender: SummaryEmailSender,
        reconciler: CredentialReconciler,
        now: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.token_store = token_store
        self.count_store = count_store
        self.dispatcher = dispatcher
        self.email_sender = email_sender
        self.reconciler = reconciler
        self.state = RunState.INIT
        self.run_start = (now or _utcnow)()
        self._log = logger or get_logger("NotifyRun")

        self._session: GoogleSessionLike | None = None
        self._directory: PhoneDirectory = {}
        self._calendar_time_zone = settings.timezone_default
        self._events: list[dict[str, Any]] = []
        self._baseline = 0
        self._gate: QuotaGate | None = None
        self._summary: RunSummary | None = None

    @property
    def quota_month(self) -> str:
        return self._local_run_start().strftime("%Y-%m")

    async def run(self) -> RunReport:
        await self.authorize()
        await self.fetch()
        await self.process()
        finalize_lines = await self.finalize()

        assert self._summary is not None and self._gate is not None
        return RunReport(
            state=self.state.value,
            events=self._summary.lines,
            finalize=finalize_lines,
            quota=self._gate.snapshot(),
        )

    async def authorize(self) -> None:
        self._expect(RunState.INIT)
        try:
            token = await asyncio.to_thread(self.token_store.get_token)
            self._session = await asyncio.to_thread(self.session_factory, token)
        except Exception as exc:
            self._fail("Authorization failed", exc)
        self._transition(RunState.AUTHORIZED)

    async def fetch(self) -> None:
        """連絡先・当日のイベント・今月の送信数を並行して取得する。"""

        self._expect(RunState.AUTHORIZED)
        log_event(self._log, logging.INFO, "Fetching data...")
        try:
            directory, (calendar_tz, events), baseline = await asyncio.gather(
                asyncio.to_thread(self._fetch_directory),
                asyncio.to_thread(self._fetch_todays_events),
                asyncio.to_thread(self.count_store.get_count, self.quota_month),
            )
        except Exception as exc:
            self._fail("Fetch data failed", exc)

        self._directory = directory
        self._calendar_time_zone = calendar_tz
        self._events = events
        self._baseline = baseline
        self._transition(RunState.FETCHED)

    async def process(self) -> None:
        self._expect(RunState.FETCHED)
        log_event(self._log, logging.INFO, "Processing events...", count=len(self._events))

        self._gate = QuotaGate(
            month=self.quota_month,
            baseline=self._baseline,
            ceiling=self.settings.sms_monthly_quota,
        )
        builder = NotificationCandidateBuilder(
            directory=self._directory,
            calendar_time_zone=self._calendar_time_zone,
            template=self.settings.sms_template,
            max_chars=self.settings.sms_max_chars,
            reply_to=self.settings.sms_reply_to,
            date_format=self.settings.date_format,
            time_format=self.settings.time_format,
        )
        title_date = format_local(self._local_run_start(), self.settings.date_format)
        self._summary = RunSummary(title=f"Summary for {title_date}")

        if not self._events:
            self._summary.add_no_events()
        else:
            # gather は投入順に結果を返すので、行の並びはイベント順になる
            lines = await asyncio.gather(
                *(self._process_event(raw, builder, self._gate) for raw in self._events)
            )
            self._summary.extend(list(lines))
        self._transition(RunState.PROCESSED)

    async def finalize(self) -> list[str]:
        """送信数の保存・サマリ送信・トークン保存を並行で行う。互いの失敗には影響されない。"""

        self._expect(RunState.PROCESSED)
        assert self._summary is not None and self._gate is not None and self._session is not None
        log_event(self._log, logging.INFO, "Finalizing...")

        quota = self._gate.snapshot()
        self._summary.close(quota, period_label=self._local_run_start().strftime("%b %Y"))
        results = await asyncio.gather(
            self._persist_count(quota),
            self.email_sender.send(self._summary.render_html()),
            self.reconciler.reconcile(self._session.snapshot()),
            return_exceptions=True,
        )
        lines = [
            f"Finalize step failed: {result}" if isinstance(result, BaseException) else result
            for result in results
        ]
        for line in lines:
            log_event(self._log, logging.INFO, line)
        self._transition(RunState.FINALIZED)
        return lines

    async def _process_event(
        self,
        raw: dict[str, Any],
        builder: NotificationCandidateBuilder,
        gate: QuotaGate,
    ) -> str:
        try:
            event = GoogleCalendarEventModel.model_validate(raw)
            candidate = builder.build(event)
        except NonQualifyingEventError as exc:
            log_event(self._log, logging.DEBUG, str(exc))
            return str(exc)
        except Exception as exc:
            log_error(self._log, "Could not process event", error=exc, event_id=raw.get("id"))
            return f"Could not process event {raw.get('id')}: {exc}"

        if not candidate.is_valid:
            log_event(self._log, logging.INFO, "Invalid notification", reason=candidate.invalid_reason)
            return (
                f"Invalid notification parameters: contact({candidate.recipient_name}), "
                f"phone({candidate.phone_number}), message({candidate.message})"
            )

        # 判定と加算は同期的に行い、その間に await を挟まない
        if not gate.try_admit():
            return gate.exhausted_line()

        result = await self.dispatcher.dispatch(candidate)
        return result.line

    async def _persist_count(self, quota: QuotaState) -> str:
        if quota.admitted_this_run == 0:
            return f"No new SMS for {quota.month}, count unchanged at {quota.baseline}"
        if not self.settings.sms_enabled:
            return "No need to save updated count when SMS is disabled"
        try:
            record, outcome = await asyncio.to_thread(
                self.count_store.save_count,
                quota.month,
                baseline=quota.baseline,
                count=quota.used,
            )
        except Exception as exc:
            log_error(self._log, "Error thrown when updating SMS count", error=exc)
            return f"Error storing updated {quota.month} SMS count: {exc}"
        if outcome == "MERGED":
            return f"Stored updated {record.month} SMS count {record.count} (merged with a concurrent run)"
        return f"Stored updated {record.month} SMS count {record.count}"

    def _fetch_directory(self) -> PhoneDirectory:
        assert self._session is not None
        rows = self._session.get_contact_rows(
            self.settings.contacts_sheet_id, self.settings.contacts_range
        )
        return build_phone_directory(rows)

    def _fetch_todays_events(self) -> tuple[str, list[dict[str, Any]]]:
        assert self._session is not None
        calendar = GoogleCalendarModel.model_validate(
            self._session.get_calendar(self.settings.calendar_id)
        )
        time_zone = calendar.timeZone or self.settings.timezone_default
        tz = ZoneInfo(time_zone)
        today = self.run_start.astimezone(tz).date()
        time_min = datetime.combine(today, time.min, tzinfo=tz).isoformat()
        time_max = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz).isoformat()
        log_event(
            self._log,
            logging.INFO,
            "Retrieving calendar events",
            time_min=time_min,
            time_max=time_max,
        )
        events = self._session.list_events(calendar.id, time_min=time_min, time_max=time_max)
        return time_zone, events

    def _local_run_start(self) -> datetime:
        return self.run_start.astimezone(ZoneInfo(self.settings.timezone_default))

    def _expect(self, state: RunState) -> None:
        if self.state is not state:
            raise RuntimeError(f"{state.value} 状態でのみ実行できます (現在: {self.state.value})。")

    def _transition(self, state: RunState) -> None:
        log_event(self._log, logging.DEBUG, "State transition", source=self.state.value, target=state.value)
        self.state = state

    def _fail(self, message: str, exc: Exception) -> NoReturn:
        failed_at = self.state
        log_error(self._log, message, error=exc, state=failed_at.value)
        self.state = RunState.FAILED
        raise RunFailedError(f"{message} at {failed_at.value}: {exc}", state=failed_at) from exc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
