"""実行サマリを SES でメール送信するユースケース。"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Sequence

from gcal_sms_notify.clients import ses_client
from gcal_sms_notify.core.logging import get_logger, log_error, log_event

EmailSender = Callable[..., dict[str, Any]]


class SummaryEmailSender:
    """無効化時や宛先なしのときは送信せず、その旨の行を返す。"""

    def __init__(
        self,
        *,
        enabled: bool,
        region: str,
        source: str | None,
        subject: str,
        recipients: Sequence[str],
        sender: EmailSender | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.enabled = enabled
        self.region = region
        self.source = source
        self.subject = subject
        self.recipients = [recipient for recipient in recipients if recipient]
        self._sender = sender or ses_client.send_html_email
        self._log = logger or get_logger("SummaryEmailSender")

    async def send(self, html: str) -> str:
        log_event(
            self._log,
            logging.INFO,
            "Sending email...",
            mode="Production" if self.enabled else "Simulation",
        )
        log_event(self._log, logging.DEBUG, "Summary", html=html)

        if not self.recipients:
            return "No email recipients, skipping email send"
        if not self.enabled:
            log_event(self._log, logging.INFO, "Simulate sending summary email", html=html)
            return "Email disabled in config"
        if not self.source:
            return "Error when sending email: EMAIL_FROM が未設定です。"

        try:
            result = await asyncio.to_thread(
                self._sender,
                region=self.region,
                source=self.source,
                to_addresses=self.recipients,
                subject=self.subject,
                body_html=html,
            )
        except Exception as exc:
            log_error(self._log, "Error when sending email", error=exc)
            return f"Error when sending email: {exc}"

        message_id = (result or {}).get("MessageId")
        if message_id:
            return f"SES object sent with MessageId {message_id}"
        return f"SES object sending failed with result {result}"
