"""送信許可済みの通知候補を SNS で SMS 送信するユースケース。"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from gcal_sms_notify.clients import sns_client
from gcal_sms_notify.core.logging import get_logger, log_error, log_event
from gcal_sms_notify.core.models import DispatchResult, NotificationCandidate

SmsSender = Callable[..., str]


class SmsDispatcher:
    """1候補につき1回だけ送信する。リトライはしない。"""

    def __init__(
        self,
        *,
        enabled: bool,
        region: str,
        sms_type: str = "Promotional",
        sender: SmsSender | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.enabled = enabled
        self.region = region
        self.sms_type = sms_type
        self._sender = sender or sns_client.publish_sms
        self._log = logger or get_logger("SmsDispatcher")

    async def dispatch(self, candidate: NotificationCandidate) -> DispatchResult:
        """送信結果を返す。送信失敗は例外にせず FAILED の結果として返す。"""

        phone_number = candidate.phone_number or ""
        log_event(
            self._log,
            logging.INFO,
            "Sending Text...",
            mode="Production" if self.enabled else "Simulation",
            phone_number=phone_number,
        )
        if not self.enabled:
            return DispatchResult(status="SIMULATED", phone_number=phone_number, message=candidate.message)

        try:
            message_id = await asyncio.to_thread(
                self._sender,
                region=self.region,
                phone_number=phone_number,
                message=candidate.message,
                sms_type=self.sms_type,
            )
        except Exception as exc:
            log_error(self._log, "Error when sending SMS", error=exc, phone_number=phone_number)
            return DispatchResult(
                status="FAILED",
                phone_number=phone_number,
                message=candidate.message,
                detail=str(exc),
            )

        log_event(self._log, logging.INFO, "SMS sent", phone_number=phone_number, message_id=message_id)
        return DispatchResult(
            status="SENT",
            phone_number=phone_number,
            message=candidate.message,
            detail=message_id,
        )
