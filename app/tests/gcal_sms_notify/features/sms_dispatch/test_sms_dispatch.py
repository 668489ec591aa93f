"""SMS 送信ユースケースのテスト。"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from gcal_sms_notify.core.models import NotificationCandidate
from gcal_sms_notify.features.sms_dispatch.usecase_sms_dispatch import SmsDispatcher

_CANDIDATE = NotificationCandidate(
    recipient_name="Jane",
    phone_number="+15551234567",
    message="Reminder: Standup call at 12:00am",
)


@pytest.mark.asyncio
async def test_disabled_dispatch_is_simulated_without_calling_sns() -> None:
    sender = MagicMock()
    dispatcher = SmsDispatcher(enabled=False, region="us-east-1", sender=sender)

    result = await dispatcher.dispatch(_CANDIDATE)

    assert result.status == "SIMULATED"
    assert result.line == "Simulate SMS to +15551234567: Reminder: Standup call at 12:00am"
    sender.assert_not_called()


@pytest.mark.asyncio
async def test_enabled_dispatch_sends_once() -> None:
    sender = MagicMock(return_value="msg-1")
    dispatcher = SmsDispatcher(enabled=True, region="us-east-1", sms_type="Transactional", sender=sender)

    result = await dispatcher.dispatch(_CANDIDATE)

    assert result.status == "SENT"
    assert result.detail == "msg-1"
    assert result.line == "SMS sent to +15551234567: Reminder: Standup call at 12:00am"
    sender.assert_called_once_with(
        region="us-east-1",
        phone_number="+15551234567",
        message="Reminder: Standup call at 12:00am",
        sms_type="Transactional",
    )


@pytest.mark.asyncio
async def test_send_failure_is_returned_not_raised() -> None:
    error = ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, "Publish")
    sender = MagicMock(side_effect=error)
    dispatcher = SmsDispatcher(enabled=True, region="us-east-1", sender=sender)

    result = await dispatcher.dispatch(_CANDIDATE)

    assert result.status == "FAILED"
    assert result.line.startswith("SMS to +15551234567 failed: ")
    assert "slow down" in result.line
    # リトライしない
    assert sender.call_count == 1
