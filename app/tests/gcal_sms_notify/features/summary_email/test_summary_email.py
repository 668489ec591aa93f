"""サマリメール送信のテスト。"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gcal_sms_notify.features.summary_email.usecase_summary_email import SummaryEmailSender


def _sender(**overrides: object) -> SummaryEmailSender:
    params: dict[str, object] = {
        "enabled": True,
        "region": "us-east-1",
        "source": "noreply@example.com",
        "subject": "Daily SMS summary",
        "recipients": ["ops@example.com"],
        "sender": MagicMock(return_value={"MessageId": "ses-1"}),
    }
    params.update(overrides)
    return SummaryEmailSender(**params)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_sends_html_summary() -> None:
    ses = MagicMock(return_value={"MessageId": "ses-1"})

    line = await _sender(sender=ses).send("<h1>Summary</h1>")

    assert line == "SES object sent with MessageId ses-1"
    ses.assert_called_once_with(
        region="us-east-1",
        source="noreply@example.com",
        to_addresses=["ops@example.com"],
        subject="Daily SMS summary",
        body_html="<h1>Summary</h1>",
    )


@pytest.mark.asyncio
async def test_no_recipients_skips_send() -> None:
    ses = MagicMock()

    line = await _sender(recipients=["", ""], sender=ses).send("<h1/>")

    assert line == "No email recipients, skipping email send"
    ses.assert_not_called()


@pytest.mark.asyncio
async def test_disabled_email_is_simulated() -> None:
    ses = MagicMock()

    line = await _sender(enabled=False, sender=ses).send("<h1/>")

    assert line == "Email disabled in config"
    ses.assert_not_called()


@pytest.mark.asyncio
async def test_ses_error_becomes_line() -> None:
    line = await _sender(sender=MagicMock(side_effect=RuntimeError("not verified"))).send("<h1/>")

    assert line == "Error when sending email: not verified"


@pytest.mark.asyncio
async def test_missing_message_id_is_reported() -> None:
    line = await _sender(sender=MagicMock(return_value={})).send("<h1/>")

    assert line == "SES object sending failed with result {}"
