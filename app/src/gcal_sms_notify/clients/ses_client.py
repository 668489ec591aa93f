"""SES 送信に利用する boto3 クライアントラッパー。"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterable

import boto3
from botocore.client import BaseClient


@lru_cache(maxsize=None)
def get_client(region: str) -> BaseClient:
    """リージョン固定の SES クライアントを返す。"""

    return boto3.client("ses", region_name=region)


def send_html_email(
    *,
    region: str,
    source: str,
    to_addresses: Iterable[str],
    subject: str,
    body_html: str,
) -> dict[str, Any]:
    """HTML 本文のみのメールを送信し、SES のレスポンスをそのまま返す。"""

    client = get_client(region)
    return client.send_email(
        Source=source,
        Destination={"ToAddresses": list(to_addresses)},
        Message={
            "Subject": {"Charset": "UTF-8", "Data": subject},
            "Body": {"Html": {"Charset": "UTF-8", "Data": body_html}},
        },
    )
