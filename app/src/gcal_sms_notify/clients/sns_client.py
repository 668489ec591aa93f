"""SNS による SMS 送信の boto3 クライアントラッパー。"""

from __future__ import annotations

from functools import lru_cache

import boto3
from botocore.client import BaseClient

SMS_TYPE_ATTRIBUTE = "AWS.SNS.SMS.SMSType"


class SmsPublishError(RuntimeError):
    """SNS が MessageId を返さなかったことを表す例外。"""


@lru_cache(maxsize=None)
def get_client(region: str) -> BaseClient:
    """リージョンごとの SNS クライアントを返す。"""

    return boto3.client("sns", region_name=region)


def publish_sms(
    *,
    region: str,
    phone_number: str,
    message: str,
    sms_type: str = "Promotional",
) -> str:
    """E.164 形式の電話番号へ SMS を1通送信し、MessageId を返す。"""

    client = get_client(region)
    response = client.publish(
        PhoneNumber=phone_number,
        Message=message,
        MessageAttributes={
            SMS_TYPE_ATTRIBUTE: {"DataType": "String", "StringValue": sms_type},
        },
    )
    message_id = response.get("MessageId")
    if not message_id:
        raise SmsPublishError(f"SNS publish returned no MessageId: {response}")
    return message_id
