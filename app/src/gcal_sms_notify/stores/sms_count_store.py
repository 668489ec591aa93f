"""月次 SMS 送信数 (`SmsCount` テーブル) のストア。"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Literal, Mapping

from botocore.exceptions import ClientError

from gcal_sms_notify.clients.dynamodb_client import DynamoDBClient
from gcal_sms_notify.core.logging import get_logger, log_event
from gcal_sms_notify.core.models import MonthCount
from gcal_sms_notify.stores.datastore import DynamoStore

_CONDITION_FAILED = "ConditionalCheckFailedException"


class MonthCountCodec:
    def to_key(self, record_id: str) -> dict[str, Any]:
        return {"Month": record_id}

    def from_item(self, item: Mapping[str, Any]) -> MonthCount:
        return MonthCount(month=str(item["Month"]), count=_to_int(item.get("Count")))

    def to_item(self, record: MonthCount) -> dict[str, Any]:
        return {"Month": record.month, "Count": record.count}


class SmsCountStore:
    """月キー (`YYYY-MM`) ごとの送信数を読み書きする。"""

    def __init__(
        self,
        *,
        table: str,
        client: DynamoDBClient,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store: DynamoStore[MonthCount] = DynamoStore(
            table=table, codec=MonthCountCodec(), client=client
        )
        self._client = client
        self._log = logger or get_logger("SmsCountStore")

    def get_count(self, month: str) -> int:
        """指定月の送信数を返す。レコードが無ければ 0。"""

        log_event(self._log, logging.INFO, "Getting current count...", month=month)
        record = self._store.get(month)
        return record.count if record else 0

    def save_count(
        self, month: str, *, baseline: int, count: int
    ) -> tuple[MonthCount, Literal["STORED", "MERGED"]]:
        """baseline から変わっていなければ count を保存する。

        別の実行が先に書き込んでいた場合は今回の増分だけをアトミックに加算し、
        結果を "MERGED" として返す。
        """

        record = MonthCount(month=month, count=count)
        try:
            self._store.put(
                record,
                condition_expression="attribute_not_exists(#month) OR #count = :baseline",
                expression_names={"#month": "Month", "#count": "Count"},
                expression_values={":baseline": baseline},
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") != _CONDITION_FAILED:
                raise
            delta = count - baseline
            log_event(
                self._log,
                logging.WARNING,
                "Count changed by another run, merging delta",
                month=month,
                delta=delta,
            )
            merged = self._client.add_to_number(
                self._store.table,
                MonthCountCodec().to_key(month),
                attribute="Count",
                delta=delta,
            )
            return MonthCount(month=month, count=merged), "MERGED"
        log_event(self._log, logging.INFO, "Stored updated count", month=month, count=count)
        return record, "STORED"


def _to_int(value: Any) -> int:
    if isinstance(value, (int, Decimal)):
        return int(value)
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 0
