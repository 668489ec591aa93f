"""ドメインレコードと DynamoDB アイテムを codec 経由で相互変換する汎用ストア。"""

from __future__ import annotations

from typing import Any, Generic, Mapping, Protocol, TypeVar

from gcal_sms_notify.clients.dynamodb_client import DynamoDBClient

T = TypeVar("T")


class DatastoreItemNotFoundError(LookupError):
    """必須アイテムがテーブルに存在しないことを表す例外。"""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(f"{table} にアイテム {record_id!r} が存在しません。")
        self.table = table
        self.record_id = record_id


class RecordCodec(Protocol[T]):
    """レコード型ごとのキー/アイテム変換。"""

    def to_key(self, record_id: str) -> dict[str, Any]: ...

    def from_item(self, item: Mapping[str, Any]) -> T: ...

    def to_item(self, record: T) -> dict[str, Any]: ...


class DynamoStore(Generic[T]):
    """テーブル名と codec を束ねた get/put の窓口。"""

    def __init__(self, *, table: str, codec: RecordCodec[T], client: DynamoDBClient) -> None:
        self.table = table
        self.codec = codec
        self.client = client

    def get(self, record_id: str) -> T | None:
        item = self.client.get_item(self.table, self.codec.to_key(record_id))
        if item is None:
            return None
        return self.codec.from_item(item)

    def require(self, record_id: str) -> T:
        record = self.get(record_id)
        if record is None:
            raise DatastoreItemNotFoundError(self.table, record_id)
        return record

    def put(
        self,
        record: T,
        *,
        condition_expression: str | None = None,
        expression_names: Mapping[str, str] | None = None,
        expression_values: Mapping[str, Any] | None = None,
    ) -> T:
        self.client.put_item(
            self.table,
            self.codec.to_item(record),
            condition_expression=condition_expression,
            expression_names=expression_names,
            expression_values=expression_values,
        )
        return record
