"""DynamoDB 低レベルクライアントのラッパー。値の変換は TypeSerializer に任せる。"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.client import BaseClient

_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()


@lru_cache(maxsize=None)
def get_client(region: str) -> BaseClient:
    """リージョンごとの DynamoDB クライアントを返す。"""

    return boto3.client("dynamodb", region_name=region)


def serialize(item: Mapping[str, Any]) -> dict[str, Any]:
    return {key: _SERIALIZER.serialize(value) for key, value in item.items()}


def deserialize(item: Mapping[str, Any]) -> dict[str, Any]:
    return {key: _DESERIALIZER.deserialize(value) for key, value in item.items()}


class DynamoDBClient:
    """プレーンな dict でやり取りできる DynamoDB 操作の薄いラッパー。"""

    def __init__(self, *, region: str, client: BaseClient | None = None) -> None:
        self._client = client or get_client(region)

    def get_item(self, table: str, key: Mapping[str, Any]) -> dict[str, Any] | None:
        response = self._client.get_item(TableName=table, Key=serialize(key))
        item = response.get("Item")
        if item is None:
            return None
        return deserialize(item)

    def put_item(
        self,
        table: str,
        item: Mapping[str, Any],
        *,
        condition_expression: str | None = None,
        expression_names: Mapping[str, str] | None = None,
        expression_values: Mapping[str, Any] | None = None,
    ) -> None:
        params: dict[str, Any] = {"TableName": table, "Item": serialize(item)}
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        if expression_names:
            params["ExpressionAttributeNames"] = dict(expression_names)
        if expression_values:
            params["ExpressionAttributeValues"] = serialize(expression_values)
        self._client.put_item(**params)

    def add_to_number(
        self,
        table: str,
        key: Mapping[str, Any],
        *,
        attribute: str,
        delta: int,
    ) -> int:
        """数値属性へ delta をアトミックに加算し、加算後の値を返す。"""

        response = self._client.update_item(
            TableName=table,
            Key=serialize(key),
            UpdateExpression="ADD #attr :delta",
            ExpressionAttributeNames={"#attr": attribute},
            ExpressionAttributeValues=serialize({":delta": delta}),
            ReturnValues="UPDATED_NEW",
        )
        updated = deserialize(response.get("Attributes", {}))
        return int(updated.get(attribute, delta))
