"""Google OAuth トークン (`Token` テーブル) のストア。"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from gcal_sms_notify.clients.dynamodb_client import DynamoDBClient
from gcal_sms_notify.core.logging import get_logger, log_event
from gcal_sms_notify.core.models import StoredGoogleToken
from gcal_sms_notify.stores.datastore import DynamoStore


class GoogleTokenCodec:
    def __init__(self, token_id: str) -> None:
        self.token_id = token_id

    def to_key(self, record_id: str) -> dict[str, Any]:
        return {"TokenId": record_id}

    def from_item(self, item: Mapping[str, Any]) -> StoredGoogleToken:
        content = item.get("Content") or {}
        expiry = content.get("expiry_date")
        return StoredGoogleToken(
            access_token=content.get("access_token"),
            refresh_token=content.get("refresh_token"),
            expiry_date=int(expiry) if isinstance(expiry, (int, Decimal)) else None,
        )

    def to_item(self, record: StoredGoogleToken) -> dict[str, Any]:
        content = {
            "access_token": record.access_token,
            "refresh_token": record.refresh_token,
            "expiry_date": record.expiry_date,
        }
        return {"TokenId": self.token_id, "Content": content}


class GoogleTokenStore:
    def __init__(
        self,
        *,
        table: str,
        token_id: str,
        client: DynamoDBClient,
        logger: logging.Logger | None = None,
    ) -> None:
        self._token_id = token_id
        self._store: DynamoStore[StoredGoogleToken] = DynamoStore(
            table=table, codec=GoogleTokenCodec(token_id), client=client
        )
        self._log = logger or get_logger("GoogleTokenStore")

    def get_token(self) -> StoredGoogleToken:
        """保存済みトークンを返す。無ければ DatastoreItemNotFoundError。"""

        log_event(self._log, logging.INFO, "Retrieving GoogleAuthToken...")
        return self._store.require(self._token_id)

    def save_token(self, token: StoredGoogleToken) -> StoredGoogleToken:
        log_event(self._log, logging.INFO, "Saving GoogleAuthToken...")
        return self._store.put(token)
