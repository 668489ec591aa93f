"""実行終了時に、自動リフレッシュされた Google トークンを保存し直す。"""

from __future__ import annotations

import asyncio
import logging

from gcal_sms_notify.core.logging import get_logger, log_error, log_event
from gcal_sms_notify.core.models import CredentialSnapshot
from gcal_sms_notify.stores.google_token_store import GoogleTokenStore

SAVED_LINE = "Saved updated GoogleAuthToken"
NO_UPDATE_LINE = "No GoogleAuthToken update necessary"


class CredentialReconciler:
    def __init__(self, *, token_store: GoogleTokenStore, logger: logging.Logger | None = None) -> None:
        self.token_store = token_store
        self._log = logger or get_logger("CredentialReconciler")

    async def reconcile(self, snapshot: CredentialSnapshot) -> str:
        """4項目が揃っている (= リフレッシュが起きた) 場合のみ上書き保存する。"""

        if not snapshot.is_refreshed:
            log_event(self._log, logging.INFO, NO_UPDATE_LINE)
            return NO_UPDATE_LINE

        try:
            await asyncio.to_thread(self.token_store.save_token, snapshot.to_stored_token())
        except Exception as exc:
            log_error(self._log, "Error saving updated GoogleAuthToken", error=exc)
            return f"Error saving updated GoogleAuthToken: {exc}"
        return SAVED_LINE
