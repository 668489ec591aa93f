"""ユースケース間で共有するデータモデル。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(slots=True, frozen=True)
class NotificationCandidate:
    """1件のカレンダーイベントから導出した未送信の SMS 通知。"""

    recipient_name: str
    phone_number: str | None
    message: str
    event_id: str | None = None

    @property
    def invalid_reason(self) -> str | None:
        """送信許可の判定前に弾くべき理由。問題なければ None。"""

        if not self.phone_number:
            return f"No phone number for {self.recipient_name}"
        if not self.message:
            return "Rendered message is empty"
        return None

    @property
    def is_valid(self) -> bool:
        return self.invalid_reason is None


@dataclass(slots=True, frozen=True)
class QuotaState:
    """今回の実行における月次送信枠の状態スナップショット。"""

    month: str
    baseline: int
    admitted_this_run: int
    ceiling: int

    @property
    def used(self) -> int:
        return self.baseline + self.admitted_this_run


@dataclass(slots=True, frozen=True)
class MonthCount:
    """DynamoDB `SmsCount` テーブルの1レコード。"""

    month: str
    count: int


@dataclass(slots=True, frozen=True)
class StoredGoogleToken:
    """DynamoDB `Token` テーブルに保存する Google OAuth トークン。"""

    access_token: str | None
    refresh_token: str | None
    expiry_date: int | None


@dataclass(slots=True, frozen=True)
class CredentialSnapshot:
    """認可後に保持している資格情報。`id_token` は自動リフレッシュが起きた印。"""

    access_token: str | None
    refresh_token: str | None
    expiry_date: int | None
    id_token: str | None = None

    @property
    def is_refreshed(self) -> bool:
        return bool(
            self.access_token and self.refresh_token and self.expiry_date and self.id_token
        )

    def to_stored_token(self) -> StoredGoogleToken:
        return StoredGoogleToken(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expiry_date=self.expiry_date,
        )


@dataclass(slots=True, frozen=True)
class DispatchResult:
    """SMS 1件の送信結果。"""

    status: Literal["SENT", "SIMULATED", "FAILED"]
    phone_number: str
    message: str
    detail: str | None = None

    @property
    def line(self) -> str:
        if self.status == "SENT":
            return f"SMS sent to {self.phone_number}: {self.message}"
        if self.status == "SIMULATED":
            return f"Simulate SMS to {self.phone_number}: {self.message}"
        return f"SMS to {self.phone_number} failed: {self.detail}"


@dataclass(slots=True)
class RunReport:
    """1回の実行結果。`events` はイベント順の行、`finalize` は後処理の行。"""

    state: str
    events: list[str] = field(default_factory=list)
    finalize: list[str] = field(default_factory=list)
    quota: QuotaState | None = None

    def to_dict(self) -> dict[str, object]:
        return {"status": self.state, "events": list(self.events), "finalize": list(self.finalize)}
