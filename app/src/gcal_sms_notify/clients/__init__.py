"""外部サービスへの接続ヘルパーをまとめたパッケージ。"""

from __future__ import annotations

__all__ = [
    "dynamodb_client",
    "google_client",
    "ses_client",
    "sns_client",
]
