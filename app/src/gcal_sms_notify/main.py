"""ローカル/ Lambda エントリポイント。"""

from __future__ import annotations

import asyncio
from typing import Any

from .app import create_runner
from .core.logging import configure_logging
from .core.models import RunReport
from .core.settings import load_settings


def run_once() -> RunReport:
    """設定を読み込み、通知処理を1回だけ最後まで実行する。"""

    settings = load_settings()
    configure_logging(verbose=settings.verbose)
    return asyncio.run(create_runner(settings).run())


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, object]:
    """AWS Lambda (EventBridge のスケジュール) から呼び出されるエントリポイント。

    RunFailedError はそのまま送出し、呼び出しを失敗として扱わせる。
    """

    return run_once().to_dict()


def run_local() -> None:
    """`uv run gcal-sms-notify` 用のローカル実行関数。"""

    report = run_once()
    for line in [*report.events, *report.finalize]:
        print(line)
