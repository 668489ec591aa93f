"""月次 SMS 送信枠による送信許可 (admission) の判定。"""

from __future__ import annotations

import logging
import threading

from gcal_sms_notify.core.logging import get_logger, log_event
from gcal_sms_notify.core.models import QuotaState


class QuotaGate:
    """baseline と今回の許可数を持ち、`try_admit()` だけで枠を消費させる。

    `try_admit()` は await を含まない同期メソッドで、さらにロックで守っている。
    asyncio のタスクからでもスレッドからでも、判定と加算の間に割り込まれない。
    送信失敗時も許可済みの枠は戻さない。
    """

    def __init__(
        self,
        *,
        month: str,
        baseline: int,
        ceiling: int,
        logger: logging.Logger | None = None,
    ) -> None:
        self._month = month
        self._baseline = baseline
        self._ceiling = ceiling
        self._admitted = 0
        self._lock = threading.Lock()
        self._log = logger or get_logger("QuotaGate")

    def try_admit(self) -> bool:
        with self._lock:
            if self._baseline + self._admitted >= self._ceiling:
                admitted = False
            else:
                self._admitted += 1
                admitted = True
            used = self._baseline + self._admitted
        log_event(
            self._log,
            logging.DEBUG,
            "Admission decided",
            admitted=admitted,
            used=used,
            ceiling=self._ceiling,
        )
        return admitted

    def snapshot(self) -> QuotaState:
        with self._lock:
            return QuotaState(
                month=self._month,
                baseline=self._baseline,
                admitted_this_run=self._admitted,
                ceiling=self._ceiling,
            )

    def exhausted_line(self) -> str:
        state = self.snapshot()
        return f"Monthly quota was reached: ({state.used}/{state.ceiling})"
