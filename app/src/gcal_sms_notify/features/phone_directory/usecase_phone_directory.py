"""連絡先シートの行から 名前→電話番号 の辞書を作るユースケース。"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from gcal_sms_notify.core.logging import get_logger, log_event

PhoneDirectory = dict[str, str]

_NON_DIGITS = re.compile(r"[^0-9]")


def to_phone_number(raw: object) -> str | None:
    """米国の電話番号を `+1XXXXXXXXXX` 形式へ正規化する。解釈できなければ None。"""

    if not isinstance(raw, str):
        return None
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+1{digits}"
    return None


def build_phone_directory(
    rows: Iterable[Sequence[object]],
    *,
    logger: logging.Logger | None = None,
) -> PhoneDirectory:
    """(名前, 電話番号) の行を小文字の名前をキーにした辞書へ変換する。

    列が2つ未満の行と、電話番号を正規化できない行は黙って捨てる。
    同名の行が複数あれば後勝ち。
    """

    log = logger or get_logger("PhoneDirectory")
    directory: PhoneDirectory = {}
    for row in rows:
        if len(row) < 2:
            continue
        name = str(row[0]).strip().lower()
        phone_number = to_phone_number(row[1])
        if not name or phone_number is None:
            log_event(log, logging.DEBUG, "Could not parse contact row", row=list(row))
            continue
        directory[name] = phone_number
    log_event(log, logging.DEBUG, "Parsed contacts", contacts=directory)
    return directory
