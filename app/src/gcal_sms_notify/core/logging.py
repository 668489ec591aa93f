"""JSONロギングの共通ヘルパー。"""

from __future__ import annotations

import json
import logging
import traceback
from typing import Any

ROOT_LOGGER_NAME = "gcal_sms_notify"

_LOGGER = logging.getLogger(ROOT_LOGGER_NAME)


def configure_logging(*, verbose: bool) -> None:
    """パッケージロガーのレベルとハンドラを設定する。何度呼んでもハンドラは1つ。"""

    _LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not _LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(name)s %(message)s"))
        _LOGGER.addHandler(handler)


def get_logger(component: str) -> logging.Logger:
    """コンポーネント名を接頭辞に持つ子ロガーを返す。"""

    return _LOGGER.getChild(component)


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    **fields: Any,
) -> None:
    if not logger.isEnabledFor(level):
        return
    payload = {
        "level": logging.getLevelName(level),
        "component": logger.name.rsplit(".", 1)[-1],
        "message": message,
    }
    payload.update(fields)
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_error(logger: logging.Logger, message: str, *, error: Any, **fields: Any) -> None:
    payload = {
        "level": "ERROR",
        "component": logger.name.rsplit(".", 1)[-1],
        "message": message,
        "error_json": _to_error_json(error),
        "traceback": traceback.format_exc(),
    }
    payload.update(fields)
    logger.error(json.dumps(payload, ensure_ascii=False, default=str))


def _to_error_json(error: Any) -> str:
    if isinstance(error, (dict, list)):
        return json.dumps(error, ensure_ascii=False, default=str)
    return json.dumps({"message": str(error)}, ensure_ascii=False)
