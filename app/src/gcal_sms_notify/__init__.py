"""gcal_sms_notify パッケージ。"""

from .app import create_runner
from .main import lambda_handler, run_local

__all__ = ["create_runner", "lambda_handler", "run_local"]
