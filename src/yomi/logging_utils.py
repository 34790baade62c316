from __future__ import annotations

from copy import copy, deepcopy
from typing import Any
from urllib.parse import unquote

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter as UvicornAccessFormatter

_DEBUG_LOG = False

ACCESS_FORMATTER = "yomi.logging_utils.Utf8AccessFormatter"
DEBUG_FORMAT = "%(levelprefix)s [%(name)s] %(message)s"


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[yomi debug] {message}")


def decode_request_path(full_path: str) -> str:
    """Decode the percent-escaped path of ``/api/word/%E7%8C%AB?x=1``.

    Only the path is decoded; the query string is left as sent.
    """
    path, sep, query = full_path.partition("?")
    return unquote(path, encoding="utf-8", errors="replace") + sep + query


class Utf8AccessFormatter(UvicornAccessFormatter):
    """Access log formatter that shows looked-up words instead of escapes."""

    def formatMessage(self, record):  # type: ignore[override]
        args = record.args
        if not isinstance(args, tuple) or len(args) != 5 or not isinstance(args[2], str):
            return super().formatMessage(record)
        client_addr, method, full_path, http_version, status_code = args
        decoded = copy(record)
        decoded.args = (client_addr, method, decode_request_path(full_path), http_version, status_code)
        return super().formatMessage(decoded)


def build_uvicorn_log_config(*, debug: bool = False, access_log: bool = True) -> dict[str, Any]:
    config = deepcopy(LOGGING_CONFIG)
    formatters = config.setdefault("formatters", {})
    access = formatters.get("access")
    if isinstance(access, dict):
        access["()"] = ACCESS_FORMATTER
    loggers = config.setdefault("loggers", {})
    if not access_log:
        loggers["uvicorn.access"] = {"handlers": [], "level": "INFO", "propagate": False}
    if debug:
        default = formatters.get("default")
        if isinstance(default, dict):
            default["fmt"] = DEBUG_FORMAT
        for logger in loggers.values():
            if isinstance(logger, dict):
                logger["level"] = "DEBUG"
    return config
