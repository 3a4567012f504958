from __future__ import annotations

from copy import copy, deepcopy
from typing import Any
from urllib.parse import unquote, unquote_plus

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter as UvicornAccessFormatter

__all__ = ["SearchAccessFormatter", "build_uvicorn_log_config", "decode_request_path"]


def decode_request_path(value: str) -> str:
    """Decode ``/api/search?q=%E3%81%98%E3%82%80`` into readable text."""
    path, sep, query = value.partition("?")
    try:
        decoded = unquote(path, encoding="utf-8", errors="replace")
        if sep:
            decoded = f"{decoded}?{unquote_plus(query, encoding='utf-8', errors='replace')}"
    except (TypeError, ValueError):
        return value
    return decoded


class SearchAccessFormatter(UvicornAccessFormatter):
    """Access log formatter that prints search queries as typed."""

    def formatMessage(self, record):  # type: ignore[override]
        args = record.args
        if not isinstance(args, tuple) or len(args) != 5:
            return super().formatMessage(record)
        client_addr, method, full_path, http_version, status_code = args
        if not isinstance(full_path, str):
            return super().formatMessage(record)
        new_record = copy(record)
        new_record.args = (client_addr, method, decode_request_path(full_path), http_version, status_code)
        return super().formatMessage(new_record)


def build_uvicorn_log_config() -> dict[str, Any]:
    config = deepcopy(LOGGING_CONFIG)
    formatter = config.get("formatters", {}).get("access")
    if isinstance(formatter, dict):
        formatter["()"] = "cardyomi.logging_utils.SearchAccessFormatter"
    return config
