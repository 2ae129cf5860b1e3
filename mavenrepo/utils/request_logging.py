"""Shared helpers for logging incoming HTTP requests."""

from __future__ import annotations

from typing import Any


def log_request(logger, request: Any) -> None:
    """
    Emit a structured log line for the current Flask request.

    Upload bodies are binary artifacts, so only their length is logged.
    Credentials are reduced to the presented username.
    """
    method = getattr(request, "method", None)
    path = getattr(request, "path", None)
    if not (method or path):
        return

    authorization = getattr(request, "authorization", None)
    username = getattr(authorization, "username", None) if authorization else None
    logger.info(
        "HTTP request method=%s path=%s query=%s length=%s user=%s agent=%s",
        method or "<unknown>",
        path or "",
        _query_preview(request),
        getattr(request, "content_length", None) or 0,
        username or "<anonymous>",
        _truncate(_user_agent(request)),
    )


def _query_preview(request: Any) -> str:
    args = getattr(request, "args", None)
    if not args:
        return "{}"
    try:
        return _truncate(str(args.to_dict(flat=True)))
    except AttributeError:
        return _truncate(str(dict(args)))


def _truncate(value: str, *, limit: int = 256) -> str:
    if len(value) <= limit:
        return value
    return f"{value[:limit]}...<truncated>"


def _user_agent(request: Any) -> str:
    # Werkzeug's UserAgent is falsy for agents it does not recognise.
    headers = getattr(request, "headers", None)
    if headers is None:
        return ""
    return headers.get("User-Agent", "") or ""
