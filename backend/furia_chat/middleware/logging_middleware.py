"""
ASGI middleware that logs every API request with its outcome.

Pure ASGI (not BaseHTTPMiddleware) so the request body can be observed
without consuming it. Logged per request: method, path, chat session header,
status code, duration, sanitized bodies and, for failures, the JSON:API
error detail.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, redact_url_secrets, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 5000


def _sanitize_body(raw: bytes) -> Optional[str]:
    """Decode a body and mask secrets; JSON bodies are filtered key by key."""
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(redact_url_secrets(text), MAX_BODY_LOG_LENGTH)
    filtered = filter_sensitive_data(payload)
    return truncate_large_data(json.dumps(filtered, ensure_ascii=False), MAX_BODY_LOG_LENGTH)


def _extract_error_detail(body_text: Optional[str]) -> Optional[str]:
    """Pull ``errors[0].detail`` out of a JSON:API error document."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, 500)
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get("detail")
        if payload.get("detail"):
            return str(payload["detail"])
    return None


def _header(headers: List[tuple], name: bytes) -> Optional[str]:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("utf-8", errors="ignore")
    return None


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = scope.get("headers", [])
        client = scope.get("client")
        fields: Dict[str, Any] = {
            "request_id": id(scope),
            "method": method,
            "path": path,
            "client": client[0] if client else None,
            "session_header": _header(headers, b"x-session-id"),
        }

        request_chunks = []
        response_chunks = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        logger.info(f"Request started: {method} {path}", extra={"extra_fields": fields})

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            fields["duration_ms"] = round((time.time() - start_time) * 1000, 2)
            logger.error(
                f"Request failed: {method} {path} - {e!r}",
                exc_info=True,
                extra={"extra_fields": fields},
            )
            raise

        fields["duration_ms"] = round((time.time() - start_time) * 1000, 2)
        fields["status_code"] = status_code
        request_body = _sanitize_body(b"".join(request_chunks))
        response_body = _sanitize_body(b"".join(response_chunks))

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Bodies for {method} {path}: request={request_body or '-'} response={response_body or '-'}",
                extra={"extra_fields": {**fields, "request_body": request_body, "response_body": response_body}},
            )

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({fields['duration_ms']:.2f}ms)"
        if status_code >= 400:
            error_detail = _extract_error_detail(response_body)
            fields["error_detail"] = error_detail
            if error_detail:
                message += f" | error_detail={error_detail}"

        logger.log(log_level, message, extra={"extra_fields": fields})
