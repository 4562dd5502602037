"""Request logging middleware with PII filtering.

This module provides structured logging for all API requests with:
- Unique request IDs for tracing
- Request duration tracking
- Secret and PII filtering to keep account data out of logs
"""

import json
import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# PII and secret patterns to filter from logs
PII_PATTERNS = [
    # Provider access/public tokens (e.g., access-sandbox-<uuid>)
    (re.compile(r'\b(?:access|public|link)-(?:sandbox|development|production)-[0-9a-f-]{8,}\b', re.I), '[TOKEN]'),
    # Card/account numbers (any 13-19 digit sequence, with or without spaces/dashes)
    (re.compile(r'\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{1,7}\b'), '[ACCOUNT]'),
    # Email addresses
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'), '[EMAIL]'),
    # Phone numbers (international format)
    (re.compile(r'\+\d{1,3}[-.\s]?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{4,5}'), '[PHONE]'),
    # Bearer tokens in echoed headers
    (re.compile(r'(Bearer\s+)[A-Za-z0-9._~+/=-]+', re.I), r'\1[TOKEN]'),
]

# ``extra`` keys copied into JSON log lines when present. Keep in step with
# the keys services pass to ``extra=``.
EXTRA_FIELDS = (
    # request
    "request_id",
    "user_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "endpoint",
    # errors
    "error_code",
    "error_type",
    "provider_code",
    "details",
    "errors",
    # records
    "transaction_id",
    "budget_id",
    "goal_id",
    "rule_id",
    "institution_id",
    "category",
    "previous_category",
    "categories",
    "is_pattern",
    "period",
    "rules",
    # sync
    "status",
    "start_date",
    "end_date",
    "accounts",
    "transactions",
    "new_accounts",
    "updated_accounts",
    "new_transactions",
    "updated_transactions",
    "skipped_transactions",
    "skipped",
    # sweeps and batch jobs
    "sweep",
    "users",
    "succeeded",
    "failed",
    "token_expired",
    "budgets",
    "computed",
    "updated",
    "total",
)


def filter_pii(text: str) -> str:
    """Remove PII and credentials from text using regex patterns.

    Args:
        text: Input text that may contain PII

    Returns:
        Text with PII replaced by placeholders
    """
    if not text:
        return text

    filtered = text
    for pattern, replacement in PII_PATTERNS:
        filtered = pattern.sub(replacement, filtered)

    return filtered


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests with PII filtering."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()
        path = filter_pii(str(request.url.path))

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                },
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response


class JSONLogFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": filter_pii(record.getMessage()),
        }

        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = filter_pii(self.formatException(record.exc_info))

        return json.dumps(log_data, default=str)
