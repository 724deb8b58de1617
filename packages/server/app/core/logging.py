"""
Structured logging setup for the API server.

Every event carries the service name. While a request is being handled, its
request id, method and path are bound through structlog contextvars, so
service-level events (`org.join_accepted`, `subscription.changed`, ...) can be
traced back to the call that produced them.
"""

from __future__ import annotations

import logging
import uuid

import structlog
from fastapi import Request

SERVICE_NAME = "rosterhub"
REQUEST_ID_HEADER = "X-Request-ID"

log = structlog.get_logger()


def add_service_name(service_name: str):
    """Processor stamping the service name on every event."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging(level: str = "info", fmt: str = "json", *, service_name: str = SERVICE_NAME) -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        add_service_name(service_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


async def request_context_middleware(request: Request, call_next):
    """Bind request context for the duration of one request and echo the request id."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        log.debug("http.request", status=response.status_code)
        return response
    finally:
        structlog.contextvars.clear_contextvars()
