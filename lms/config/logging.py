"""
Structured logging configuration.
Outputs logs in JSON format for production observability, tagging each
record with the request id and resolved tenant of the current request.
"""
import json
import logging
import sys
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)


class RequestContextFilter(logging.Filter):
    """Copy request-scoped context variables onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = request_id_var.get()
        tenant_id = tenant_id_var.get()
        if request_id is not None:
            record.request_id = request_id
        if tenant_id is not None:
            record.tenant_id = tenant_id
        return True


class JsonFormatter(logging.Formatter):
    """Format log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "request_id"):
            log_obj["request_id"] = getattr(record, "request_id")
        if hasattr(record, "tenant_id"):
            log_obj["tenant_id"] = getattr(record, "tenant_id")

        return json.dumps(log_obj)


def configure_logging(debug: bool = False) -> None:
    """Configure root logger with JSON formatter."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())

    if debug:
        # Human-readable format for debugging
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )
    else:
        formatter = JsonFormatter()

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Reduce noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").handlers = [handler]
    logging.getLogger("stripe").setLevel(logging.WARNING)
