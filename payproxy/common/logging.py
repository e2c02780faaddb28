"""Structured JSON logging with request context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
order_id_ctx: ContextVar[str] = ContextVar("order_id", default="")
payment_id_ctx: ContextVar[str] = ContextVar("payment_id", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        record.request_id = request_id_ctx.get()
        record.order_id = order_id_ctx.get()
        record.payment_id = payment_id_ctx.get()
        return True


def configure_logging(service_name: str, log_level: str = "INFO") -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter(service_name)
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(request_id)s %(order_id)s %(payment_id)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("payproxy")
