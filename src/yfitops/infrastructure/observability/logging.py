"""Logging setup: JSON or compact text output, tagged with a per-request correlation ID."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, the correlation ID follows one HTTP command through every log line it
# causes: the playlist scan, each append batch, the reorder call. ContextVar is per
# asyncio task, so two overlapping /queue requests never mix their IDs. Outside a
# request (startup, background login) it stays "".
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Libraries that log every request at INFO; one queue command makes several calls
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")

TEXT_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(cid)s%(name)s:%(lineno)d │ %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


def get_correlation_id() -> str:
    """Correlation ID of the current task ("" outside a request)."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context.

    Args:
        correlation_id: ID to bind. None generates a fresh UUID4

    Returns:
        The bound ID
    """
    value = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(value)
    return value


class CorrelationIdFilter(logging.Filter):
    """Copies the bound correlation ID onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        # Short prefix for the text format, empty when there is no request
        record.cid = f"{record.correlation_id[:8]} │ " if record.correlation_id else ""
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that prints exception chains root-cause first.

    Only frames from our own package are shown, e.g.:

    ╰─► httpx.ConnectError: All connection attempts failed
        File "spotify_client.py", line 131, in _api_request
    ╰─► ExternalServiceError: Spotify request failed during get_me
    """

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "cid"):
            record.cid = ""
        return super().format(record)

    def formatException(self, ei: Any) -> str:
        exc_value = ei[1]
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        link: BaseException | None = exc_value
        while link is not None and link not in chain:
            chain.append(link)
            link = link.__cause__ or link.__context__

        out: list[str] = []
        for exc in reversed(chain):
            out.append(f"╰─► {type(exc).__name__}: {exc}")
            out.extend(_own_frames(exc))
        return "\n".join(out)


def _own_frames(exc: BaseException) -> list[str]:
    if exc.__traceback__ is None:
        return []
    rendered: list[str] = []
    for frame in traceback.extract_tb(exc.__traceback__):
        if "/site-packages/" in frame.filename or "yfitops" not in frame.filename:
            continue
        rendered.append(
            f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
        )
        if frame.line:
            rendered.append(f"      {frame.line.strip()}")
    return rendered


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """One JSON object per line, with app name and correlation ID."""

    def __init__(self, *args: Any, app_name: str = "yfitops", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.app_name = app_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.pop("cid", None)
        log_record.update(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            app=self.app_name,
            location=f"{record.module}.{record.funcName}:{record.lineno}",
        )

        if getattr(record, "correlation_id", ""):
            log_record["correlation_id"] = record.correlation_id
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


# Listen future me, the lifespan calls this once at startup. It swaps out the root
# handlers instead of adding to them, so calling it twice (tests do) never duplicates lines.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "yfitops",
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names mean INFO)
        json_format: JSON lines for log shipping instead of the text format
        app_name: Added to every JSON record
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    if json_format:
        handler.setFormatter(
            CustomJsonFormatter(JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S", app_name=app_name)
        )
    else:
        handler.setFormatter(CompactExceptionFormatter(fmt=TEXT_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging ready for %s (level=%s, json=%s)", app_name, log_level, json_format
    )
