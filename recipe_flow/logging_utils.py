# recipe_flow/logging_utils.py
"""
Structured logging for recipe_flow.

One line per entry:
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<Detail>|<Context>|<END>

<Context> is built from any `extra={...}` keys a call passes (slug, outcome,
upload, ...), rendered as k=v pairs.
"""
from __future__ import annotations

import datetime
import logging
import uuid

RUN_ID: str = uuid.uuid4().hex[:8]

# LogRecord attributes that are not caller-supplied context
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "run_id"}


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        dt = datetime.datetime.fromtimestamp(record.created)
        run_id = getattr(record, "run_id", RUN_ID)
        context = " ".join(
            f"{k}={v}" for k, v in sorted(record.__dict__.items()) if k not in _RESERVED
        )
        line = (
            f"{run_id}|{dt:%Y-%m-%d}|{dt:%H:%M:%S}|{record.levelname}|"
            f"{record.filename}:{record.lineno}|{record.module}.{record.funcName}|"
            f"{record.getMessage()}|{context}|<END>"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def init_logging(level: int | str | None = None) -> None:
    """
    Attach the structured handler to the `recipe_flow` logger once.
    Safe to call repeatedly (app factory, tests, REPL); only an explicit
    `level` changes the threshold after the first call.
    """
    root = logging.getLogger("recipe_flow")
    if level is not None:
        root.setLevel(level)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return
    if level is None:
        root.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)


class ContextLogger(logging.LoggerAdapter):
    """
    `extra` keys that collide with LogRecord attributes (filename, module,
    message, ...) would make Logger.makeRecord raise; they are logged as
    ctx_<key> instead.
    """

    def process(self, msg, kwargs):
        extra = kwargs.get("extra")
        if extra:
            kwargs["extra"] = {(f"ctx_{k}" if k in _RESERVED else k): v for k, v in extra.items()}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Modules call get_logger(__name__); names under recipe_flow share one handler."""
    init_logging()
    return ContextLogger(logging.getLogger(name), {})
