# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging setup for the ShareDo workflow tools.

Records carry the system name and source of the workflow being processed,
taken from :class:`WorkflowContext` by :class:`WorkflowContextFilter`.
"""

import json
import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional

from sharedo_core.cli.config import SharedoConfig, get_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(workflow)s] %(message)s"
JSON_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"workflow": "%(workflow)s", "source": "%(workflow_source)s", "message": "%(message)s"}'
)


def _json_escape(value: str) -> str:
    return json.dumps(value)[1:-1]


workflow_name_var: ContextVar[str] = ContextVar("workflow_name", default="")
workflow_source_var: ContextVar[str] = ContextVar("workflow_source", default="")


class WorkflowContext:
    @staticmethod
    def set(workflow: str, source: str = ""):
        workflow_name_var.set(workflow)
        workflow_source_var.set(source)

    @staticmethod
    def clear():
        workflow_name_var.set("")
        workflow_source_var.set("")


class WorkflowContextFilter(logging.Filter):
    """Injects the current workflow context into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.workflow = workflow_name_var.get()
        record.workflow_source = workflow_source_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Renders :data:`JSON_FORMAT` with every field JSON-escaped.

    Tracebacks are folded into the message field so each record stays a
    single JSON object.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record, self.datefmt)
        message = record.message
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        values = dict(record.__dict__, message=message)
        return JSON_FORMAT % {
            key: _json_escape(value) if isinstance(value, str) else value
            for key, value in values.items()
        }


def configure_logging(
    config: Optional[SharedoConfig] = None, json_format: bool = False
) -> logging.Handler:
    """Install a single handler on the ``sharedo_core``/``sharedo_common`` loggers.

    Records are rendered as JSON when *json_format* or ``log_json`` is set.
    Logs go to stderr unless ``log_file`` is configured, in which case a
    rotating file handler is used when ``max_log_file_bytes`` is set.
    """
    cfg = config or get_config()

    handler: logging.Handler
    if cfg.log_file:
        if cfg.max_log_file_bytes:
            handler = RotatingFileHandler(
                cfg.log_file,
                maxBytes=cfg.max_log_file_bytes,
                backupCount=cfg.log_backup_count or 0,
            )
        else:
            handler = logging.FileHandler(cfg.log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)

    if json_format or cfg.log_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(WorkflowContextFilter())

    for name in ("sharedo_core", "sharedo_common"):
        logger = logging.getLogger(name)
        for existing in list(logger.handlers):
            logger.removeHandler(existing)
            existing.close()
        logger.addHandler(handler)
        logger.setLevel(cfg.log_level)
        logger.propagate = False
    return handler
