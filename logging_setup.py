# media_link_icons/logging_setup.py
from __future__ import annotations

import logging
import logging.config

LOGGER_NAME = "media_link_icons"


class DefaultContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "item_id"):
            record.item_id = "-"
        if not hasattr(record, "artifact"):
            record.artifact = "-"
        return True


def setup_logging(verbosity: int = 1) -> None:
    """
    Configure a consistent logger for the project.
    - INFO by default, DEBUG when verbosity >= 2
    - Always prints item and artifact so logs are grep-able.
    """
    level = logging.DEBUG if verbosity >= 2 else logging.INFO

    fmt = (
        "%(asctime)s %(levelname)s "
        "item=%(item_id)s artifact=%(artifact)s "
        "%(message)s"
    )

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"std": {"format": fmt}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "std",
                "level": level,
                "filters": ["default_context"]
            }
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["console"], "level": level, "propagate": False}
        },
        "filters": {
            "default_context": {
                "()": DefaultContextFilter
            }
        },
    })


class ItemLogger(logging.LoggerAdapter):
    """Adapter carrying the run artifact and, once bound with for_item, the item id.

    User `extra` keys never clobber the bound context; keys that collide with
    LogRecord attributes are renamed to meta_<key>.
    """

    _RESERVED = {
        "name","msg","args","levelname","levelno","pathname","filename","module","lineno","funcName",
        "created","asctime","msecs","relativeCreated","thread","threadName","processName","process",
        "exc_info","exc_text","stack_info","stacklevel","message"
    }

    def process(self, msg: str, kwargs):
        extra = dict(self.extra)
        user_extra = kwargs.get("extra") or {}
        for k, v in user_extra.items():
            key = k if k not in self._RESERVED else f"meta_{k}"
            extra.setdefault(key, v)
        kwargs["extra"] = extra
        return msg, kwargs

    def for_item(self, item_id: object) -> "ItemLogger":
        return ItemLogger(self.logger, extra={**self.extra, "item_id": item_id})


def get_logger(*, artifact: str) -> ItemLogger:
    """
    Create a run-level logger; records without an item print item=- via
    DefaultContextFilter.
    Usage:
        run_log = get_logger(artifact="link-icons")
        log = run_log.for_item("{1C2D...}")
        log.info("marker inserted", extra={"href": "~/media/1C2D.ashx"})
    """
    return ItemLogger(logging.getLogger(LOGGER_NAME), extra={"artifact": artifact})
