"""
Logging builder: assemble a dictConfig mapping from Settings and apply it.

Handler selection:

| LOG_TO_STDOUT | LOG_DIR set | Active handlers                   |
| ------------- | ----------- | --------------------------------- |
| true          | any         | console + error_console           |
| false         | no          | console + error_console           |
| false         | yes         | console + file + error_file       |
"""

import logging
import logging.config
from pathlib import Path

from appletree.config.settings import Settings
from appletree.utils.project import get_project_name

from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`. Pure; nothing is applied.
    """
    formatters = {
        "standard": {
            # colours only make sense for a human reading text output
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "fmt": TEXT_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers),
                "level": settings.LOG_LEVEL,
            },
            "appletree": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            # bound parameters include school contact details
            "sqlalchemy.engine": {
                "level": "INFO" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply `make_dict_config(settings)`, creating LOG_DIR first when files are written.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    # keeps %(request_id)s safe for handlers added later outside dictConfig
    logging.getLogger().addFilter(RequestIdFilter())

    logging.getLogger(__name__).debug(
        "logging.configured",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
    )
