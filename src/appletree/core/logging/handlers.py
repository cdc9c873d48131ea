"""
Handler configuration factories for `logging.config.dictConfig`.

Each returns a plain dict; `builder.make_dict_config` decides which ones are active.
"""

from pathlib import Path

from appletree.config.settings import Settings

_FILTERS = ["request_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    # "json" and "standard" are both declared by the builder
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": list(_FILTERS),
        "stream": "ext://sys.stdout",
    }


def get_error_console_handler(settings: Settings) -> dict:
    """ERROR and above, always as JSON, on stderr."""
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": list(_FILTERS),
        "stream": "ext://sys.stderr",
    }


def _rotating_file(settings: Settings, filename: str, *, level: str, formatter: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": formatter,
        "level": level,
        "filename": str(Path(settings.LOG_DIR) / filename),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


def get_file_handler(settings: Settings) -> dict:
    return _rotating_file(settings, "appletree.log", level=settings.LOG_LEVEL,
                          formatter=_formatter_name(settings))


def get_error_file_handler(settings: Settings) -> dict:
    # error files stay structured regardless of LOG_FORMAT
    return _rotating_file(settings, "errors.log", level="ERROR", formatter="json")
