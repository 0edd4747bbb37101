import logging.config
import re
from pathlib import Path

import structlog
from decouple import config

# ---------------------------------------------------------------------------
# Remote backend
# ---------------------------------------------------------------------------
API_URL = config("FERRETEX_API_URL", default="http://localhost:3000").rstrip("/")

REQUEST_TIMEOUT = config("FERRETEX_REQUEST_TIMEOUT", default=10.0, cast=float)

# ---------------------------------------------------------------------------
# Local persistence
# ---------------------------------------------------------------------------
STORAGE_PATH = Path(
    config(
        "FERRETEX_STORAGE_PATH",
        default=str(Path.home() / ".ferretex" / "storage.json"),
    )
).expanduser()

STORAGE_KEY = "ferretex:v1"
TOKEN_KEY = "ferretex:token"

# ---------------------------------------------------------------------------
# Synchronization / staff panel
# ---------------------------------------------------------------------------
POLL_INTERVAL_SECONDS = config("FERRETEX_POLL_INTERVAL", default=4.0, cast=float)

ORDERS_LIST_LIMIT = config("FERRETEX_ORDERS_LIMIT", default=200, cast=int)

LOW_STOCK_THRESHOLD = config("FERRETEX_LOW_STOCK", default=5, cast=int)

# ---------------------------------------------------------------------------
# Structured Logging (structlog + stdlib logging)
# ---------------------------------------------------------------------------
LOG_LEVEL = config("FERRETEX_LOG_LEVEL", default="INFO")

LOG_JSON = config("FERRETEX_LOG_JSON", default=True, cast=bool)

SENSITIVE_PATTERN = re.compile(
    r"(bearer\s+)([A-Za-z0-9\-._~+/]+=*)"
    r"|(password|passwd|secret|token|authorization)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks passwords, tokens and bearer credentials in log values."""
    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub("***MASKED***", value)
    return event_dict


# Shared processors used by both structlog and stdlib logging
_shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def build_logging_config(level=None, json_output=None):
    """Return the ``logging.config.dictConfig`` payload for the client."""
    level = level or LOG_LEVEL
    json_output = LOG_JSON if json_output is None else json_output
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": _shared_processors,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        },
        "loggers": {
            "urllib3": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def configure_logging(level=None, json_output=None):
    """Wire structlog into stdlib logging.

    Called once by the composition root; safe to call again (the last
    call wins).
    """
    structlog.configure(
        processors=[
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(build_logging_config(level, json_output))
