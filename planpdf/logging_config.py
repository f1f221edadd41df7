"""
Structured logging configuration using structlog.

All logs are output as JSON with consistent context fields. Request
handlers and background tasks bind report_id / user_id through
get_logger().
"""
import structlog
import logging
import sys

# Intake answers are customer data; never write them to logs
REDACTED_KEYS = ("form_data", "formData")


def redact_form_data(logger, method_name, event_dict):
    for key in REDACTED_KEYS:
        if key in event_dict:
            event_dict[key] = "[redacted]"
    return event_dict


def configure_logging(level: int = logging.INFO):
    """Configure structlog for JSON output with context."""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_form_data,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(service="planpdf")


# Create logger instance
logger = configure_logging()


def get_logger(**context):
    """
    Get a logger with additional context bound.

    Usage:
        log = get_logger(report_id=report_id, user_id=user_id)
        log.info("report_queued", dispatch="background")
    """
    return logger.bind(**context)
