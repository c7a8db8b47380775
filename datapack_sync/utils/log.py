"""
log.py
Logging setup shared by the datapack scripts. `RedactingFilter` masks
credential-looking keys in dict / list arguments passed to log calls
(request bodies, error payloads).
"""

import logging

SENSITIVE_PATTERNS = ("API_KEY", "TOKEN", "PASSWORD", "SECRET", "CREDENTIAL")


def sanitize_log_data(data):
    """Return a copy of `data` with values under sensitive keys replaced by '[REDACTED]'."""
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if any(pattern in str(key).upper() for pattern in SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_log_data(value)
        return sanitized
    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_log_data(item) for item in data)
    return data


class RedactingFilter(logging.Filter):
    """Masks credentials in dict/list log arguments before they are formatted."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = sanitize_log_data(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(sanitize_log_data(arg) for arg in record.args)
        if isinstance(record.msg, (dict, list)):
            record.msg = sanitize_log_data(record.msg)
        return True


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s"
    )
    # Quiet urllib3 connection chatter unless asked for it
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())
