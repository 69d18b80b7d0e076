"""Logging Hardening and Redaction.

This module provides filters to prevent sensitive data (encrypted field
blobs, master key material, plaintext passwords) from appearing in
application logs.
"""
import logging
import re

_B64 = r"[A-Za-z0-9+/]+={0,2}"
# 16-byte salt, 12-byte nonce, 16-byte tag once base64 encoded
_SALT = r"[A-Za-z0-9+/]{22}=="
_NONCE = r"[A-Za-z0-9+/]{16}"
_TAG = r"[A-Za-z0-9+/]{22}=="

SECRET_PATTERNS = [
    # salt:nonce:tag:ciphertext field blobs
    (re.compile(rf"{_SALT}:{_NONCE}:{_TAG}:(?:{_B64})?"), "[REDACTED_BLOB]"),
    (re.compile(r'("(?:password|connectionData|masterKey|idToken)":\s*")[^"]*(")'), r"\1[REDACTED]\2"),
    # Also catch keyword-based assignments
    (re.compile(r"(?i)\b(password|master_encryption_key|master_key)=\S+"), r"\1=[REDACTED]"),
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def redact(text: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)

        # Also redact arguments if they are strings
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                redact(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


def setup_logging_redaction() -> None:
    """Apply the SecretRedactionFilter to the root logger and its handlers."""
    redact_filter = SecretRedactionFilter()

    root_logger = logging.getLogger()

    # Remove existing filters if any (to avoid duplicates)
    for f in root_logger.filters[:]:
        if isinstance(f, SecretRedactionFilter):
            root_logger.removeFilter(f)
    root_logger.addFilter(redact_filter)

    # Records from child loggers skip root filters but do reach root handlers
    for handler in root_logger.handlers:
        for f in handler.filters[:]:
            if isinstance(f, SecretRedactionFilter):
                handler.removeFilter(f)
        handler.addFilter(redact_filter)

    logging.info("Logging redaction filters active.")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root handler, then install redaction on it."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    setup_logging_redaction()
