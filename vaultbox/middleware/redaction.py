"""Redaction of audit/log payloads."""
from typing import Any, Dict

from vaultbox.logging_hardening import redact

SENSITIVE_KEYS = {
    'password', 'username', 'ip', 'email', 'connectiondata', 'notes',
    'secret', 'token', 'idtoken', 'masterkey', 'master_encryption_key',
}


def redact_string(text: str) -> str:
    """Redact sensitive patterns from a string."""
    return redact(text)


def redact_dict(data: Dict[str, Any], max_content_length: int = 200) -> Dict[str, Any]:
    """Redact sensitive fields from a dictionary."""
    if not isinstance(data, dict):
        return data

    result = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            result[key] = '[REDACTED]'
        elif isinstance(value, str) and len(value) > max_content_length:
            result[key] = f'[TRUNCATED:{len(value)} chars]'
        elif isinstance(value, str):
            result[key] = redact_string(value)
        elif isinstance(value, dict):
            result[key] = redact_dict(value, max_content_length)
        elif isinstance(value, list):
            result[key] = [redact_dict(v, max_content_length) if isinstance(v, dict) else v for v in value]
        else:
            result[key] = value

    return result
