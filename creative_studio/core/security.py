"""
Security Utilities
==================

Helpers that keep credentials out of logs and error messages.
"""

import re

# Common API key patterns, most specific first
_KEY_PATTERNS = [
    # Generic Bearer tokens
    (r"Bearer\s+[A-Za-z0-9_\-\.]+", "Bearer ***REDACTED***"),
    # Anthropic keys (checked before the generic OpenAI prefix)
    (r"sk-ant-[A-Za-z0-9_\-]+", "sk-ant-***REDACTED***"),
    # OpenAI keys
    (r"sk-[A-Za-z0-9_\-]{16,}", "sk-***REDACTED***"),
    # xAI keys
    (r"xai-[A-Za-z0-9_\-]{16,}", "xai-***REDACTED***"),
    # Replicate tokens
    (r"r8_[A-Za-z0-9]+", "r8_***REDACTED***"),
    # Google API keys
    (r"AIza[A-Za-z0-9_\-]{35}", "AIza***REDACTED***"),
    # Keys passed as query parameters
    (r"([?&]key=)[^&\s]+", r"\1***REDACTED***"),
    # Generic API key patterns
    (r"api[_-]?key['\"]?\s*[:=]\s*['\"]?[A-Za-z0-9_\-]+", "api_key: ***REDACTED***"),
    # Environment variable patterns
    (
        r"(OPENAI_API_KEY|ANTHROPIC_API_KEY|XAI_API_KEY|MISTRAL_API_KEY|GOOGLE_API_KEY|REPLICATE_API_TOKEN)=[^\s]+",
        r"\1=***REDACTED***",
    ),
]


def redact_api_key(text: str) -> str:
    """
    Redact API keys and sensitive tokens from text.

    Args:
        text: Text that might contain API keys

    Returns:
        Text with API keys redacted
    """
    if not text:
        return text

    result = text
    for pattern, replacement in _KEY_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)

    return result
