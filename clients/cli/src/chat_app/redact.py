"""Scrub credentials out of text before it reaches the log file."""

from __future__ import annotations

import re

_TOKEN_KEY_RE = re.compile(
    r"([\"']?(?:auth_token|session_token|access_token)[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)",
    flags=re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(Bearer\s+)([^\s]+)", flags=re.IGNORECASE)


def redact_text(text: object) -> str:
    rendered = str(text)
    rendered = _BEARER_RE.sub(r"\1[REDACTED]", rendered)
    rendered = _TOKEN_KEY_RE.sub(r"\1[REDACTED]", rendered)
    return rendered
