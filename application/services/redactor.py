from __future__ import annotations

from typing import Any, Dict, List, Sequence

SENSITIVE_KEYS = {"password", "passwd", "auth_token", "token", "authorization", "cookie", "set-cookie"}
MASK = "********"


def mask_value(key: str, value: Any) -> Any:
    if key.lower() in SENSITIVE_KEYS and value is not None:
        return MASK
    return value


def mask_dict(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: mask_value(k, v) for k, v in d.items()}


def mask_secret(text: str, secrets: Sequence[str]) -> str:
    """Replace every occurrence of the given secret strings in free text."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, MASK)
    return text


def mask_argv(argv: Sequence[str], secrets: Sequence[str]) -> List[str]:
    return [mask_secret(a, secrets) for a in argv]
