from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")
_WS_RE = re.compile(r"[\r\n\t ]+")
_KEY_RE = re.compile(r"[^a-z0-9_\-]")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def client_ip_from_request(req) -> str:
    xff = req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    client = getattr(req, "client", None)
    return client.host if client else "0.0.0.0"


def sanitize_text_field(s: str) -> str:
    """Plain single-line text: no tags, no line breaks, no encoded octets, trimmed."""
    s = _TAG_RE.sub("", s or "")
    s = _OCTET_RE.sub("", s)
    s = _WS_RE.sub(" ", s)
    return s.strip()


def esc_attr(s: str) -> str:
    return html.escape((s or "").strip(), quote=True)


def sanitize_country(s: str) -> str:
    return sanitize_text_field(s).upper()


def sanitize_key(s: str) -> str:
    return _KEY_RE.sub("", (s or "").lower())


def sanitize_email(s: str) -> str:
    s = sanitize_text_field(s).lower()
    if len(s) > 254 or not _EMAIL_RE.match(s):
        return ""
    return s


def passthrough(s: str) -> str:
    return s
