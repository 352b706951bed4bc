from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Optional

from .time import now_ts


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8").rstrip("=")


def nonce_tick(lifetime_seconds: int, ts: Optional[int] = None) -> int:
    # A nonce lives for one or two half-lifetimes depending on when it was minted.
    half = max(1, int(lifetime_seconds) // 2)
    return int(now_ts() if ts is None else ts) // half


def _nonce_for_tick(secret: str, action: str, user_sub: str, tick: int) -> str:
    msg = f"{tick}|{action}|{user_sub}".encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).digest()
    return b64url(sig[:16])


def mint_nonce(secret: str, action: str, user_sub: str, *, lifetime_seconds: int, ts: Optional[int] = None) -> str:
    if not secret:
        raise RuntimeError("NONCE_SECRET not set")
    return _nonce_for_tick(secret, action, user_sub, nonce_tick(lifetime_seconds, ts))


def verify_nonce(
    secret: str,
    action: str,
    user_sub: str,
    nonce: str,
    *,
    lifetime_seconds: int,
    ts: Optional[int] = None,
) -> bool:
    if not secret:
        raise RuntimeError("NONCE_SECRET not set")
    if not nonce:
        return False
    tick = nonce_tick(lifetime_seconds, ts)
    for candidate_tick in (tick, tick - 1):
        expected = _nonce_for_tick(secret, action, user_sub, candidate_tick)
        if hmac.compare_digest(expected.encode("utf-8"), nonce.encode("utf-8")):
            return True
    return False
