from __future__ import annotations

import json
from typing import Any, Dict

from ship_and_weigh.core.normalize import client_ip_from_request
from ship_and_weigh.core.settings import Settings
from ship_and_weigh.core.time import now_ts


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str), flush=True)


def audit_event(config: Settings, event: str, user_sub: str, request=None, **fields: Any) -> None:
    if not config.audit_log_enabled:
        return
    payload: Dict[str, Any] = {"event": event, "user_sub": user_sub, "ts": now_ts(), **fields}
    if request is not None:
        payload["ip"] = client_ip_from_request(request)
        payload["user_agent"] = request.headers.get("user-agent", "")[:256]
    _emit(payload)


def debug_event(config: Settings, event: str, **fields: Any) -> None:
    # Diagnostic payload dumps; only in debug mode.
    if not config.debug:
        return
    _emit({"level": "debug", "event": event, "ts": now_ts(), **fields})
