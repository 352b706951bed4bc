from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from ship_and_weigh.auth.deps import NONCE_ACTION
from ship_and_weigh.core.crypto import mint_nonce


async def ui_get_nonce(req: Request) -> Dict[str, Any]:
    config = req.app.state.config
    if not config.nonce_secret:
        raise HTTPException(500, "NONCE_SECRET not set")
    nonce = mint_nonce(
        config.nonce_secret,
        NONCE_ACTION,
        req.state.user_sub,
        lifetime_seconds=config.nonce_lifetime_seconds,
    )
    # Guaranteed validity is half the lifetime; it may last up to the full lifetime.
    return {"nonce": nonce, "expires_in": config.nonce_lifetime_seconds // 2}


async def healthz(req: Request) -> Dict[str, Any]:
    state = req.app.state
    return {
        "ok": True,
        "details": {
            "settings": len(state.settings_spec),
            "easypost_configured": state.verification_client.configured(),
        },
    }
