from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Dict

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from ship_and_weigh.auth import deps
from ship_and_weigh.core.crypto import mint_nonce
from ship_and_weigh.core.settings import Settings

DEV = Settings(cognito_user_pool_id="", cognito_app_client_id="", nonce_secret="s3cret", admin_capability="manage_options")
COGNITO = Settings(cognito_user_pool_id="pool", cognito_app_client_id="client", cognito_region="us-east-1")


def build_request(config: Settings, headers: Dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "scheme": "http",
        "server": ("testserver", 80),
        "app": SimpleNamespace(state=SimpleNamespace(config=config)),
    }

    async def receive() -> Dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, receive)


def run_async(coro):
    return asyncio.run(coro)


def test_fallback_uses_x_user_sub_and_capabilities() -> None:
    req = build_request(DEV, {"x-user-sub": "admin-1", "x-user-capabilities": "edit_posts, manage_options"})
    principal = run_async(deps.get_principal(req))
    assert principal == {"user_sub": "admin-1", "capabilities": ["edit_posts", "manage_options"]}


def test_fallback_accepts_bearer_user_id() -> None:
    req = build_request(DEV, {"authorization": "Bearer user-1"})
    assert run_async(deps.get_principal(req))["user_sub"] == "user-1"


def test_fallback_requires_credentials() -> None:
    with pytest.raises(HTTPException) as exc:
        run_async(deps.get_principal(build_request(DEV)))
    assert exc.value.status_code == 401


def test_cognito_requires_bearer() -> None:
    with pytest.raises(HTTPException) as exc:
        run_async(deps.get_principal(build_request(COGNITO, {"x-user-sub": "spoof"})))
    assert exc.value.status_code == 401


def test_cognito_groups_become_capabilities(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_decode(config: Settings, token: str) -> Dict[str, Any]:
        assert token == "token123"
        return {"sub": "user-abc", "cognito:groups": ["manage_options"]}

    monkeypatch.setattr(deps, "_decode_cognito_token", fake_decode)
    req = build_request(COGNITO, {"authorization": "Bearer token123"})
    assert run_async(deps.get_principal(req)) == {"user_sub": "user-abc", "capabilities": ["manage_options"]}


def test_cognito_requires_subject(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(deps, "_decode_cognito_token", lambda config, token: {})
    with pytest.raises(HTTPException) as exc:
        run_async(deps.get_principal(build_request(COGNITO, {"authorization": "Bearer token123"})))
    assert exc.value.status_code == 401


def test_require_admin_rejects_missing_capability() -> None:
    req = build_request(DEV)
    with pytest.raises(HTTPException) as exc:
        run_async(deps.require_admin(req, {"user_sub": "u", "capabilities": ["edit_posts"]}))
    assert exc.value.status_code == 403


def test_require_admin_records_user() -> None:
    req = build_request(DEV)
    principal = {"user_sub": "u", "capabilities": ["manage_options"]}
    assert run_async(deps.require_admin(req, principal)) is principal
    assert req.state.user_sub == "u"


def test_require_nonce_accepts_minted_nonce() -> None:
    nonce = mint_nonce("s3cret", deps.NONCE_ACTION, "u", lifetime_seconds=DEV.nonce_lifetime_seconds)
    ctx = {"user_sub": "u", "capabilities": ["manage_options"]}
    assert run_async(deps.require_nonce(build_request(DEV), ctx, nonce)) is ctx


def test_require_nonce_rejects_other_action() -> None:
    assert deps.NONCE_ACTION == "sw_rest"
    nonce = mint_nonce("s3cret", "wp_rest", "u", lifetime_seconds=DEV.nonce_lifetime_seconds)
    ctx = {"user_sub": "u", "capabilities": ["manage_options"]}
    with pytest.raises(HTTPException) as exc:
        run_async(deps.require_nonce(build_request(DEV), ctx, nonce))
    assert exc.value.status_code == 403


def test_require_nonce_rejects_bad_nonce() -> None:
    ctx = {"user_sub": "u", "capabilities": ["manage_options"]}
    with pytest.raises(HTTPException) as exc:
        run_async(deps.require_nonce(build_request(DEV), ctx, "forged"))
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        run_async(deps.require_nonce(build_request(DEV), ctx, None))
    assert exc.value.status_code == 403


def test_require_nonce_fails_closed_without_secret() -> None:
    config = Settings(nonce_secret="")
    ctx = {"user_sub": "u", "capabilities": ["manage_options"]}
    with pytest.raises(HTTPException) as exc:
        run_async(deps.require_nonce(build_request(config), ctx, "anything"))
    assert exc.value.status_code == 500
