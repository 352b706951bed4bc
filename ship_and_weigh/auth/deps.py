from __future__ import annotations

import base64
import json
from functools import lru_cache
from typing import Any, Dict, List, Optional

import jwt
import requests
from fastapi import Depends, Header, HTTPException, Request

from ship_and_weigh.core.crypto import verify_nonce
from ship_and_weigh.core.errors import AuthenticationError, AuthorizationError
from ship_and_weigh.core.settings import Settings

NONCE_ACTION = "sw_rest"


def app_config(request: Request) -> Settings:
    return request.app.state.config


def _cognito_enabled(config: Settings) -> bool:
    return bool(config.cognito_user_pool_id and config.cognito_app_client_id)


def _cognito_issuer(config: Settings) -> str:
    region = config.cognito_region or config.aws_region
    return f"https://cognito-idp.{region}.amazonaws.com/{config.cognito_user_pool_id}"


@lru_cache(maxsize=4)
def _cognito_jwks(issuer: str) -> Dict[str, Any]:
    resp = requests.get(f"{issuer}/.well-known/jwks.json", timeout=10)
    resp.raise_for_status()
    return resp.json()


def _resolve_cognito_key(issuer: str, kid: str) -> Dict[str, Any]:
    for key in _cognito_jwks(issuer).get("keys", []):
        if key.get("kid") == kid:
            return key
    raise AuthenticationError("Unknown Cognito key id")


def _decode_cognito_token(config: Settings, token: str) -> Dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token header") from exc

    issuer = _cognito_issuer(config)
    key = _resolve_cognito_key(issuer, header.get("kid", ""))
    public_key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            # access tokens carry client_id instead of aud
            audience=config.cognito_app_client_id if config.cognito_expected_token_use == "id" else None,
            issuer=issuer,
            options={"verify_aud": config.cognito_expected_token_use == "id"},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    expected_use = config.cognito_expected_token_use
    if expected_use and payload.get("token_use") != expected_use:
        raise AuthenticationError("Unexpected token use")
    if expected_use == "access" and payload.get("client_id") != config.cognito_app_client_id:
        raise AuthenticationError("Token issued for another client")
    return payload


def _decode_jwt_sub(token: str) -> Optional[str]:
    if token.count(".") != 2:
        return None
    _, payload, _ = token.split(".", 2)
    if not payload:
        return None
    padding = "=" * (-len(payload) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(payload + padding).decode("utf-8"))
    except (ValueError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    sub = data.get("sub") if isinstance(data, dict) else None
    return sub if isinstance(sub, str) and sub.strip() else None


def extract_bearer_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid Authorization header")
    return token.strip()


def _split_capabilities(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, (list, tuple)):
        return []
    return [str(c).strip() for c in raw if str(c).strip()]


async def get_principal(request: Request) -> Dict[str, Any]:
    """
    Resolve the caller and their capabilities.

    Cognito: verified JWT, capabilities from the ``cognito:groups`` claim.
    Dev fallback: ``X-USER-SUB`` or ``Authorization: Bearer <user_id>``, with
    capabilities from ``X-USER-CAPABILITIES`` (comma separated).
    """
    config = app_config(request)
    if _cognito_enabled(config):
        token = extract_bearer_token(request.headers.get("authorization", ""))
        payload = _decode_cognito_token(config, token)
        user_sub = payload.get("sub") or payload.get("cognito:username") or payload.get("username")
        if not user_sub:
            raise AuthenticationError("Token missing subject")
        return {"user_sub": str(user_sub), "capabilities": _split_capabilities(payload.get("cognito:groups"))}

    user_sub = request.headers.get("x-user-sub")
    if not user_sub:
        token = extract_bearer_token(request.headers.get("authorization", ""))
        user_sub = _decode_jwt_sub(token) or token
    return {
        "user_sub": user_sub,
        "capabilities": _split_capabilities(request.headers.get("x-user-capabilities", "")),
    }


async def require_admin(request: Request, principal: Dict[str, Any] = Depends(get_principal)) -> Dict[str, Any]:
    capability = app_config(request).admin_capability
    if capability not in principal.get("capabilities", []):
        raise AuthorizationError(f"Missing capability: {capability}")
    request.state.user_sub = principal["user_sub"]
    return principal


async def require_nonce(
    request: Request,
    ctx: Dict[str, Any] = Depends(require_admin),
    x_sw_nonce: Optional[str] = Header(default=None, alias="X-SW-Nonce"),
) -> Dict[str, Any]:
    config = app_config(request)
    try:
        ok = verify_nonce(
            config.nonce_secret,
            NONCE_ACTION,
            ctx["user_sub"],
            x_sw_nonce or "",
            lifetime_seconds=config.nonce_lifetime_seconds,
        )
    except RuntimeError as exc:
        raise HTTPException(500, "NONCE_SECRET not set") from exc
    if not ok:
        raise AuthorizationError("Invalid or missing X-SW-Nonce")
    return ctx
