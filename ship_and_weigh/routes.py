from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from fastapi import APIRouter, Depends

from ship_and_weigh.auth.deps import require_admin, require_nonce
from ship_and_weigh.models import HealthResp, NonceResp, RecipientOut, RecipientRemoveResp, VerificationResult
from ship_and_weigh.routers.easypost import ui_verify_address
from ship_and_weigh.routers.misc import healthz, ui_get_nonce
from ship_and_weigh.routers.recipients import ui_add_recipient, ui_list_recipients, ui_remove_recipient
from ship_and_weigh.routers.settings import ui_get_settings, ui_get_settings_spec, ui_update_settings

PUBLIC = "public"
ADMIN = "admin"
ADMIN_WRITE = "admin_write"  # admin capability plus anti-forgery nonce

_AUTH_DEPENDENCIES = {
    PUBLIC: [],
    ADMIN: [Depends(require_admin)],
    ADMIN_WRITE: [Depends(require_admin), Depends(require_nonce)],
}


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    endpoint: Callable[..., Any]
    auth: str = ADMIN
    status_code: int = 200
    response_model: Optional[Any] = None
    tags: Sequence[str] = ()
    namespaced: bool = True


ROUTES: Sequence[Route] = (
    Route("GET", "/settings", ui_get_settings, tags=("settings",)),
    Route("POST", "/settings", ui_update_settings, auth=ADMIN_WRITE, status_code=201, tags=("settings",)),
    Route("GET", "/settings/spec", ui_get_settings_spec, tags=("settings",)),
    Route("GET", "/recipients", ui_list_recipients, response_model=List[RecipientOut], tags=("recipients",)),
    Route("POST", "/recipients", ui_add_recipient, auth=ADMIN_WRITE, response_model=RecipientOut, tags=("recipients",)),
    Route(
        "DELETE",
        "/recipients",
        ui_remove_recipient,
        auth=ADMIN_WRITE,
        response_model=RecipientRemoveResp,
        tags=("recipients",),
    ),
    Route(
        "GET",
        "/easypost/verify-address",
        ui_verify_address,
        response_model=VerificationResult,
        tags=("easypost",),
    ),
    Route("GET", "/nonce", ui_get_nonce, response_model=NonceResp, tags=("session",)),
    Route("GET", "/healthz", healthz, auth=PUBLIC, response_model=HealthResp, namespaced=False, tags=("misc",)),
)


def build_routers(prefix: str, routes: Sequence[Route] = ROUTES) -> List[APIRouter]:
    api = APIRouter(prefix=prefix)
    root = APIRouter()
    for route in routes:
        target = api if route.namespaced else root
        target.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            status_code=route.status_code,
            response_model=route.response_model,
            dependencies=list(_AUTH_DEPENDENCIES[route.auth]),
            tags=list(route.tags),
        )
    return [api, root]
