from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from ship_and_weigh.core.errors import ValidationError
from ship_and_weigh.models import parse_body, read_json_object
from ship_and_weigh.services.audit import audit_event


async def ui_get_settings(req: Request) -> Dict[str, Any]:
    return req.app.state.settings_store.get_settings()


async def ui_update_settings(req: Request) -> Dict[str, Any]:
    state = req.app.state
    body = await read_json_object(req)
    params = parse_body(state.settings_spec.params_model(), body)

    # Unknown keys never reach the model; present-but-null keys are not a value.
    values = params.model_dump(exclude_unset=True)
    nulls = sorted(k for k, v in values.items() if v is None)
    if nulls:
        raise ValidationError(f"Settings cannot be null: {', '.join(nulls)}")

    settings = state.settings_store.save_settings(values)
    audit_event(
        state.config,
        "settings_update",
        req.state.user_sub,
        req,
        outcome="success",
        keys=sorted(values),
        ignored=sorted(k for k in body if k not in state.settings_spec),
    )
    return settings


async def ui_get_settings_spec(req: Request) -> Dict[str, Any]:
    return req.app.state.settings_spec.describe()
