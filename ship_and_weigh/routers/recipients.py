from __future__ import annotations

from typing import Any, Dict, List

from fastapi import Depends, Request

from ship_and_weigh.core.normalize import esc_attr, sanitize_text_field
from ship_and_weigh.metrics import record_recipient_change
from ship_and_weigh.models import RecipientAddReq, RecipientRemoveParams, parse_body, read_json_object
from ship_and_weigh.services.audit import audit_event, debug_event


async def ui_list_recipients(req: Request) -> List[Dict[str, Any]]:
    return req.app.state.recipient_store.get_recipients()


async def ui_add_recipient(req: Request) -> Dict[str, Any]:
    state = req.app.state
    body = parse_body(RecipientAddReq, await read_json_object(req))
    addresses = [esc_attr(a) for a in body.to_address]
    debug_event(state.config, "recipient_add_payload", user_sub=req.state.user_sub, to_address=addresses)

    recipient = state.recipient_store.add_recipient(addresses)
    record_recipient_change("add")
    audit_event(state.config, "recipient_add", req.state.user_sub, req, outcome="success", recipient_id=recipient["id"])
    return recipient


async def ui_remove_recipient(req: Request, params: RecipientRemoveParams = Depends()) -> Dict[str, Any]:
    state = req.app.state
    recipient_id = sanitize_text_field(params.uuid)
    removed = state.recipient_store.remove_recipient(recipient_id)
    if removed:
        record_recipient_change("remove")
    audit_event(
        state.config,
        "recipient_remove",
        req.state.user_sub,
        req,
        outcome="success" if removed else "not_found",
        recipient_id=recipient_id,
    )
    return {"uuid": recipient_id, "removed": removed}
