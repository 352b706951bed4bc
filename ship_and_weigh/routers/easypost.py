from __future__ import annotations

from typing import Any, Dict

from fastapi import Depends, HTTPException, Request

from ship_and_weigh.core.normalize import sanitize_text_field
from ship_and_weigh.metrics import record_verification
from ship_and_weigh.models import AddressParams
from ship_and_weigh.services.audit import audit_event


def ui_verify_address(req: Request, params: AddressParams = Depends()) -> Dict[str, Any]:
    # Plain def: runs in the threadpool while the provider call blocks.
    state = req.app.state
    address = {k: sanitize_text_field(v) for k, v in params.as_dict().items() if v is not None}
    try:
        result = state.verification_client.verify_address(address)
    except HTTPException as exc:
        record_verification("error")
        audit_event(state.config, "address_verify", req.state.user_sub, req, outcome="error", status_code=exc.status_code)
        raise
    outcome = "verified" if result["verified"] else "rejected"
    record_verification(outcome)
    audit_event(state.config, "address_verify", req.state.user_sub, req, outcome=outcome)
    return result
