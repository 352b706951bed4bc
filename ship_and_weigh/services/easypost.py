"""
EasyPost address verification proxy.

One blocking call per verification, no retries. Delivery verification results
are relayed as ``{verified, normalized_address, errors, provider_id}``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import requests

from ship_and_weigh.core.errors import AuthError, UpstreamError

ADDRESS_FIELDS = ("street1", "street2", "city", "state", "zip", "country", "name", "company")

GENERIC_FAILURE = {"field": "address", "message": "Address could not be verified"}


def _provider_message(resp: requests.Response) -> Any:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return body


def _field_errors(raw: Any) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for err in raw or []:
        if not isinstance(err, dict):
            continue
        entry: Dict[str, Any] = {
            "field": str(err.get("field") or "address"),
            "message": str(err.get("message") or "Invalid value"),
        }
        if err.get("code"):
            entry["code"] = str(err["code"])
        if err.get("suggestion") is not None:
            entry["suggestion"] = str(err["suggestion"])
        out.append(entry)
    return out


def _normalized(body: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    return {field: body.get(field) for field in ADDRESS_FIELDS}


def parse_verification(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise UpstreamError("Malformed verification response")
    verifications = body.get("verifications")
    delivery = verifications.get("delivery") if isinstance(verifications, dict) else None
    if not isinstance(delivery, dict) or "success" not in delivery:
        raise UpstreamError("Verification response missing delivery result")

    verified = bool(delivery.get("success"))
    errors = _field_errors(delivery.get("errors"))
    if not verified and not errors:
        errors = [dict(GENERIC_FAILURE)]
    return {
        "verified": verified,
        "normalized_address": _normalized(body) if verified else None,
        "errors": errors,
        "provider_id": body.get("id"),
    }


class EasyPostClient:
    def __init__(self, api_key: str, *, base_url: str = "https://api.easypost.com/v2", timeout: float = 15.0) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def configured(self) -> bool:
        return bool(self.api_key)

    def verify_address(self, address: Mapping[str, Optional[str]]) -> Dict[str, Any]:
        if not self.configured():
            raise AuthError("EasyPost API key not configured")

        payload = {k: address[k] for k in ADDRESS_FIELDS if address.get(k)}
        try:
            r = requests.post(
                f"{self.base_url}/addresses",
                auth=(self.api_key, ""),
                json={"address": payload, "verify": ["delivery"]},
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamError("EasyPost request timed out", status_code=504) from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"EasyPost unreachable: {exc.__class__.__name__}") from exc

        if r.status_code in (401, 403):
            raise AuthError("EasyPost rejected the API key", provider_status=r.status_code, provider_error=_provider_message(r))
        if r.status_code == 422:
            return self._rejected(r)
        if r.status_code not in (200, 201):
            raise UpstreamError(
                f"EasyPost verification failed: {r.status_code}",
                provider_status=r.status_code,
                provider_error=_provider_message(r),
            )
        try:
            body = r.json()
        except ValueError as exc:
            raise UpstreamError("EasyPost returned a non-JSON body", provider_status=r.status_code) from exc
        return parse_verification(body)

    def _rejected(self, r: requests.Response) -> Dict[str, Any]:
        # 422: the provider refused the address itself, which is a verification outcome.
        detail = _provider_message(r)
        if not isinstance(detail, dict):
            raise UpstreamError("EasyPost verification failed: 422", provider_status=422, provider_error=detail)
        errors = _field_errors(detail.get("errors"))
        if not errors:
            errors = [{"field": "address", "message": str(detail.get("message") or GENERIC_FAILURE["message"])}]
            if detail.get("code"):
                errors[0]["code"] = str(detail["code"])
        return {"verified": False, "normalized_address": None, "errors": errors, "provider_id": None}
