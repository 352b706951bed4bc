from __future__ import annotations

import uuid
from typing import Any, Dict, List, Sequence

from ship_and_weigh.core.errors import PersistenceError, ValidationError
from ship_and_weigh.core.tables import PK_RECIPIENT, ShippingTable
from ship_and_weigh.core.time import now_ms

MAX_ADDRESSES = 50
MAX_ADDRESS_LEN = 320
# Stored addresses are attribute-escaped; "&quot;" is the longest expansion of one character.
MAX_STORED_ADDRESS_LEN = MAX_ADDRESS_LEN * 6
_ID_ATTEMPTS = 3


def is_recipient_id(value: str) -> bool:
    try:
        parsed = uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return False
    return str(parsed) == value.lower()


def _clean_addresses(addresses: Sequence[str]) -> List[str]:
    if isinstance(addresses, (str, bytes)) or not isinstance(addresses, (list, tuple)):
        raise ValidationError("to_address must be a list of strings")
    if not addresses:
        raise ValidationError("to_address must not be empty")
    if len(addresses) > MAX_ADDRESSES:
        raise ValidationError(f"Too many addresses (max {MAX_ADDRESSES})")
    cleaned: List[str] = []
    for address in addresses:
        if not isinstance(address, str) or not address.strip():
            raise ValidationError("to_address entries must be non-empty strings")
        if len(address) > MAX_STORED_ADDRESS_LEN:
            raise ValidationError(f"Address too long (max {MAX_STORED_ADDRESS_LEN})")
        cleaned.append(address.strip())
    return cleaned


def _to_recipient(item: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": item["sk"], "addresses": list(item.get("addresses") or [])}


class RecipientStore:
    def __init__(self, table: ShippingTable) -> None:
        self.table = table

    def add_recipient(self, addresses: Sequence[str]) -> Dict[str, Any]:
        cleaned = _clean_addresses(addresses)
        for _ in range(_ID_ATTEMPTS):
            recipient_id = str(uuid.uuid4())
            item = {
                "pk": PK_RECIPIENT,
                "sk": recipient_id,
                "addresses": cleaned,
                "created_at": now_ms(),
            }
            if self.table.put_new(item):
                return _to_recipient(item)
        raise PersistenceError("Could not allocate a recipient id")

    def get_recipients(self) -> List[Dict[str, Any]]:
        items = self.table.query_partition(PK_RECIPIENT)
        items.sort(key=lambda it: (int(it.get("created_at", 0)), it["sk"]))
        return [_to_recipient(it) for it in items]

    def remove_recipient(self, recipient_id: str) -> bool:
        if not isinstance(recipient_id, str) or not is_recipient_id(recipient_id):
            raise ValidationError("uuid must be a well-formed UUID")
        return self.table.delete(PK_RECIPIENT, recipient_id.lower()) is not None
