from __future__ import annotations

from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .errors import PersistenceError

# Single table layout
# pk: SETTING     sk: <setting key>
# pk: RECIPIENT   sk: <recipient uuid>
PK_SETTING = "SETTING"
PK_RECIPIENT = "RECIPIENT"


def _fail(op: str, exc: Exception) -> PersistenceError:
    if isinstance(exc, ClientError):
        msg = exc.response.get("Error", {}).get("Message", str(exc))
    else:
        msg = str(exc)
    return PersistenceError(f"DynamoDB {op} failed: {msg}")


class ShippingTable:
    """Thin wrapper over a boto3 Table that turns storage failures into PersistenceError."""

    def __init__(self, table: Any) -> None:
        self.table = table

    def put(self, item: Dict[str, Any], **kwargs: Any) -> None:
        try:
            self.table.put_item(Item=item, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise _fail("put_item", exc) from exc

    def put_new(self, item: Dict[str, Any]) -> bool:
        """Insert only if the key is free; False when an item already holds it."""
        try:
            self.table.put_item(Item=item, ConditionExpression="attribute_not_exists(pk)")
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return False
            raise _fail("put_item", exc) from exc
        except BotoCoreError as exc:
            raise _fail("put_item", exc) from exc
        return True

    def delete(self, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        """Delete by key and return the removed item, or None when nothing was there."""
        try:
            resp = self.table.delete_item(Key={"pk": pk, "sk": sk}, ReturnValues="ALL_OLD")
        except (ClientError, BotoCoreError) as exc:
            raise _fail("delete_item", exc) from exc
        return resp.get("Attributes") or None

    def query_partition(self, pk: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("pk").eq(pk)}
        while True:
            try:
                resp = self.table.query(**kwargs)
            except (ClientError, BotoCoreError) as exc:
                raise _fail("query", exc) from exc
            items.extend(resp.get("Items", []))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return items
            kwargs["ExclusiveStartKey"] = last
