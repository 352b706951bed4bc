from __future__ import annotations

from typing import Any, Dict, Mapping

from ship_and_weigh.core.tables import PK_SETTING, ShippingTable
from ship_and_weigh.core.time import now_ts
from ship_and_weigh.services.settings_spec import SettingsSpecification


class SettingsStore:
    def __init__(self, spec: SettingsSpecification, table: ShippingTable) -> None:
        self.spec = spec
        self.table = table

    def get_settings(self) -> Dict[str, Any]:
        settings = self.spec.defaults()
        for item in self.table.query_partition(PK_SETTING):
            key = item.get("sk")
            if key in self.spec:
                settings[key] = _from_storage(self.spec[key].type, item.get("value"))
        return settings

    def save_settings(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Sanitize and persist every known key in ``values``; unknown keys are dropped."""
        ts = now_ts()
        for key, value in values.items():
            if key not in self.spec:
                continue
            self.table.put(
                {
                    "pk": PK_SETTING,
                    "sk": key,
                    "value": self.spec[key].sanitize(value),
                    "updated_at": ts,
                }
            )
        return self.get_settings()


def _from_storage(type_name: str, value: Any) -> Any:
    if type_name == "string[]":
        return [str(v) for v in (value or [])]
    if type_name == "boolean":
        return bool(value)
    return "" if value is None else str(value)
