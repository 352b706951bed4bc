"""
Settings specification: which settings exist, their type, sanitizer and default.

The specification is built once at startup and shared by the settings store and
the API layer. It is immutable; a changed specification means a restart.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, create_model

from ship_and_weigh.core.normalize import (
    esc_attr,
    passthrough,
    sanitize_country,
    sanitize_email,
    sanitize_key,
    sanitize_text_field,
)

SANITIZERS: Mapping[str, Callable[[str], str]] = MappingProxyType({
    "text": sanitize_text_field,
    "attr": esc_attr,
    "country": sanitize_country,
    "key": sanitize_key,
    "email": sanitize_email,
    "none": passthrough,
})

SETTING_TYPES: Mapping[str, Any] = MappingProxyType({
    "string": str,
    "string[]": List[str],
    "boolean": bool,
})


@dataclass(frozen=True)
class SettingSpec:
    key: str
    type: str
    sanitizer: str
    default: Any

    def sanitize(self, value: Any) -> Any:
        fn = SANITIZERS[self.sanitizer]
        if self.type == "string":
            return fn(value)
        if self.type == "string[]":
            return [fn(v) for v in value]
        return bool(value)


def _check_default(key: str, type_name: str, default: Any) -> None:
    ok = {
        "string": isinstance(default, str),
        "string[]": isinstance(default, list) and all(isinstance(v, str) for v in default),
        "boolean": isinstance(default, bool),
    }[type_name]
    if not ok:
        raise ValueError(f"setting {key!r}: default does not match type {type_name}")


class SettingsSpecification:
    def __init__(self, entries: Mapping[str, Mapping[str, Any]]) -> None:
        specs: Dict[str, SettingSpec] = {}
        for key, entry in entries.items():
            if not isinstance(entry, Mapping):
                raise ValueError(f"setting {key!r}: entry must be an object")
            type_name = entry.get("type", "string")
            if type_name not in SETTING_TYPES:
                raise ValueError(f"setting {key!r}: unknown type {type_name!r}")
            sanitizer = entry.get("sanitizer", "text")
            if sanitizer not in SANITIZERS:
                raise ValueError(f"setting {key!r}: unknown sanitizer {sanitizer!r}")
            default = entry.get("default", [] if type_name == "string[]" else False if type_name == "boolean" else "")
            _check_default(key, type_name, default)
            specs[key] = SettingSpec(key=key, type=type_name, sanitizer=sanitizer, default=default)
        self._specs: Mapping[str, SettingSpec] = MappingProxyType(specs)
        self._params_model: Optional[Type[BaseModel]] = None

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __getitem__(self, key: str) -> SettingSpec:
        return self._specs[key]

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._specs)

    def defaults(self) -> Dict[str, Any]:
        return {key: _copy(spec.default) for key, spec in self._specs.items()}

    def params_model(self) -> Type[BaseModel]:
        """Pydantic model for a settings update: every key optional, unknown keys ignored."""
        if self._params_model is None:
            fields = {key: (Optional[SETTING_TYPES[spec.type]], None) for key, spec in self._specs.items()}
            self._params_model = create_model(
                "SettingsUpdateParams",
                __config__=ConfigDict(extra="ignore"),
                **fields,
            )
        return self._params_model

    def describe(self) -> Dict[str, Dict[str, Any]]:
        return {
            key: {"type": spec.type, "sanitizer": spec.sanitizer, "default": _copy(spec.default)}
            for key, spec in self._specs.items()
        }

    @classmethod
    def from_file(cls, path: str) -> "SettingsSpecification":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{path}: settings specification must be a JSON object")
        return cls(data)


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value


DEFAULT_SPEC: Mapping[str, Mapping[str, Any]] = {
    # Sender
    "name": {"type": "string", "sanitizer": "text", "default": ""},
    "company": {"type": "string", "sanitizer": "text", "default": ""},
    "street1": {"type": "string", "sanitizer": "text", "default": ""},
    "street2": {"type": "string", "sanitizer": "text", "default": ""},
    "city": {"type": "string", "sanitizer": "text", "default": ""},
    "state": {"type": "string", "sanitizer": "text", "default": ""},
    "zip": {"type": "string", "sanitizer": "text", "default": ""},
    "country": {"type": "string", "sanitizer": "country", "default": "US"},
    "phone": {"type": "string", "sanitizer": "text", "default": ""},
    "email": {"type": "string", "sanitizer": "email", "default": ""},
    # Shipping
    "label_format": {"type": "string", "sanitizer": "key", "default": "pdf"},
    "carriers": {"type": "string[]", "sanitizer": "text", "default": ["USPS"]},
    "notify_recipients": {"type": "boolean", "sanitizer": "none", "default": True},
}


def load_settings_spec(path: str = "") -> SettingsSpecification:
    if path:
        return SettingsSpecification.from_file(path)
    return SettingsSpecification(DEFAULT_SPEC)
