"""
Configuration Loader (``workshop_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``workshop_config.schema`` dataclasses.  Runtime callers use
``workshop_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Parse and validation problems raise ``ConfigError`` listing every
  problem found; nothing is silently defaulted for required keys.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing top-level keys or invalid values  -> ``ConfigError``.
* A checklist item or call status without ``name``  -> ``KeyError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from workshop_config.schema import BusinessHours, CallStatusDef, ChecklistItemDef, ShopConfig
from workshop_kernel.exceptions import WorkshopKernelError


class ConfigError(WorkshopKernelError):
    """The configuration set is missing required keys or holds invalid values."""

    code: str = "CONFIG_INVALID"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(
            f"Invalid configuration {source}:\n" + "\n".join(f"  - {e}" for e in self.errors)
        )


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _parse_tables(raw: Any) -> tuple[str, ...]:
    """
    Tables are listed explicitly, or as ``{numbered: N, lettered: [..]}``
    for the usual ``1..N`` plus lettered layout.
    """
    if isinstance(raw, dict):
        numbered = [str(i) for i in range(1, int(raw.get("numbered", 0)) + 1)]
        lettered = [str(t) for t in raw.get("lettered", [])]
        return tuple(numbered + lettered)
    return tuple(str(t) for t in raw or ())


def parse_shop_config(data: dict[str, Any], source: str = "<dict>") -> ShopConfig:
    """Parse and validate a configuration mapping."""
    errors: list[str] = []
    for key in ("name", "version", "tables"):
        if key not in data:
            errors.append(f"missing required key '{key}'")
    if errors:
        raise ConfigError(source, errors)

    hours_raw = data.get("business_hours", {}) or {}
    hours = BusinessHours(
        timezone=str(hours_raw.get("timezone", BusinessHours.timezone)),
        opening_hour=int(hours_raw.get("opening_hour", BusinessHours.opening_hour)),
        closing_hour=int(hours_raw.get("closing_hour", BusinessHours.closing_hour)),
        call_attention_hours=int(
            hours_raw.get("call_attention_hours", BusinessHours.call_attention_hours)
        ),
    )

    checklist = tuple(
        ChecklistItemDef(
            name=str(item["name"]),
            sort_order=int(item.get("sort_order", i)),
            description=item.get("description"),
        )
        for i, item in enumerate(data.get("checklist_items", []) or [])
    )
    call_statuses = tuple(
        CallStatusDef(
            name=str(item["name"]),
            color=str(item.get("color", "#808080")),
            sort_order=int(item.get("sort_order", i)),
            name_en=item.get("name_en"),
        )
        for i, item in enumerate(data.get("call_statuses", []) or [])
    )

    config = ShopConfig(
        name=str(data["name"]),
        version=int(data["version"]),
        tables=_parse_tables(data["tables"]),
        business_hours=hours,
        debounce_seconds=float(data.get("debounce_seconds", 0.5)),
        show_stock_warnings=bool(data.get("show_stock_warnings", True)),
        checklist_items=checklist,
        call_statuses=call_statuses,
        checksum=compute_checksum(data),
    )

    errors = validate_shop_config(config)
    if errors:
        raise ConfigError(source, errors)
    return config


def validate_shop_config(config: ShopConfig) -> list[str]:
    """Return every structural problem found; empty when valid."""
    errors: list[str] = []
    if not config.tables:
        errors.append("at least one table is required")
    if len(set(config.tables)) != len(config.tables):
        errors.append("table numbers must be unique")
    hours = config.business_hours
    if not (0 <= hours.opening_hour < hours.closing_hour <= 24):
        errors.append(
            f"opening hours {hours.opening_hour}-{hours.closing_hour} are not a valid range"
        )
    if hours.call_attention_hours < 0:
        errors.append("call_attention_hours cannot be negative")
    try:
        ZoneInfo(hours.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"unknown timezone '{hours.timezone}'")
    if config.debounce_seconds < 0:
        errors.append("debounce_seconds cannot be negative")
    names = [c.name for c in config.checklist_items]
    if len(set(names)) != len(names):
        errors.append("checklist item names must be unique")
    return errors


def load_shop_config(path: Path) -> ShopConfig:
    return parse_shop_config(load_yaml_file(path), source=str(path))
