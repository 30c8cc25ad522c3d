"""
Shop configuration schema (``workshop_config.schema``).

Frozen dataclasses produced by ``workshop_config.loader`` from a YAML
configuration set.  Pure data: no I/O and no kernel imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class ChecklistItemDef:
    """A default completion-checklist item installed by seeding."""
    name: str
    sort_order: int = 0
    description: str | None = None


@dataclass(frozen=True)
class CallStatusDef:
    """A default front-of-house call status label."""
    name: str
    color: str
    sort_order: int = 0
    name_en: str | None = None


@dataclass(frozen=True)
class BusinessHours:
    """Opening hours (shop local time) and the call-attention threshold."""
    timezone: str = "Europe/Amsterdam"
    opening_hour: int = 9
    closing_hour: int = 17
    call_attention_hours: int = 3

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class ShopConfig:
    """
    The complete configuration of one workshop installation.

    ``tables`` is the ordered table layout of the front-of-house grid.
    """
    name: str
    version: int
    tables: tuple[str, ...]
    business_hours: BusinessHours = field(default_factory=BusinessHours)
    debounce_seconds: float = 0.5
    show_stock_warnings: bool = True
    checklist_items: tuple[ChecklistItemDef, ...] = ()
    call_statuses: tuple[CallStatusDef, ...] = ()
    checksum: str = ""

    def has_table(self, table_number: str) -> bool:
        return table_number in self.tables
