"""
Settings providers -- process-wide preference flags behind explicit accessors.

Responsibility:
    Replaces ambient global flags with an injectable ``SettingsProvider``.
    Readers call typed getters; writers go through ``set``; every change
    fires the registered invalidation listeners so cached read models can
    refetch.

Two implementations:
    - ``InMemorySettingsProvider``: per-process, non-authoritative (the
      per-device preference case).
    - ``DatabaseSettingsProvider``: shop-wide, stored in ``admin_settings``.
      Flush-only; the caller owns the transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from workshop_kernel.logging_config import get_logger
from workshop_kernel.models.settings import AdminSetting

logger = get_logger("services.settings")

SHOW_STOCK_WARNINGS = "show_stock_warnings"

DEFAULTS: dict[str, str] = {
    SHOW_STOCK_WARNINGS: "true",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

SettingsListener = Callable[[str, "str | None"], None]


class SettingsProvider(ABC):
    """Typed access to named settings with change notification."""

    def __init__(self) -> None:
        self._listeners: list[SettingsListener] = []

    @abstractmethod
    def _read(self, key: str) -> str | None:
        ...

    @abstractmethod
    def _write(self, key: str, value: str, actor_id: UUID | None) -> None:
        ...

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self._read(key)
        if value is None:
            return DEFAULTS.get(key, default) if default is None else default
        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self.get(key)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Setting {key!r} is not a boolean: {raw!r}")

    def set(self, key: str, value: str | bool, actor_id: UUID | None = None) -> None:
        text = ("true" if value else "false") if isinstance(value, bool) else str(value)
        previous = self._read(key)
        self._write(key, text, actor_id)
        logger.info(
            "setting_changed",
            extra={"setting_key": key, "previous": previous, "value": text},
        )
        if previous != text:
            self._notify(key, text)

    def on_change(self, listener: SettingsListener) -> Callable[[], None]:
        """Register an invalidation listener; returns an unregister callable."""
        self._listeners.append(listener)

        def _unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unregister

    def _notify(self, key: str, value: str | None) -> None:
        for listener in list(self._listeners):
            listener(key, value)


class InMemorySettingsProvider(SettingsProvider):
    def __init__(self, initial: dict[str, str] | None = None):
        super().__init__()
        self._values: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> str | None:
        return self._values.get(key)

    def _write(self, key: str, value: str, actor_id: UUID | None) -> None:
        self._values[key] = value


class DatabaseSettingsProvider(SettingsProvider):
    """Settings persisted in ``admin_settings``."""

    def __init__(self, session: Session):
        super().__init__()
        self._session = session

    def _row(self, key: str) -> AdminSetting | None:
        return self._session.execute(
            select(AdminSetting).where(AdminSetting.setting_key == key)
        ).scalar_one_or_none()

    def _read(self, key: str) -> str | None:
        row = self._row(key)
        return row.setting_value if row is not None else None

    def _write(self, key: str, value: str, actor_id: UUID | None) -> None:
        row = self._row(key)
        if row is None:
            self._session.add(
                AdminSetting(setting_key=key, setting_value=value, updated_by=actor_id)
            )
        else:
            row.setting_value = value
            row.updated_by = actor_id
        self._session.flush()
