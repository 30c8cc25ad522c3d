"""
workshop_config -- single public entrypoint for shop configuration.

Responsibility:
    Provides the way to obtain the workshop configuration at runtime
    through ``get_active_config()``: table layout, business hours, the
    call-attention threshold, the debounce delay and the default checklist
    and call statuses installed by seeding.

Architecture position:
    Configuration -- YAML-driven, validated on load.  Sits above
    ``workshop_kernel`` and below ``workshop_modules``.  The kernel never
    imports from ``workshop_config``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ConfigError`` -- missing keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``WORKSHOP_CONFIG_TRACE`` log entry with the set name, version and
    checksum.
"""

from __future__ import annotations

from pathlib import Path

from workshop_config.loader import ConfigError, load_shop_config
from workshop_config.schema import BusinessHours, CallStatusDef, ChecklistItemDef, ShopConfig
from workshop_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(config_dir: Path | None = None, name: str = "default") -> ShopConfig:
    """
    Load and validate configuration set ``name`` from ``config_dir``.

    Args:
        config_dir: Directory holding ``<name>.yaml`` files.  Defaults to
            workshop_config/sets/.
        name: Configuration set name.

    Raises:
        FileNotFoundError: If ``<name>.yaml`` does not exist.
        ConfigError: If the set fails validation.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration set not found: {path}")

    config = load_shop_config(path)
    _logger.info(
        "WORKSHOP_CONFIG_TRACE",
        extra={
            "trace_type": "WORKSHOP_CONFIG_TRACE",
            "config_name": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "table_count": len(config.tables),
            "checklist_item_count": len(config.checklist_items),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "load_shop_config",
    "ConfigError",
    "ShopConfig",
    "BusinessHours",
    "ChecklistItemDef",
    "CallStatusDef",
]
