"""Tests for loading and validating shop configuration sets."""

import pytest
import yaml

from workshop_config import ConfigError, get_active_config
from workshop_config.loader import compute_checksum, parse_shop_config

VALID = {
    "name": "test",
    "version": 2,
    "tables": ["1", "2", "A"],
    "business_hours": {"timezone": "Europe/Amsterdam", "opening_hour": 8, "closing_hour": 18},
}


def _write_set(tmp_path, name, data):
    (tmp_path / f"{name}.yaml").write_text(yaml.safe_dump(data))
    return tmp_path


class TestDefaultSet:

    def test_table_layout(self, shop_config):
        assert len(shop_config.tables) == 27
        assert shop_config.tables[:3] == ("1", "2", "3")
        assert shop_config.tables[-6:] == ("A", "B", "C", "D", "E", "F")
        assert shop_config.has_table("21")
        assert not shop_config.has_table("22")

    def test_business_hours(self, shop_config):
        hours = shop_config.business_hours
        assert (hours.opening_hour, hours.closing_hour, hours.call_attention_hours) == (9, 17, 3)
        assert str(hours.zone) == "Europe/Amsterdam"

    def test_defaults(self, shop_config):
        assert shop_config.debounce_seconds == 0.5
        assert shop_config.show_stock_warnings is True
        assert len(shop_config.checklist_items) == 5
        assert [s.sort_order for s in shop_config.call_statuses] == [0, 1, 2, 3, 4]

    def test_checksum(self, shop_config):
        assert len(shop_config.checksum) == 64
        int(shop_config.checksum, 16)


class TestGetActiveConfig:

    def test_missing_set(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path, name="nope")

    def test_custom_set(self, tmp_path):
        config = get_active_config(_write_set(tmp_path, "test", VALID), name="test")
        assert config.tables == ("1", "2", "A")
        assert config.business_hours.opening_hour == 8
        assert config.checksum == compute_checksum(VALID)

    def test_trace_logged(self, tmp_path, captured_logs):
        get_active_config(_write_set(tmp_path, "test", VALID), name="test")

        [record] = [r for r in captured_logs() if r["message"] == "WORKSHOP_CONFIG_TRACE"]
        assert record["config_name"] == "test"
        assert record["table_count"] == 3


class TestValidation:

    def test_missing_keys_listed(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_shop_config({"name": "x"})
        assert len(exc_info.value.errors) == 2
        assert exc_info.value.code == "CONFIG_INVALID"

    @pytest.mark.parametrize(
        "override,fragment",
        [
            ({"tables": ["1", "1"]}, "unique"),
            ({"tables": []}, "at least one table"),
            ({"business_hours": {"opening_hour": 17, "closing_hour": 9}}, "valid range"),
            ({"business_hours": {"timezone": "Mars/Olympus"}}, "unknown timezone"),
            ({"debounce_seconds": -1}, "debounce_seconds"),
        ],
    )
    def test_invalid_values(self, override, fragment):
        with pytest.raises(ConfigError) as exc_info:
            parse_shop_config({**VALID, **override}, source="inline")
        assert any(fragment in e for e in exc_info.value.errors)
        assert "inline" in str(exc_info.value)

    def test_invalid_file(self, tmp_path):
        path = _write_set(tmp_path, "broken", {**VALID, "tables": {"numbered": 0}})
        with pytest.raises(ConfigError):
            get_active_config(path, name="broken")
