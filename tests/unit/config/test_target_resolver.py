"""
Unit tests for target resolution (config.json + boards.json).
"""

import json

import pytest

from arduswift.build.flag_builder import derive
from arduswift.config.target_resolver import (
    TargetDescriptor,
    load,
    merge_board_options,
    resolve,
    select_target,
)
from arduswift.errors import ConfigError, MissingFile, MissingTargetName, UnknownTarget

CATALOG = json.dumps(
    {
        "due": {
            "fqbn": "arduino:sam:arduino_due_x",
            "core": "arduino:sam",
            "swift_target": "armv7-none-none-eabi",
            "cpu": "cortex-m3",
        },
        "giga": {
            "fqbn": "arduino:mbed_giga:giga",
            "core": "arduino:mbed_giga",
            "swift_target": "armv7em-none-none-eabi",
            "cpu": "cortex-m7",
            "float_abi": "softfp",
            "fpu": "fpv5-d16",
            "default_board_options": {"target_core": "cm7", "split": "100_0"},
        },
    }
)


class TestMergeBoardOptions:
    def test_canonical_order(self):
        merged = merge_board_options(
            {"split": "100_0", "target_core": "cm7"}, {"security": "none"}
        )
        assert list(merged) == ["target_core", "split", "security"]

    def test_override_wins(self):
        merged = merge_board_options({"target_core": "cm7"}, {"target_core": "cm4"})
        assert merged == {"target_core": "cm4"}

    def test_unknown_keys_ignored(self):
        assert merge_board_options({}, {"upload_method": "dfu"}) == {}

    def test_empty_override_falls_back(self):
        assert merge_board_options({"split": "100_0"}, {"split": ""}) == {"split": "100_0"}


class TestResolve:
    """Test suite for resolve/select_target."""

    def test_simple_board(self):
        target = select_target('{"board": "due"}', CATALOG)
        assert target.fqbn == "arduino:sam:arduino_due_x"
        assert target.core == "arduino:sam"
        assert target.board_options == {}
        assert target.board_options_csv == ""

    def test_fqbn_stays_base_identifier(self):
        target = select_target(
            '{"board": "giga", "board_options": {"target_core": "cm4"}}', CATALOG
        )
        assert target.fqbn == "arduino:mbed_giga:giga"
        assert target.board_options_csv == "target_core=cm4,split=100_0"

    def test_config_returned_alongside_target(self):
        config, target = resolve('{"board": "giga", "lib": ["I2C"]}', CATALOG)
        assert config.lib == ["I2C"]
        assert target.fqbn_leaf == "giga"

    def test_unknown_board(self):
        with pytest.raises(UnknownTarget):
            select_target('{"board": "mega"}', CATALOG)

    def test_missing_board(self):
        with pytest.raises(MissingTargetName):
            select_target("{}", CATALOG)

    def test_validate_rejects_empty_fields(self):
        descriptor = TargetDescriptor(
            board="x", fqbn="a:b:c", core="a:b", api="", swift_target="", cpu="cortex-m3"
        )
        with pytest.raises(ConfigError, match="swift_target"):
            descriptor.validate()

    def test_fqbn_without_core_is_valid(self):
        """A bare FQBN derives no core; resolution still succeeds and core install is skipped."""
        target = select_target(
            '{"board": "bare"}',
            json.dumps({"bare": {"fqbn": "bare", "swift_target": "armv7-none-none-eabi"}}),
        )
        assert target.fqbn == "bare"
        assert target.core == ""


class TestResolveThenDerive:
    def test_unknown_family_gets_no_float_flags(self):
        target = select_target(
            '{"board": "x"}',
            json.dumps({"x": {"fqbn": "vendor:core:x", "swift_target": "armv7-none-none-eabi"}}),
        )
        flags = derive(target)
        assert target.core == "vendor:core"
        assert flags.swift_target == "armv7-none-none-eabi"
        assert flags.float_abi == ""
        assert flags.fpu == ""
        assert flags.native_flags == ["-fno-short-enums"]


class TestLoad:
    def test_reads_both_files(self, tmp_path):
        project = tmp_path / "project"
        tools = tmp_path / "tools"
        project.mkdir()
        tools.mkdir()
        (project / "config.json").write_text('{"board": "due"}')
        (tools / "boards.json").write_text(CATALOG)

        config_text, catalog_text = load(project, tools)
        assert json.loads(config_text) == {"board": "due"}
        assert catalog_text == CATALOG

    def test_missing_catalog_named(self, tmp_path):
        (tmp_path / "config.json").write_text('{"board": "due"}')
        with pytest.raises(MissingFile) as exc_info:
            load(tmp_path, tmp_path / "tools")
        assert exc_info.value.path == tmp_path / "tools" / "boards.json"
