"""
Unit tests for sketch workspace preparation.
"""

import pytest

from arduswift.build.context import BuildContext
from arduswift.build.workspace import WorkspaceBuilder, first_existing, prepare_workspace
from arduswift.config.target_resolver import TargetDescriptor
from arduswift.errors import MissingFile


def write(path, text=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestWorkspaceBuilder:
    """Test suite for WorkspaceBuilder."""

    @pytest.fixture
    def ctx(self, tmp_path):
        tools = tmp_path / "tools"
        common = tools / "arduino" / "commom"
        write(common / "sketch.ino", "// sketch")
        write(common / "ArduinoSwiftShim.h", "// shim header")
        write(common / "ArduinoSwiftShimBase.cpp", "// shim source")
        write(common / "Bridge.cpp", "// bridge")
        project = tmp_path / "project"
        project.mkdir()
        return BuildContext(project_root=project, tool_root=tools)

    def test_stages_required_files(self, ctx):
        staged = prepare_workspace(ctx)
        names = sorted(p.name for p in staged)
        assert names == ["ArduinoSwiftShim.cpp", "ArduinoSwiftShim.h", "Bridge.cpp", "sketch.ino"]
        assert (ctx.sketch_dir / "ArduinoSwiftShim.cpp").read_text() == "// shim source"
        assert ctx.sketch_libraries_dir.is_dir()
        assert ctx.arduino_build_dir.is_dir()

    def test_recreates_sketch_dir(self, ctx):
        write(ctx.sketch_dir / "stale.cpp")
        prepare_workspace(ctx)
        assert not (ctx.sketch_dir / "stale.cpp").exists()

    def test_missing_required_file(self, ctx):
        (ctx.runtime_arduino / "commom" / "Bridge.cpp").unlink()
        with pytest.raises(MissingFile) as exc_info:
            prepare_workspace(ctx)
        assert exc_info.value.path.name == "Bridge.cpp"

    def test_legacy_layout_without_commom(self, tmp_path):
        tools = tmp_path / "tools"
        for name in ("sketch.ino", "ArduinoSwiftShim.h", "ArduinoSwiftShim.cpp", "Bridge.cpp"):
            write(tools / "arduino" / name)
        ctx = BuildContext(project_root=tmp_path, tool_root=tools)
        assert WorkspaceBuilder(ctx).common_dir == tools / "arduino"
        assert len(WorkspaceBuilder(ctx).prepare()) == 4

    def test_runtime_support_prefers_c(self, ctx):
        write(ctx.runtime_arduino / "commom" / "SwiftRuntimeSupport.cpp")
        write(ctx.runtime_swift / "support" / "SwiftRuntimeSupport.c")
        prepare_workspace(ctx)
        assert (ctx.sketch_dir / "SwiftRuntimeSupport.c").exists()
        assert not (ctx.sketch_dir / "SwiftRuntimeSupport.cpp").exists()

    def test_runtime_support_missing_is_warning(self, ctx, capsys):
        prepare_workspace(ctx)
        assert "SwiftRuntimeSupport" in capsys.readouterr().out

    def test_api_files_staged(self, ctx):
        ctx.target = TargetDescriptor(
            board="due",
            fqbn="arduino:sam:arduino_due_x",
            core="arduino:sam",
            api="due_sam",
            swift_target="armv7-none-none-eabi",
            cpu="cortex-m3",
        )
        api_dir = ctx.runtime_arduino / "api" / "due_sam"
        write(api_dir / "DueApi.cpp")
        write(api_dir / "README.md")
        write(api_dir / "Bridge.cpp", "// api bridge")

        staged = prepare_workspace(ctx)
        assert ctx.sketch_dir / "DueApi.cpp" in staged
        assert not (ctx.sketch_dir / "README.md").exists()
        assert (ctx.sketch_dir / "Bridge.cpp").read_text() == "// bridge"


class TestFirstExisting:
    def test_candidate_order(self, tmp_path):
        write(tmp_path / "b.h")
        write(tmp_path / "c.h")
        assert first_existing(tmp_path, ("a.h", "c.h", "b.h")) == tmp_path / "c.h"

    def test_none_found(self, tmp_path):
        assert first_existing(tmp_path, ("a.h",)) is None
