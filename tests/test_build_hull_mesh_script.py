"""Tests for the build_hull_mesh script."""
import runpy
import shlex
from pathlib import Path

import pytest
import trimesh

SCRIPT = Path(__file__).parent.parent / "scripts" / "build_hull_mesh.py"


@pytest.fixture(scope="module")
def script():
    return runpy.run_path(str(SCRIPT), run_name="build_hull_mesh")


def _usage_examples(script):
    lines = [line.strip() for line in script["__doc__"].splitlines()]
    return [shlex.split(line)[2:] for line in lines if line.startswith("python ")]


class TestCommandLine:

    def test_usage_examples_parse(self, script):
        examples = _usage_examples(script)
        assert len(examples) == 3
        parser = script["build_parser"]()
        for argv in examples:
            parser.parse_args(argv)

    def test_attribute_flags(self, script):
        args = script["build_parser"]().parse_args(
            ["--output", "hull.obj", "--top-roundness", "1", "--height-scale", "0.5"],
        )
        assert args.top_roundness == pytest.approx(1.0)
        assert args.height_scale == pytest.approx(0.5)
        assert args.front_width is None

    def test_save_names_rejected(self, script):
        with pytest.raises(SystemExit):
            script["build_parser"]().parse_args(["--output", "hull.obj", "--up-curve", "1"])

    def test_writes_mesh(self, script, tmp_path, capsys):
        output = tmp_path / "out" / "hull.stl"
        script["main"]([
            "--output", str(output),
            "--front-width", "2", "--back-width", "1.5", "--top-roundness", "1",
        ])
        assert output.is_file()
        mesh = trimesh.load(str(output))
        assert len(mesh.faces) > 0
        assert "Saved to" in capsys.readouterr().out
