import json

import pytest
from typer.testing import CliRunner

from aoe2record import cli, config
from aoe2record.cli import app
from tests.conftest import RecordBuilder

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    monkeypatch.setattr(config, "config_file", path)
    return path


@pytest.fixture
def record_file(tmp_path, builder):
    path = tmp_path / "game.aoe2record"
    path.write_bytes(builder.record(body=b"body"))
    return path


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "aoe2record v" in result.stdout


def test_get_header_info(record_file):
    result = runner.invoke(app, ["get-header-info", str(record_file)])
    assert result.exit_code == 0, result.output
    info = json.loads(result.stdout)
    de = info["header"]["de"]
    assert info["header"]["version"] == "VER 9.4"
    assert de["difficulty_label"] == "Standard"
    assert de["players"][1]["name"]["text"] == "Alice"
    assert len(de["players"]) == 8


def test_get_header_info_strict_from_config(tmp_path, isolated_config):
    config.Config(strict_codes=True).save(isolated_config)
    path = tmp_path / "odd.aoe2record"
    path.write_bytes(RecordBuilder(victory_type=99).record())
    assert runner.invoke(app, ["get-header-info", str(path)]).exit_code == 1
    result = runner.invoke(app, ["get-header-info", "--no-strict", str(path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["header"]["de"]["victory_type_label"] == "Unknown"


def test_corrupt_file(tmp_path):
    path = tmp_path / "bad.aoe2record"
    path.write_bytes(RecordBuilder(separator=b"nope").record())
    result = runner.invoke(app, ["get-header-info", str(path)])
    assert result.exit_code == 1


def test_summarize(record_file):
    result = runner.invoke(app, ["summarize", str(record_file)])
    assert result.exit_code == 0, result.output
    assert "Difficulty: Standard" in result.stdout
    assert "Victory Type: Standard" in result.stdout
    assert "Player 1: Alice" in result.stdout
    assert "Player 2: Bob" in result.stdout
    assert "Player 3" not in result.stdout


def test_extract_header(record_file, tmp_path, builder):
    out = tmp_path / "header.bin"
    result = runner.invoke(app, ["extract-header", str(record_file), str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_bytes() == builder.payload()


def test_dump_header(record_file):
    result = runner.invoke(app, ["dump-header", str(record_file), "--offset", "0x0", "-n", "8"])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("00000000  56 45 52 20 39 2e 34 00")
    assert lines[0].endswith("VER 9.4.")


def test_dump_header_offset_past_end(record_file):
    result = runner.invoke(app, ["dump-header", str(record_file), "--offset", "0x100000"])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "args", [["--offset=-5"], ["-n", "0"], ["--length=-1"]]
)
def test_dump_header_rejects_negative_range(record_file, args):
    result = runner.invoke(app, ["dump-header", str(record_file), *args])
    assert result.exit_code == 1
    assert "00000000" not in result.output


@pytest.mark.parametrize(
    "flags, expected",
    [([], (False, False)), (["--quiet"], (False, True)), (["--debug"], (True, False))],
)
def test_logging_flags(record_file, monkeypatch, flags, expected):
    calls = []
    monkeypatch.setattr(
        cli, "configure_logging", lambda debug, quiet: calls.append((debug, quiet))
    )
    result = runner.invoke(app, [*flags, "summarize", str(record_file)])
    assert result.exit_code == 0, result.output
    assert calls == [expected]


def test_config_path(isolated_config):
    result = runner.invoke(app, ["config-path"])
    assert result.exit_code == 0
    assert str(isolated_config.resolve()) in result.stdout
    assert isolated_config.exists()
