import logging

import pytest

from blockfind.cli import ColoredFormatter, build_parser, main
from blockfind.types.buffer import Buffer

from helpers import modern_chunk, modern_section, write_region

ORE = ["minecraft:air", "minecraft:diamond_ore"]


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger('blockfind')
    saved = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:], logger.level, logger.propagate = saved


@pytest.fixture
def world(tmp_path):
    region = tmp_path / "region"
    region.mkdir()
    states = [0] * 4096
    states[0] = states[1] = 1
    root = modern_chunk(-32, 64, [modern_section(-4, ORE, states)])
    write_region(region, -1, 2, {(0, 0): root})
    return region


def test_show_all(world, capsys):
    code = main(["diamond_ore", "-p", str(world), "-s", "--home", "-512", "1024", "--no-color"])
    out, err = capsys.readouterr()
    assert code == 0
    assert out.splitlines() == [
        "-512 -64 1024 - minecraft:diamond_ore [0.0]",
        "-511 -64 1024 - minecraft:diamond_ore [1.0]",
    ]
    assert "1 region files, 1 chunks searched, 2 results" in err


def test_presence(world, capsys):
    code = main(["diamond_ore", "-p", str(world), "--home", "-512", "1024", "--no-color"])
    out, _ = capsys.readouterr()
    assert code == 0
    assert out.splitlines() == [
        "chunk -32,64 -512 -64 1024 - minecraft:diamond_ore (2) [0.0]"]


def test_limit(world, capsys):
    assert main(["diamond_ore", "-p", str(world), "-s", "--limit", "1", "--no-color"]) == 0
    out, _ = capsys.readouterr()
    assert len(out.splitlines()) == 1


def test_max_distance(world, capsys):
    assert main(["diamond_ore", "-p", str(world), "-m", "100", "--no-color"]) == 0
    out, err = capsys.readouterr()
    assert out == ""
    assert "0 results" in err


def test_config_file(world, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.toml").write_text(
        'block = "diamond_ore"\npath = "region"\nshow_all = true\nhome = [-512, 1024]\n')
    assert main(["--no-color"]) == 0
    out, _ = capsys.readouterr()
    assert out.splitlines()[0] == "-512 -64 1024 - minecraft:diamond_ore [0.0]"


def test_command_line_beats_config_file(world, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.toml").write_text('block = "emerald_ore"\npath = "region"\n')
    assert main(["diamond_ore", "--no-color"]) == 0
    out, _ = capsys.readouterr()
    assert "minecraft:diamond_ore" in out


def test_explicit_config_file_must_exist(world, capsys):
    assert main(["diamond_ore", "-p", str(world), "-c", str(world / "nope.toml")]) == 2
    _, err = capsys.readouterr()
    assert "Config file not found" in err


def test_missing_block(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["-p", str(tmp_path)]) == 2
    _, err = capsys.readouterr()
    assert "No block provided" in err


def test_invalid_path(tmp_path, capsys):
    assert main(["diamond_ore", "-p", str(tmp_path / "missing")]) == 2
    _, err = capsys.readouterr()
    assert "Invalid region path" in err


def test_skipped_chunks_are_reported(world, capsys):
    write_region(world, 0, 0, {(3, 3): Buffer.pack('IB', 100000, 2)})
    assert main(["diamond_ore", "-p", str(world), "--no-color"]) == 0
    _, err = capsys.readouterr()
    assert "WARNING: Skipped" in err
    assert "chunk 3,3" in err
    assert "1 skipped after errors" in err


def test_skipped_warnings_are_ordered(world, capsys):
    bad = Buffer.pack('IB', 100000, 2)
    write_region(world, 1, 0, {(0, 0): bad})
    write_region(world, 0, 0, {(5, 0): bad, (1, 0): bad})
    (world / "r.2.0.mca").write_bytes(b"\x00" * 100)
    assert main(["diamond_ore", "-p", str(world), "--workers", "4", "--no-color"]) == 0
    _, err = capsys.readouterr()
    skipped = [line for line in err.splitlines() if "Skipped" in line]
    assert len(skipped) == 4
    assert "r.0.0.mca chunk 1,0" in skipped[0]
    assert "r.0.0.mca chunk 5,0" in skipped[1]
    assert "r.1.0.mca chunk 32,0" in skipped[2]
    assert "r.2.0.mca:" in skipped[3]


def test_nothing_to_search(tmp_path, capsys):
    write_region(tmp_path, 0, 0, {(0, 0): Buffer.pack('IB', 100000, 2)})
    assert main(["diamond_ore", "-p", str(tmp_path), "--no-color"]) == 1
    _, err = capsys.readouterr()
    assert "No chunk could be decoded" in err


def test_dump(world, capsys):
    assert main(["--dump", "-32", "64", "-p", str(world)]) == 0
    out, _ = capsys.readouterr()
    assert out.startswith('TAG_Compound(""): 5 entries')
    assert 'TAG_Int("xPos"): -32' in out
    assert 'TAG_String("Status"): "minecraft:full"' in out


def test_dump_missing_chunk(world, capsys):
    assert main(["--dump", "0", "0", "-p", str(world)]) == 1
    assert main(["--dump", "-31", "64", "-p", str(world)]) == 1
    _, err = capsys.readouterr()
    assert "No chunk at -31,64" in err


def test_parser_defaults():
    args = build_parser().parse_args(["stone"])
    assert args.block == "stone"
    assert args.show_all is None
    assert args.home is None
    assert args.dump is None


def test_colored_formatter():
    formatter = ColoredFormatter("%(levelname)s: %(message)s")
    record = logging.LogRecord("blockfind", logging.WARNING, __file__, 1, "careful", None, None)
    assert formatter.format(record) == "\x1b[0m\x1b[33;1mWARNING\x1b[0m: careful"
