import pytest

from chip8vm import cli


@pytest.fixture
def rom(tmp_path):
    path = tmp_path / "maze.ch8"
    path.write_bytes(bytes([0x00, 0xE0, 0xA2, 0x1E, 0xD0, 0x15, 0x12, 0x00]))
    return path


def test_missing_rom_argument_prints_usage(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code != 0
    assert "usage" in capsys.readouterr().err


def test_unreadable_rom(tmp_path, capsys):
    assert cli.main([str(tmp_path / "missing.ch8")]) == 1
    assert "Could not load ROM" in capsys.readouterr().err


def test_oversized_rom(tmp_path, capsys):
    path = tmp_path / "huge.ch8"
    path.write_bytes(bytes(4096))
    assert cli.main([str(path)]) == 1
    assert "at most" in capsys.readouterr().err


def test_bad_config(rom, tmp_path, capsys):
    config = tmp_path / "chip8.yaml"
    config.write_text("cpu_hz: 0\n", encoding="utf-8")
    assert cli.main([str(rom), "--config", str(config)]) == 1
    assert "cpu_hz" in capsys.readouterr().err


def test_disassemble(rom, capsys):
    assert cli.main([str(rom), "--disassemble"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "0x200: 00E0  CLS",
        "0x202: A21E  LD I, 0x21E",
        "0x204: D015  DRW V0, V1, 5",
        "0x206: 1200  JP 0x200",
    ]


def test_log_file(rom, tmp_path):
    logfile = tmp_path / "chip8.log"
    assert cli.main([str(rom), "--disassemble", "--debug", "--log", str(logfile)]) == 0
    assert logfile.exists()
