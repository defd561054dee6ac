from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from nesmsg.cli import main, parse_args
from nesmsg.codec import decode, read_default_sample


@pytest.fixture
def sample_path(tmp_path: Path) -> Path:
    path = tmp_path / "nes_message_data_static"
    path.write_bytes(read_default_sample())
    return path


def test_parse_args_accepts_id_ranges() -> None:
    args = parse_args(["export", "--ids", "0,2-3"])
    assert args.ids == [0, 2, 3]
    assert args.source is None


def test_list_uses_bundled_sample_by_default(capsys) -> None:
    assert main(["list"]) == 0

    output = capsys.readouterr().out
    assert output.startswith("4 message(s) in nes_message_data_static")
    assert "0x1000" in output
    assert "Hello!Welcome to Hyrule." in output


def test_show_prints_markup(sample_path: Path, capsys) -> None:
    assert main(["show", str(sample_path), "--id", "2"]) == 0

    output = capsys.readouterr().out
    assert "source id: 0x1000" in output
    assert "Speed<TEXT_SPEED:02>...up<BOX_BREAK>Next box" in output


def test_show_unknown_id_reports_error(sample_path: Path, capsys) -> None:
    assert main(["show", str(sample_path), "--id", "42"]) == 2
    assert "not loaded" in capsys.readouterr().err


def test_export_subset(sample_path: Path, tmp_path: Path) -> None:
    output = tmp_path / "subset.bin"

    assert main(["export", str(sample_path), "--ids", "3,1", "-o", str(output)]) == 0

    entries = decode(output.read_bytes())
    assert [entry.source_header_id for entry in entries] == [0x0002, 0x1001]


def test_dump_and_apply_json(sample_path: Path, tmp_path: Path) -> None:
    document = tmp_path / "messages.json"
    rebuilt = tmp_path / "rebuilt.bin"

    assert main(["dump-json", str(sample_path), "-o", str(document)]) == 0
    payload = json.loads(document.read_text(encoding="utf-8"))
    payload["messages"][0]["text"] = "Hey!<NEWLINE>Listen!"
    document.write_text(json.dumps(payload), encoding="utf-8")
    assert main(["apply-json", str(document), "-o", str(rebuilt)]) == 0

    entries = decode(rebuilt.read_bytes())
    assert len(entries) == 4
    assert entries[0].tokens[0].text == "Hey!"


def test_verify_passes_for_sample(sample_path: Path, capsys) -> None:
    assert main(["verify", str(sample_path)]) == 0
    assert "PASS" in capsys.readouterr().out


def test_verify_fails_for_padded_pool(sample_path: Path, capsys) -> None:
    sample_path.write_bytes(sample_path.read_bytes() + b"\x00")

    assert main(["verify", str(sample_path)]) == 1
    assert "FAIL" in capsys.readouterr().err


def test_malformed_input_reports_error(tmp_path: Path, capsys) -> None:
    broken = tmp_path / "broken.bin"
    broken.write_bytes(b"\x00\x01")

    assert main(["list", str(broken)]) == 2
    assert "error:" in capsys.readouterr().err


def test_config_option_applies_alignment(sample_path: Path, tmp_path: Path) -> None:
    config = tmp_path / "nesmsg.toml"
    config.write_text(
        textwrap.dedent(
            """
            [codec]
            pool_alignment = 4
            """
        ),
        encoding="utf-8",
    )
    output = tmp_path / "aligned.bin"

    assert main(["--config", str(config), "export", str(sample_path), "-o", str(output)]) == 0

    data = output.read_bytes()
    pool = data[5 * 8 :]
    assert len(pool) % 4 == 0
    assert [entry.source_header_id for entry in decode(data)] == [0x0001, 0x0002, 0x1000, 0x1001]


def test_export_writes_nothing_when_every_message_fails(
    tmp_path: Path, make_blob, capsys
) -> None:
    source = tmp_path / "partial.bin"
    source.write_bytes(make_blob([(0x0001, b"\x00\x00", 0)], b"AB\x05"))
    config = tmp_path / "nesmsg.toml"
    config.write_text("[codec]\nstrict = false\n", encoding="utf-8")
    output = tmp_path / "out.bin"

    assert main(["--config", str(config), "export", str(source), "-o", str(output)]) == 1

    assert not output.exists()
    assert "nothing written" in capsys.readouterr().err
