import json
import subprocess
import sys
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[1] / "gen_length_tables.py"


def _write_database(base: Path) -> Path:
    record = {
        "map": 0,
        "opcode_hex": "00",
        "opcode": "0x00",
        "partial_opcode": False,
        "pattern": "MODRM()",
        "iclass": "ADD",
        "has_modrm": True,
        "has_imm16": False,
        "has_imm32": False,
        "has_imm8": False,
        "has_imm8_2": False,
    }
    path = base / "test.json"
    path.write_text(json.dumps({"Instructions": [record]}, indent=2), "utf-8")
    return path


def test_cli_generates_both_headers(tmp_path: Path) -> None:
    database = _write_database(tmp_path)
    fat_path = tmp_path / "fat.h"
    thin_path = tmp_path / "thin.h"

    result = subprocess.run(
        [
            sys.executable,
            str(SCRIPT),
            str(database),
            "--fat-out",
            str(fat_path),
            "--thin-out",
            str(thin_path),
        ],
        check=True,
        capture_output=True,
        text=True,
    )

    assert f"fat table written to {fat_path}" in result.stdout
    assert "(1 ranges)" in result.stdout
    assert "longest fixed: 0" in result.stderr
    assert "OPCODE_INSN_DEF(true, 0, false, false, false, false), // ADD => 0x0" in fat_path.read_text("utf-8")
    assert "RANGE_OPCODE_INSN_DEF(0, 255," in thin_path.read_text("utf-8")


def test_cli_defaults_to_working_directory(tmp_path: Path) -> None:
    _write_database(tmp_path)

    subprocess.run([sys.executable, str(SCRIPT)], cwd=tmp_path, check=True, capture_output=True, text=True)

    assert (tmp_path / "generated_table.h").exists()
    assert (tmp_path / "generated_thin_table.h").exists()


def test_cli_rejects_malformed_database(tmp_path: Path) -> None:
    database = tmp_path / "broken.json"
    database.write_text(json.dumps({"Instructions": [{"map": 0}]}), "utf-8")

    result = subprocess.run(
        [sys.executable, str(SCRIPT), str(database), "--fat-out", str(tmp_path / "fat.h")],
        capture_output=True,
        text=True,
    )

    assert result.returncode != 0
    assert "invalid instruction database" in result.stderr
    assert not (tmp_path / "fat.h").exists()


def test_cli_rejects_undecodable_database(tmp_path: Path) -> None:
    database = tmp_path / "binary.json"
    database.write_bytes(b'{"Instructions": [\xff]}')

    result = subprocess.run(
        [sys.executable, str(SCRIPT), str(database), "--fat-out", str(tmp_path / "fat.h")],
        capture_output=True,
        text=True,
    )

    assert result.returncode != 0
    assert "invalid instruction database" in result.stderr
    assert "Traceback" not in result.stderr
    assert not (tmp_path / "fat.h").exists()
