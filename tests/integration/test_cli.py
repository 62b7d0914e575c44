from __future__ import annotations

import sys
from pathlib import Path

from vtlang.cli import compile_source, main


PROGRAM = """
class Animal {
    virtual speak(): String { return "Animal"; }
}

function main(): Int {
    var a: Animal = new Animal();
    print(a.speak());
    return 0;
}
"""


def test_cli_writes_listing_to_output_file(tmp_path: Path, monkeypatch) -> None:
    entry = tmp_path / "main.vt"
    entry.write_text(PROGRAM, encoding="utf-8")
    out_file = tmp_path / "out.ll"

    monkeypatch.setattr(sys, "argv", ["vtlc", str(entry), "-o", str(out_file)])

    rc = main()
    assert rc == 0
    listing = out_file.read_text(encoding="latin-1")
    assert listing.startswith(f"; === Source: {entry} ===")
    assert '@"vtable.Animal"' in listing


def test_cli_writes_listing_to_stdout_by_default(tmp_path: Path, capsys) -> None:
    entry = tmp_path / "main.vt"
    entry.write_text(PROGRAM, encoding="utf-8")

    rc = main([str(entry)])
    captured = capsys.readouterr()

    assert rc == 0
    assert "; === Module IR ===" in captured.out
    assert "; === Function: main ===" in captured.out
    assert captured.err == ""


def test_cli_dash_output_means_stdout(tmp_path: Path, capsys) -> None:
    entry = tmp_path / "main.vt"
    entry.write_text(PROGRAM, encoding="utf-8")

    rc = main([str(entry), "-o", "-"])
    captured = capsys.readouterr()

    assert rc == 0
    assert captured.out.startswith("; === Source:")


def test_cli_reports_compile_error_with_location(tmp_path: Path, capsys) -> None:
    entry = tmp_path / "broken.vt"
    entry.write_text("function main(): Int {\n    return 0\n}\n", encoding="utf-8")

    rc = main([str(entry)])
    captured = capsys.readouterr()

    assert rc == 2
    assert captured.out == ""
    assert captured.err.startswith("error: Expected ';', found }")
    assert f"{entry}:3:1" in captured.err


def test_cli_reports_semantic_error(tmp_path: Path, capsys) -> None:
    entry = tmp_path / "unknown_base.vt"
    entry.write_text("class A { } class B extends C { }\n", encoding="utf-8")

    rc = main([str(entry)])
    captured = capsys.readouterr()

    assert rc == 2
    assert "error: Unknown base class 'C'" in captured.err


def test_cli_reports_missing_input_file(tmp_path: Path, capsys) -> None:
    missing = tmp_path / "missing.vt"

    rc = main([str(missing)])
    captured = capsys.readouterr()

    assert rc == 2
    assert f"error: Failed to open input file: {missing}" in captured.err


def test_cli_does_not_create_output_on_error(tmp_path: Path, capsys) -> None:
    entry = tmp_path / "broken.vt"
    entry.write_text("class A { override m(): String { return \"x\"; } }\n", encoding="utf-8")
    out_file = tmp_path / "out.ll"

    rc = main([str(entry), "-o", str(out_file)])
    captured = capsys.readouterr()

    assert rc == 2
    assert "marked override but no base method" in captured.err
    assert not out_file.exists()


def test_cli_usage_error_without_input(capsys) -> None:
    rc = main([])
    captured = capsys.readouterr()

    assert rc == 1
    assert "usage: vtlc" in captured.err
    assert "error: " in captured.err


def test_cli_usage_error_for_unknown_option(tmp_path: Path, capsys) -> None:
    rc = main([str(tmp_path / "x.vt"), "--bogus"])
    captured = capsys.readouterr()

    assert rc == 1
    assert "unrecognized arguments: --bogus" in captured.err


def test_cli_help_exits_cleanly(capsys) -> None:
    rc = main(["-h"])
    captured = capsys.readouterr()

    assert rc == 0
    assert "usage: vtlc" in captured.out


def test_compile_source_preserves_latin1_string_bytes() -> None:
    source = 'function main(): Int { print("caf\xe9"); return 0; }'
    listing = compile_source(source, source_path="latin1.vt")

    assert 'c"caf\\e9\\00"' in listing.lower()
