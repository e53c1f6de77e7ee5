from __future__ import annotations

import shutil
from pathlib import Path

import orjson
import pytest

from cli import main


def _copy_simple_app(root: Path) -> Path:
    fixture_app = Path(__file__).parent / "fixtures" / "simple_app"
    shutil.copytree(fixture_app, root)
    return root


def test_cli_list_packs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _copy_simple_app(tmp_path / "app")

    exit_code = main(["list-packs", str(root)])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == [
        "package.yml",
        "packs/bar/package.yml",
        "packs/bar/nested/package.yml",
        "packs/baz/package.yml",
        "packs/foo/package.yml",
        "packs/foo_extra/package.yml",
    ]


def test_cli_list_todo(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _copy_simple_app(tmp_path / "app")

    exit_code = main(["list-todo", str(root)])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == [
        "packs/foo -> packs/bar dependency ::Bar packs/foo/app/services/foo.rb",
        "packs/foo -> packs/bar dependency ::Baz packs/foo/app/services/foo.rb",
        "packs/foo -> packs/bar privacy ::Baz packs/foo/app/services/foo.rb",
    ]


def test_cli_references_writes_sorted_jsonl(tmp_path: Path) -> None:
    root = _copy_simple_app(tmp_path / "app")
    out_file = tmp_path / "refs.jsonl"

    exit_code = main(
        [
            "references",
            str(root),
            "packs/foo/app/services/foo.rb",
            "--out",
            str(out_file),
        ]
    )

    assert exit_code == 0
    rows = [orjson.loads(line) for line in out_file.read_bytes().splitlines()]
    assert [row["constant_name"] for row in rows] == [
        "::Bar",
        "::Baz::Widget",
        "::Foo::Helper",
        "::API::Client",
        "::LegacyAlias",
    ]
    assert rows[0] == {
        "constant_name": "::Bar",
        "defining_pack_name": "packs/bar",
        "referencing_pack_name": "packs/foo",
        "relative_defining_file": "packs/bar/app/models/bar.rb",
        "relative_referencing_file": "packs/foo/app/services/foo.rb",
        "source_location": {"column": 4, "line": 5},
    }
    assert rows[-1]["defining_pack_name"] is None


def test_cli_references_experimental_parser_flag(tmp_path: Path) -> None:
    root = _copy_simple_app(tmp_path / "app")
    out_file = tmp_path / "refs.jsonl"

    exit_code = main(
        [
            "references",
            str(root),
            "packs/foo/app/services/foo.rb",
            "--experimental-parser",
            "--out",
            str(out_file),
        ]
    )

    assert exit_code == 0
    rows = [orjson.loads(line) for line in out_file.read_bytes().splitlines()]
    assert rows[-1]["constant_name"] == "::LegacyAlias"
    assert rows[-1]["defining_pack_name"] == "packs/bar"


def test_cli_references_standalone_matches_default(tmp_path: Path) -> None:
    root = _copy_simple_app(tmp_path / "app")
    default_out = tmp_path / "default.jsonl"
    standalone_out = tmp_path / "standalone.jsonl"

    assert main(["references", str(root), "--out", str(default_out)]) == 0
    assert (
        main(["references", str(root), "--standalone", "--out", str(standalone_out)])
        == 0
    )

    assert default_out.read_bytes() == standalone_out.read_bytes()
    assert default_out.read_bytes()


def test_cli_invalid_config_reports_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "packwerk.yml").write_text("cache: [oops]\n", encoding="utf-8")

    exit_code = main(["list-packs", str(tmp_path)])

    assert exit_code == 2
    assert capsys.readouterr().err.startswith("error: ")


def test_cli_unreadable_file_reports_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _copy_simple_app(tmp_path / "app")

    exit_code = main(["references", str(root), "packs/foo/app/services/missing.rb"])

    assert exit_code == 2
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert "missing.rb" in err
