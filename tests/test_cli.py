import json
from pathlib import Path

import pytest

from script_bundler import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("BUNDLE_MINIFY_CODE", raising=False)
    monkeypatch.delenv("BUNDLE_PRESERVE_IMPORTANT_COMMENTS", raising=False)


def write_sources(root: Path) -> None:
    (root / "js").mkdir(parents=True)
    (root / "js" / "a.js").write_text("var a = 1;\n")
    (root / "js" / "b.js").write_text("/*! keep */\nvar b = 2\n")


def test_cli_writes_bundle_and_map(tmp_path: Path, capsys):
    root, out = tmp_path / "static", tmp_path / "build"
    write_sources(root)

    code = cli.main(
        ["--root", str(root), "--out", str(out), "--bundle", "~/bundles/site", "--minify", "js/a.js", "js/b.js"]
    )

    assert code == 0
    bundle = (out / "bundles" / "site").read_text()
    assert bundle.startswith("var a=1;/*! keep */var b=2;")
    source_map = json.loads((out / "bundles" / "sitemap").read_text())
    assert source_map["sources"] == ["/js/a.js", "/js/b.js"]
    assert "Wrote" in capsys.readouterr().out


def test_cli_reads_minify_default_from_environment(tmp_path: Path, monkeypatch):
    root, out = tmp_path / "static", tmp_path / "build"
    write_sources(root)
    monkeypatch.setenv("BUNDLE_MINIFY_CODE", "yes")

    assert cli.main(["--root", str(root), "--out", str(out), "--drop-important-comments", "js/a.js", "js/b.js"]) == 0
    assert (out / "bundles" / "site").read_text().startswith("var a=1;var b=2;")


def test_cli_uses_app_root_in_map(tmp_path: Path):
    root, out = tmp_path / "static", tmp_path / "build"
    write_sources(root)

    cli.main(["--root", str(root), "--out", str(out), "--app-root", "/shop", "js/a.js"])

    source_map = json.loads((out / "bundles" / "sitemap").read_text())
    assert source_map["file"] == "/shop/bundles/site"
    assert source_map["sources"] == ["/shop/js/a.js"]


def test_cli_rejects_missing_source(tmp_path: Path):
    with pytest.raises(SystemExit):
        cli.main(["--root", str(tmp_path), "--out", str(tmp_path / "build"), "missing.js"])
