from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from asset_registry.cli import app
from asset_registry.config import load_config


@pytest.fixture()
def run(db_uri):
    runner = CliRunner()
    load_config.cache_clear()

    def _run(*args: str):
        return runner.invoke(app, ["--db", db_uri, "--admin", "admin", *args])

    yield _run
    load_config.cache_clear()


def test_init_and_stats(run):
    r = run("init")
    assert r.exit_code == 0, r.output
    assert json.loads(r.stdout)["total_minted"] == 0

    r = run("stats")
    assert json.loads(r.stdout)["administrator"] == "admin"


def test_mint_transfer_destroy(run):
    r = run("mint", "ipfs://a")
    assert r.exit_code == 0, r.output
    assert r.stdout.strip() == "1"

    r = run("transfer", "1", "--from", "admin", "--to", "bob")
    assert r.exit_code == 0, r.output

    r = run("destroy", "1", "--caller", "bob")
    assert r.exit_code == 0, r.output

    r = run("show", "1")
    assert r.exit_code == 0
    shown = json.loads(r.stdout)
    assert shown["destroyed"] is True
    assert shown["transfer_count"] == 1
    assert shown["metadata"] == "ipfs://a"


def test_domain_error_exit_code(run):
    r = run("mint", "ipfs://a", "--caller", "mallory")
    assert r.exit_code == 1
    assert "REGISTRY/UNAUTHORIZED" in r.output


def test_bulk_mint_from_file(run, tmp_path):
    items = tmp_path / "items.txt"
    items.write_text("a\n\nb\n", encoding="utf-8")
    r = run("bulk-mint", "--file", str(items))
    assert r.exit_code == 0, r.output
    result = json.loads(r.stdout)
    assert result["ids"] == [1, 2]
    assert result["rejected"] == [1]
    assert result["partial"] is True


def test_bulk_mint_arguments(run):
    r = run("bulk-mint", "x", "y")
    assert r.exit_code == 0, r.output
    assert json.loads(r.stdout)["ids"] == [1, 2]


def test_set_metadata_and_audit(run):
    run("mint", "v1")
    r = run("set-metadata", "1", "v2", "--caller", "admin")
    assert r.exit_code == 0, r.output
    r = run("audit", "1")
    actions = [json.loads(line)["action"] for line in r.stdout.splitlines()]
    assert actions == ["mint", "update_metadata"]


def test_admin_destroy_and_list(run):
    run("bulk-mint", "a", "b")
    r = run("admin-destroy", "2")
    assert r.exit_code == 0, r.output
    r = run("list", "--start", "1", "--count", "5")
    listed = json.loads(r.stdout)
    assert [a["destroyed"] for a in listed] == [False, True]


def test_show_unknown(run):
    r = run("show", "9")
    assert r.exit_code == 1


def test_admin_mismatch(run, db_uri):
    run("init")
    r = CliRunner().invoke(app, ["--db", db_uri, "--admin", "other", "stats"])
    assert r.exit_code == 1
    assert "REGISTRY/CONFIG" in r.output


def test_rebuild_audit(run):
    run("mint", "a")
    r = run("rebuild-audit")
    assert r.exit_code == 0
    assert "rebuilt 1 assets" in r.stdout
