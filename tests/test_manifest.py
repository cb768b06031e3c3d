from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkg_scripts import manifest as m
from pkg_scripts.layout import ManifestNotFoundError


@pytest.mark.parametrize(
    ("mutation", "key", "default"),
    [
        ("transpiler-config", "babel", m.default_babel_config),
        ("linter-config", "eslintConfig", m.default_eslint_config),
    ],
)
def test_config_block_is_inserted_when_absent(mutation, key, default) -> None:
    before = {"name": "x", "version": "1.0.0", "scripts": {"start": "node ."}}
    after = m.apply(mutation, before)

    assert after[key] == default()
    assert {k: v for k, v in after.items() if k != key} == before
    assert list(after)[:-1] == list(before)


@pytest.mark.parametrize(("mutation", "key"), [("transpiler-config", "babel"), ("linter-config", "eslintConfig")])
def test_existing_config_block_is_left_alone(mutation, key) -> None:
    before = {"name": "x", key: {"custom": True}}

    once = m.apply(mutation, before)
    twice = m.apply(mutation, once)

    assert once == before
    assert twice == once


def test_entry_points_always_overwrite_and_are_idempotent() -> None:
    before = {
        "name": "x",
        "main": "index.js",
        "module": "src/index.js",
        "sideEffects": True,
        "exports": {"default": "./index.js"},
    }
    once = m.apply("entry-points", before)
    twice = m.apply("entry-points", once)

    assert once["main"] == "lib/cjs/index.js"
    assert once["module"] == "lib/esm/index.mjs"
    assert once["sideEffects"] is False
    assert once["exports"] == {"import": "./lib/esm/index.mjs", "require": "./lib/cjs/index.js"}
    assert twice == once


def test_scripts_merge_keeps_existing_entries_and_adds_missing_ones() -> None:
    before = {"scripts": {"start": "node .", "test": "jest"}}
    after = m.apply("scripts", before)

    assert after["scripts"] == {
        "start": "node .",
        "test": "jest",
        "build": "pkg-scripts build",
        "docs": "pkg-scripts docs",
        "init": "pkg-scripts init",
        "lint": "pkg-scripts lint",
    }
    assert list(after["scripts"])[:2] == ["start", "test"]
    assert m.apply("scripts", after) == after


@pytest.mark.parametrize("scripts", [["build"], [], "", 0, False])
def test_scripts_merge_rejects_non_object_scripts(scripts) -> None:
    with pytest.raises(m.ManifestError):
        m.apply("scripts", {"scripts": scripts})


def test_scripts_merge_fills_null_scripts() -> None:
    assert set(m.apply("scripts", {"scripts": None})["scripts"]) == set(m.CANONICAL_COMMANDS)


def test_mutations_do_not_touch_their_input() -> None:
    before = {"name": "x", "scripts": {"lint": "eslint ."}}
    snapshot = json.dumps(before)
    for name in m.MUTATIONS:
        m.apply(name, before)
    assert json.dumps(before) == snapshot


def test_unknown_mutation_is_an_error() -> None:
    with pytest.raises(m.ManifestError, match="Unknown manifest mutation"):
        m.apply("dependencies", {})


def test_init_example_on_bare_manifest() -> None:
    data = {"name": "x"}
    for name in ("transpiler-config", "linter-config", "entry-points", "scripts"):
        data = m.apply(name, data)

    assert set(data["scripts"]) == set(m.CANONICAL_COMMANDS)
    assert data["babel"]["presets"][0] == ["@babel/preset-env", {"targets": "> 0.25%, not dead"}]
    extends = data["eslintConfig"]["extends"]
    assert extends[0] == "eslint:recommended"
    assert len([e for e in extends if e.startswith("plugin:")]) == 2
    assert data["main"] == "lib/cjs/index.js"
    assert data["module"] == "lib/esm/index.mjs"


def test_transact_writes_pretty_json_and_keeps_other_bytes(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text(json.dumps({"name": "café", "private": True}, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    m.transact(path, "transpiler-config")

    text = path.read_text(encoding="utf-8")
    assert text.startswith('{\n  "name": "café",\n  "private": true,\n  "babel": {')
    assert text.endswith("}\n")


def test_read_manifest_errors(tmp_path: Path) -> None:
    with pytest.raises(ManifestNotFoundError):
        m.read_manifest(tmp_path / "package.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{ not json", encoding="utf-8")
    with pytest.raises(m.ManifestError, match="Malformed"):
        m.read_manifest(bad)

    array = tmp_path / "array.json"
    array.write_text("[]", encoding="utf-8")
    with pytest.raises(m.ManifestError, match="must be an object"):
        m.read_manifest(array)
