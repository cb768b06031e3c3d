"""
manifest.py

Responsibility: Read, mutate and write back the project manifest (`package.json`).

Mutations are pure functions from an old manifest to a new one. Policies:
- `scripts`: canonical aliases are merged under existing ones (existing entries win).
- `entry-points`: `main`, `module`, `sideEffects` and `exports` are always overwritten.
- `transpiler-config` / `linter-config`: a default block is added only if none exists.

The write is a single in-place overwrite with no backup and no locking. Two processes
running a transaction on the same manifest at once is undefined behaviour.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable

from pkg_scripts.layout import ManifestNotFoundError

logger = logging.getLogger(__name__)

PROGRAM = "pkg-scripts"

CANONICAL_COMMANDS: tuple[str, ...] = ("build", "docs", "init", "lint", "test")

CJS_ENTRY = "lib/cjs/index.js"
ESM_ENTRY = "lib/esm/index.mjs"

BROWSER_TARGETS = "> 0.25%, not dead"

Manifest = dict[str, Any]


class ManifestError(RuntimeError):
    pass


def default_babel_config() -> dict[str, Any]:
    return {
        "presets": [
            ["@babel/preset-env", {"targets": BROWSER_TARGETS}],
        ],
    }


def default_eslint_config() -> dict[str, Any]:
    return {
        "extends": [
            "eslint:recommended",
            "plugin:import/recommended",
            "plugin:promise/recommended",
        ],
        "parserOptions": {"ecmaVersion": "latest", "sourceType": "module"},
        "env": {"es2022": True, "node": True, "mocha": True},
    }


def merge_scripts(manifest: Manifest) -> Manifest:
    out = copy.deepcopy(manifest)
    existing = out.get("scripts")
    if existing is None:
        existing = {}
    if not isinstance(existing, dict):
        raise ManifestError("`scripts` must be an object when present.")

    merged = dict(existing)
    for name in CANONICAL_COMMANDS:
        merged.setdefault(name, f"{PROGRAM} {name}")
    out["scripts"] = merged
    return out


def set_entry_points(manifest: Manifest) -> Manifest:
    out = copy.deepcopy(manifest)
    out["main"] = CJS_ENTRY
    out["module"] = ESM_ENTRY
    out["sideEffects"] = False
    out["exports"] = {
        "import": f"./{ESM_ENTRY}",
        "require": f"./{CJS_ENTRY}",
    }
    return out


def _fill_block(key: str, default: Callable[[], dict[str, Any]]) -> Callable[[Manifest], Manifest]:
    def mutate(manifest: Manifest) -> Manifest:
        out = copy.deepcopy(manifest)
        if key in out:
            logger.info("Keeping existing `%s` block", key)
            return out
        out[key] = default()
        return out

    mutate.__name__ = f"fill_{key}"
    return mutate


fill_babel_config = _fill_block("babel", default_babel_config)
fill_eslint_config = _fill_block("eslintConfig", default_eslint_config)


MUTATIONS: dict[str, Callable[[Manifest], Manifest]] = {
    "scripts": merge_scripts,
    "entry-points": set_entry_points,
    "transpiler-config": fill_babel_config,
    "linter-config": fill_eslint_config,
}


def apply(mutation: str, manifest: Manifest) -> Manifest:
    """
    Return a new manifest with the named mutation applied. The input is left untouched.
    """
    try:
        fn = MUTATIONS[mutation]
    except KeyError:
        raise ManifestError(f"Unknown manifest mutation: {mutation}") from None
    return fn(manifest)


def read_manifest(path: Path) -> Manifest:
    if not path.is_file():
        raise ManifestNotFoundError(f"No manifest found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(f"Malformed manifest {path}: {e}") from e
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest root must be an object: {path}")
    return data


def dumps(data: Manifest) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_manifest(path: Path, data: Manifest) -> None:
    try:
        path.write_text(dumps(data), encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot write manifest {path}: {e}") from e


def transact(path: Path, mutation: str) -> Manifest:
    """
    Read the manifest at `path`, apply one mutation and write the result back.
    """
    before = read_manifest(path)
    after = apply(mutation, before)
    write_manifest(path, after)
    logger.info("Applied %s to %s", mutation, path)
    return after
