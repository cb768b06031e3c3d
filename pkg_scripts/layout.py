"""
layout.py

Responsibility: Resolve the project root and the fixed directory layout of a package.

Root resolution rules, applied in order:
1) An explicit override (e.g. `PKG_SCRIPTS_ROOT`) wins.
2) Binary in `node_modules/.bin` -> the directory enclosing `node_modules`.
3) Binary in the script directory of a project-local virtualenv (its parent holds
   `pyvenv.cfg`) -> the directory enclosing the virtualenv.
4) Otherwise -> the parent of the binary's directory.

Symlinks are not followed: shims are usually symlinks into the installed package.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

MANIFEST_NAME = "package.json"
README_NAME = "README.md"

UNIT_NAME = "index.js"
SUITE_NAME = "spec.js"
SETUP_NAME = "spec.setup.js"


class LayoutError(RuntimeError):
    pass


class ManifestNotFoundError(LayoutError):
    pass


def _absolute(path: str | Path) -> Path:
    # os.path.abspath normalizes without resolving symlinks.
    return Path(os.path.abspath(path))


def _is_npm_shim_dir(bin_dir: Path) -> bool:
    return bin_dir.name == ".bin" and bin_dir.parent.name == "node_modules"


def _is_venv_script_dir(bin_dir: Path) -> bool:
    return (bin_dir.parent / "pyvenv.cfg").is_file()


def resolve_root(binary: str | Path, override: str | Path | None = None) -> Path:
    """
    Return the project root for an invocation of `binary`.
    """
    if override:
        return _absolute(override)

    bin_dir = _absolute(binary).parent
    if _is_npm_shim_dir(bin_dir):
        return bin_dir.parent.parent
    if _is_venv_script_dir(bin_dir):
        return bin_dir.parent.parent
    return bin_dir.parent


@dataclass(frozen=True)
class ProjectLayout:
    """Conventional directories of a single package rooted at `root`."""

    root: Path

    @classmethod
    def from_invocation(cls, binary: str | Path, override: str | Path | None = None) -> ProjectLayout:
        return cls(root=resolve_root(binary, override))

    @property
    def src(self) -> Path:
        return self.root / "src"

    @property
    def lib(self) -> Path:
        return self.root / "lib"

    @property
    def docs(self) -> Path:
        return self.root / "docs"

    @property
    def cjs(self) -> Path:
        return self.lib / "cjs"

    @property
    def esm(self) -> Path:
        return self.lib / "esm"

    @property
    def manifest(self) -> Path:
        return self.root / MANIFEST_NAME

    @property
    def readme(self) -> Path:
        return self.root / README_NAME

    @property
    def setup_file(self) -> Path | None:
        candidate = self.src / SETUP_NAME
        return candidate if candidate.is_file() else None

    def require_manifest(self) -> Path:
        if not self.manifest.is_file():
            raise ManifestNotFoundError(f"No manifest found: {self.manifest}")
        return self.manifest

    def units(self) -> list[Path]:
        """Buildable units under `src`, sorted for deterministic output."""
        return self._glob(UNIT_NAME)

    def suites(self) -> list[Path]:
        return self._glob(SUITE_NAME)

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    def _glob(self, name: str) -> list[Path]:
        if not self.src.is_dir():
            return []
        return sorted(p for p in self.src.rglob(name) if p.is_file())
