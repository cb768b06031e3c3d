from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import pytest

from pkg_scripts.cli import Router
from pkg_scripts.layout import ProjectLayout
from pkg_scripts.tools import TOOL_PACKAGES, ToolUnavailableError


class FakeResolver:
    """In-memory stand-in for the npm resolver."""

    def __init__(self, root: Path, available: Sequence[str] = (), fail_install: bool = False) -> None:
        self.root = root
        self.available = set(available)
        self.fail_install = fail_install
        self.installs: list[tuple[str, ...]] = []

    def locate(self, tool: str) -> Path | None:
        if tool in self.available:
            return self.root / "node_modules" / ".bin" / tool
        return None

    def install(self, specs: Sequence[str]) -> None:
        self.installs.append(tuple(specs))
        if self.fail_install:
            raise ToolUnavailableError(f"Installation failed: {' '.join(specs)}")
        self.available.update(t for t, pkgs in TOOL_PACKAGES.items() if set(pkgs) <= set(specs))


@dataclass
class FakeRunner:
    """Records child-process invocations instead of spawning them."""

    returncodes: dict[str, int] = field(default_factory=dict)
    stdout: dict[str, str] = field(default_factory=dict)
    hooks: dict[str, Callable[[list[str], Path], None]] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)

    def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        capture_stdout: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        argv = list(argv)
        self.calls.append(argv)
        tool = Path(argv[0]).name
        hook = self.hooks.get(tool)
        if hook is not None:
            hook(argv, cwd)
        out = self.stdout.get(tool, "") if capture_stdout else None
        return subprocess.CompletedProcess(argv, self.returncodes.get(tool, 0), stdout=out)

    def tools(self) -> list[str]:
        return [Path(argv[0]).name for argv in self.calls]


def fake_babel(argv: list[str], cwd: Path) -> None:
    """Copy `index.js` units from the source dir into --out-dir, like babel with --only."""
    src = cwd / argv[1]
    out = cwd / argv[argv.index("--out-dir") + 1]
    ext = argv[argv.index("--out-file-extension") + 1] if "--out-file-extension" in argv else ".js"
    for unit in src.rglob("index.js"):
        target = (out / unit.relative_to(src)).with_suffix(ext)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(unit.read_text(encoding="utf-8"), encoding="utf-8")


def write_manifest(root: Path, data: dict) -> Path:
    path = root / "package.json"
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> ProjectLayout:
    write_manifest(tmp_path, {"name": "demo", "version": "1.0.0"})
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "index.js").write_text("export const one = 1;\n", encoding="utf-8")
    return ProjectLayout(root=tmp_path)


@pytest.fixture
def resolver(project: ProjectLayout) -> FakeResolver:
    return FakeResolver(project.root, available=list(TOOL_PACKAGES))


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(hooks={"babel": fake_babel})


@pytest.fixture
def router(project: ProjectLayout, resolver: FakeResolver, runner: FakeRunner) -> Router:
    return Router(project, resolver, runner=runner)
