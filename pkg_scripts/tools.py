"""
tools.py

Responsibility: Make delegated Node tools available and run them as child processes.

This module must be the only place that:
- Spawns child processes
- Decides whether a tool is installed locally
- Installs missing tools as development dependencies

Every invocation uses a structured argument list; nothing is passed through a shell.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Sequence

logger = logging.getLogger(__name__)

DEFAULT_INSTALLER: tuple[str, ...] = ("npm", "install", "--save-dev")

# tool -> packages installed when the tool is missing
TOOL_PACKAGES: dict[str, tuple[str, ...]] = {
    "babel": ("@babel/cli", "@babel/core", "@babel/preset-env"),
    "eslint": ("eslint", "eslint-plugin-import", "eslint-plugin-promise"),
    "mocha": ("mocha", "@babel/core", "@babel/register", "@babel/preset-env"),
    "nyc": ("nyc",),
    "marked": ("marked",),
}


class ToolError(RuntimeError):
    pass


class ToolUnavailableError(ToolError):
    pass


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


def run_process(
    argv: Sequence[str],
    *,
    cwd: Path,
    capture_stdout: bool = False,
) -> subprocess.CompletedProcess[str]:
    """
    Run a child process and wait for it.

    stderr is always inherited so the tool's own diagnostics reach the terminal
    unchanged. stdout is inherited unless `capture_stdout` is set.
    """
    logger.info("$ %s", " ".join(argv))
    return subprocess.run(
        list(argv),
        cwd=str(cwd),
        check=False,
        stdout=subprocess.PIPE if capture_stdout else None,
        text=True,
    )


class ToolResolver(Protocol):
    def locate(self, tool: str) -> Path | None: ...

    def install(self, specs: Sequence[str]) -> None: ...


class NpmToolResolver:
    """Resolve tools from `<root>/node_modules/.bin`, installing through npm."""

    def __init__(
        self,
        root: Path,
        installer: Sequence[str] = DEFAULT_INSTALLER,
        runner: Runner = run_process,
    ) -> None:
        if not installer:
            raise ToolError("Installer command must not be empty.")
        self._root = root
        self._installer = tuple(installer)
        self._runner = runner

    def locate(self, tool: str) -> Path | None:
        shim = self._root / "node_modules" / ".bin" / tool
        return shim if shim.exists() else None

    def install(self, specs: Sequence[str]) -> None:
        argv = [*self._installer, *specs]
        try:
            proc = self._runner(argv, cwd=self._root)
        except OSError as e:
            raise ToolUnavailableError(f"Could not start installer: {argv[0]} ({e})") from e
        if proc.returncode != 0:
            raise ToolUnavailableError(f"Installation failed (exit {proc.returncode}): {' '.join(argv)}")


@dataclass
class ToolGate:
    """Ensure delegated tools exist before anything runs them."""

    resolver: ToolResolver
    root: Path
    runner: Runner = run_process

    def ensure(self, tool: str, *specs: str) -> Path:
        """
        Return the tool's path, installing `specs` (default: TOOL_PACKAGES[tool]) first if missing.

        Repeated calls for an available tool do nothing.
        """
        found = self.resolver.locate(tool)
        if found is not None:
            logger.debug("%s available at %s", tool, found)
            return found

        packages = specs or TOOL_PACKAGES.get(tool, (tool,))
        logger.info("%s not found; installing %s", tool, " ".join(packages))
        self.resolver.install(packages)

        found = self.resolver.locate(tool)
        if found is None:
            raise ToolUnavailableError(f"{tool} is still unavailable after installing {' '.join(packages)}")
        return found

    def run(self, tool: str, args: Sequence[str], *, capture_stdout: bool = False) -> subprocess.CompletedProcess[str]:
        executable = self.ensure(tool)
        argv = [str(executable), *args]
        try:
            return self.runner(argv, cwd=self.root, capture_stdout=capture_stdout)
        except OSError as e:
            raise ToolUnavailableError(f"Could not start {tool}: {e}") from e
