"""
cli.py

Responsibility: CLI entrypoint and command routing for pkg-scripts.

High-level flow (`pkg-scripts <command> [args...]`):
1) Resolve the project layout from the invoked binary
2) Load `.pkg-scripts.yml` and configure logging
3) Route the command to a delegated operation, a manifest transaction, or a sequence of both
4) Exit 0 on success, 1 on an unknown command or any failure

Composite commands stop at the first failing step. Completed steps are not rolled back.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, Sequence

from pkg_scripts import operations
from pkg_scripts.config import Config, ConfigError, load_config
from pkg_scripts.layout import LayoutError, ProjectLayout
from pkg_scripts.manifest import ManifestError, transact
from pkg_scripts.operations import OperationContext
from pkg_scripts.renderer import RenderError
from pkg_scripts.tools import NpmToolResolver, Runner, ToolError, ToolGate, ToolResolver, run_process

logger = logging.getLogger(__name__)

PROG = "pkg-scripts"

Handler = Callable[[OperationContext, Sequence[str]], int]


class CLIError(RuntimeError):
    pass


def _transaction(mutation: str) -> Handler:
    def handler(ctx: OperationContext, args: Sequence[str]) -> int:
        if args:
            logger.warning("Ignoring arguments for %s: %s", mutation, " ".join(args))
        transact(ctx.layout.manifest, mutation)
        return 0

    return handler


@dataclass(frozen=True)
class Command:
    help: str
    handler: Handler | None = None
    steps: tuple[str, ...] = ()


COMMANDS: dict[str, Command] = {
    "build": Command("Build commonjs and module outputs", steps=("build:commonjs", "build:module")),
    "build:commonjs": Command("Transpile src to lib/cjs", operations.build_commonjs),
    "build:module": Command("Transpile src to lib/esm", operations.build_module),
    "docs": Command("Render README.md to docs/index.html", steps=("docs:marked",)),
    "docs:marked": Command("Render README.md to docs/index.html", operations.build_docs),
    "init": Command(
        "Add default config, entry points and scripts to package.json",
        steps=("init:babel", "init:eslint", "init:exports", "init:scripts"),
    ),
    "init:babel": Command("Add a default babel block if absent", _transaction("transpiler-config")),
    "init:eslint": Command("Add a default eslintConfig block if absent", _transaction("linter-config")),
    "init:exports": Command("Set main, module, sideEffects and exports", _transaction("entry-points")),
    "init:scripts": Command("Add missing script aliases", _transaction("scripts")),
    "lint": Command("Lint src", steps=("lint:eslint",)),
    "lint:eslint": Command("Lint src with eslint", operations.lint),
    "test": Command("Run tests with a 100% coverage gate", steps=("test:mocha",)),
    "test:coverage": Command("Report coverage from the last test run", operations.coverage_report),
    "test:mocha": Command("Run mocha under nyc", operations.run_tests),
}


class Router:
    """Map command names to operations and run them in order."""

    def __init__(
        self,
        layout: ProjectLayout,
        resolver: ToolResolver,
        config: Config | None = None,
        runner: Runner = run_process,
    ) -> None:
        self.layout = layout
        self.config = config or Config()
        self.context = OperationContext(
            layout=layout,
            tools=ToolGate(resolver=resolver, root=layout.root, runner=runner),
            config=self.config,
        )

    def dispatch(self, command: str | None, args: Sequence[str] = ()) -> int:
        if command not in COMMANDS:
            return reject_command(command)

        self.layout.require_manifest()
        code = self._run(command, list(args))
        return 0 if code == 0 else 1

    def _run(self, name: str, args: list[str]) -> int:
        cmd = COMMANDS[name]
        if cmd.handler is not None:
            logger.info("Running %s", name)
            try:
                return cmd.handler(self.context, args)
            except OSError as e:
                raise CLIError(f"{name}: {e}") from e

        for step in cmd.steps:
            code = self._run(step, args)
            if code != 0:
                logger.error("%s failed at %s (exit %d)", name, step, code)
                return code
        return 0


def _usage_text() -> str:
    width = max(len(name) for name in COMMANDS)
    lines = [f"  {name.ljust(width)}  {cmd.help}" for name, cmd in COMMANDS.items()]
    return "commands:\n" + "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Build, lint, test and document a single JavaScript package",
        epilog=_usage_text(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    p.add_argument("command", nargs="?", help="Command to run")
    p.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed through to the delegated tool")
    return p


def print_usage() -> None:
    _build_parser().print_help(file=sys.stderr)


def reject_command(command: str | None) -> int:
    if command:
        print(f"{PROG}: unknown command '{command}'", file=sys.stderr)
    print_usage()
    return 1


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    ns, extra = parser.parse_known_args(sys.argv[1:] if argv is None else argv)
    if ns.command not in COMMANDS:
        return reject_command(ns.command)

    try:
        layout = ProjectLayout.from_invocation(sys.argv[0], os.environ.get("PKG_SCRIPTS_ROOT"))
        config = load_config(layout.root)
        setup_logging(config.log_level)
        logger.debug("Project root: %s", layout.root)

        resolver = NpmToolResolver(layout.root, installer=config.installer)
        return Router(layout, resolver, config, runner=run_process).dispatch(ns.command, [*ns.args, *extra])
    except (LayoutError, ConfigError, ManifestError, ToolError, RenderError, CLIError) as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(f"{PROG}: interrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
