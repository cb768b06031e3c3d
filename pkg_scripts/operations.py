"""
operations.py

Responsibility: Thin, fixed-flag invocations of the delegated tools.

Each operation takes an `OperationContext` plus passthrough arguments and returns an
exit code. Tool output is never reinterpreted; a nonzero exit is handed back as-is.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from pkg_scripts.config import Config
from pkg_scripts.layout import SETUP_NAME, SUITE_NAME, UNIT_NAME, ProjectLayout
from pkg_scripts.manifest import read_manifest
from pkg_scripts.renderer import render_docs_page
from pkg_scripts.tools import ToolGate

logger = logging.getLogger(__name__)

COVERAGE_THRESHOLD = 100


@dataclass(frozen=True)
class OperationContext:
    layout: ProjectLayout
    tools: ToolGate
    config: Config


def _reset_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def _stamp_module_type(out_dir: Path, module_type: str) -> None:
    (out_dir / "package.json").write_text(json.dumps({"type": module_type}) + "\n", encoding="utf-8")


def _babel_args(layout: ProjectLayout, out_dir: Path) -> list[str]:
    return [
        layout.relative(layout.src),
        "--out-dir",
        layout.relative(out_dir),
        "--only",
        f"**/{UNIT_NAME}",
        "--minified",
        "--no-comments",
    ]


def _transpile(ctx: OperationContext, out_dir: Path, module_type: str, extra: list[str], args: Sequence[str]) -> int:
    layout = ctx.layout
    ctx.tools.ensure("babel")
    logger.info("Building %d unit(s) into %s", len(layout.units()), layout.relative(out_dir))

    _reset_dir(out_dir)
    proc = ctx.tools.run("babel", [*_babel_args(layout, out_dir), *extra, *args])
    if proc.returncode != 0:
        return proc.returncode
    _stamp_module_type(out_dir, module_type)
    return 0


def build_commonjs(ctx: OperationContext, args: Sequence[str]) -> int:
    return _transpile(ctx, ctx.layout.cjs, "commonjs", [], args)


def build_module(ctx: OperationContext, args: Sequence[str]) -> int:
    # Ambient babel config is ignored here; the production env profile applies instead.
    extra = ["--out-file-extension", ".mjs", "--no-babelrc", "--env-name", "production"]
    return _transpile(ctx, ctx.layout.esm, "module", extra, args)


def _docs_title(ctx: OperationContext) -> str:
    if ctx.config.docs.title:
        return ctx.config.docs.title
    name = read_manifest(ctx.layout.manifest).get("name")
    return str(name) if name else ctx.layout.root.name


def build_docs(ctx: OperationContext, args: Sequence[str]) -> int:
    layout = ctx.layout
    ctx.tools.ensure("marked")

    proc = ctx.tools.run("marked", ["-i", layout.relative(layout.readme), *args], capture_stdout=True)
    if proc.returncode != 0:
        return proc.returncode

    page = render_docs_page(body=proc.stdout or "", title=_docs_title(ctx))
    layout.docs.mkdir(parents=True, exist_ok=True)
    out = layout.docs / "index.html"
    out.write_text(page, encoding="utf-8")
    logger.info("Wrote %s", layout.relative(out))
    return 0


def lint(ctx: OperationContext, args: Sequence[str]) -> int:
    ctx.tools.ensure("eslint")
    proc = ctx.tools.run("eslint", [ctx.layout.relative(ctx.layout.src), *args])
    return proc.returncode


def _coverage_args(layout: ProjectLayout) -> list[str]:
    src = layout.relative(layout.src)
    threshold = str(COVERAGE_THRESHOLD)
    return [
        "--all",
        "--include",
        f"{src}/**/{UNIT_NAME}",
        "--exclude",
        f"{src}/**/{SUITE_NAME}",
        "--check-coverage",
        "--branches",
        threshold,
        "--functions",
        threshold,
        "--lines",
        threshold,
        "--statements",
        threshold,
        "--skip-full",
        "--reporter",
        "text",
    ]


def _mocha_args(layout: ProjectLayout, mocha: Path) -> list[str]:
    argv = [str(mocha), "--require", "@babel/register"]
    setup = layout.setup_file
    if setup is not None:
        argv += ["--require", layout.relative(setup)]
    argv.append(f"{layout.relative(layout.src)}/**/{SUITE_NAME}")
    return argv


def run_tests(ctx: OperationContext, args: Sequence[str]) -> int:
    layout = ctx.layout
    ctx.tools.ensure("nyc")
    mocha = ctx.tools.ensure("mocha")
    suites = layout.suites()
    if not suites:
        logger.warning("No %s files under %s; coverage will fall below the threshold", SUITE_NAME, layout.src)
    elif layout.setup_file is None:
        logger.debug("No %s; running suites without shared setup", SETUP_NAME)

    proc = ctx.tools.run("nyc", [*_coverage_args(layout), *_mocha_args(layout, mocha), *args])
    return proc.returncode


def coverage_report(ctx: OperationContext, args: Sequence[str]) -> int:
    ctx.tools.ensure("nyc")
    proc = ctx.tools.run("nyc", ["report", "--reporter", "text-summary", *args])
    return proc.returncode
