"""
pkg_scripts package

This package implements pkg-scripts, a CLI that drives the lifecycle of a single
JavaScript package (build, lint, test, docs, init) through fixed-flag Node tools.

Key responsibilities are split across modules:
- `layout.py`: project root resolution and the fixed src/lib/docs layout
- `tools.py`: tool availability gate (on-demand install) and child-process runner
- `manifest.py`: package.json mutations and the read-modify-write transaction
- `operations.py`: build, docs, lint, test and coverage invocations
- `renderer.py`: docs page rendering around the markdown renderer's output
- `config.py`: optional `.pkg-scripts.yml` settings
- `cli.py`: CLI entrypoint and command routing
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
