#!/usr/bin/env python3
"""MCP server exposing the-agency sync operations as structured tools."""

from __future__ import annotations

import argparse
import io
import sys
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any, Optional

SCRIPT_DIR = Path(__file__).resolve().parent.parent / "scripts"
sys.path.insert(0, str(SCRIPT_DIR))

import the_agency as agency  # noqa: E402
from mcp.server.fastmcp import FastMCP  # noqa: E402

mcp = FastMCP(
    "the-agency",
    instructions="Install agent prompts, commands, AI context docs, and review plugins into the working directory.",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FixedPrompter:
    """Answers prompts from tool arguments instead of a terminal."""

    def __init__(self, selection: Optional[list[str]], overwrite: bool) -> None:
        self.selection = selection
        self.overwrite = overwrite

    def multi_select(
        self,
        prompt: str,
        options: list[tuple[str, str]],
        defaults: Optional[list[str]] = None,
    ) -> Optional[list[str]]:
        if self.selection is None:
            return list(defaults or [])
        known = {oid for oid, _ in options}
        unknown = [s for s in self.selection if s not in known]
        if unknown:
            print(f"Error: unknown entries: {', '.join(unknown)}", file=sys.stderr)
            sys.exit(1)
        return [oid for oid, _ in options if oid in self.selection]

    def confirm(self, prompt: str, default: bool = True) -> bool:
        if not self.overwrite:
            print("Pass overwrite=true to replace existing files.")
        return self.overwrite


def _mock_args(**kwargs: Any) -> argparse.Namespace:
    defaults = {
        "dry_run": False,
        "verbose": False,
        "yes": False,
        "pick": False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@contextmanager
def _capture_output():
    old_out, old_err = sys.stdout, sys.stderr
    sys.stdout = buf_out = io.StringIO()
    sys.stderr = buf_err = io.StringIO()
    try:
        yield buf_out, buf_err
    finally:
        sys.stdout, sys.stderr = old_out, old_err


def _run_cmd(fn, args: argparse.Namespace) -> dict[str, Any]:
    with _capture_output() as (out, err):
        try:
            fn(args)
        except SystemExit as e:
            return {
                "success": False,
                "error": err.getvalue().strip() or out.getvalue().strip() or f"exit code {e.code}",
            }
        except OSError as e:
            return {
                "success": False,
                "error": f"{e} (some files may already have been copied)",
                "output": out.getvalue().strip(),
            }
    return {
        "success": True,
        "output": out.getvalue().strip(),
    }


# ---------------------------------------------------------------------------
# Read-only tools
# ---------------------------------------------------------------------------


@mcp.tool()
def agency_manifest() -> dict[str, Any]:
    """Return every bundled file grouped by category, with its destination."""
    manifest = agency.build_manifest()
    categories: dict[str, Any] = {}
    for category, items in manifest.syncable().items():
        dirs = agency.CATEGORY_DIRS[category]
        categories[category.value] = {
            "dest_dir": dirs.dest_dir,
            "items": [{"file": i.file, "description": i.description} for i in items],
        }
    return {
        "categories": categories,
        "review_plugins": {
            "dest_dir": agency.REVIEW_PLUGIN_DIRS.dest_dir,
            "items": [
                {"file": p.file, "description": p.description}
                for p in manifest.review_plugins
            ],
        },
    }


@mcp.tool()
def agency_status() -> dict[str, Any]:
    """Report which bundled files already exist in the working directory."""
    manifest = agency.build_manifest()
    cwd = Path.cwd()
    files = agency.get_files_to_sync(manifest.syncable(), cwd=cwd)
    plugins = agency.resolve_items(
        agency.REVIEW_PLUGIN_DIRS, manifest.review_plugins, agency.PACKAGE_ROOT, cwd
    )
    return {
        "cwd": str(cwd),
        "files": [{"label": f.label, "present": agency.file_exists(f.dest)} for f in files],
        "review_plugins": [
            {"label": f.label, "present": agency.file_exists(f.dest)} for f in plugins
        ],
    }


# ---------------------------------------------------------------------------
# Copy tools
# ---------------------------------------------------------------------------


@mcp.tool()
def agency_sync(
    files: list[str] | None = None,
    overwrite: bool = False,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Copy agents, commands, and AI context docs into the working directory.

    Args:
        files: Labels to sync (e.g. [".claude/agents/dev.md"]). Omit to sync everything.
        overwrite: Replace files that already exist. Without it, nothing is copied on conflict.
        dry_run: Preview without writing.
    """
    args = _mock_args(pick=files is not None, dry_run=dry_run)
    prompter = _FixedPrompter(files, overwrite)
    return _run_cmd(partial(agency.cmd_sync, prompter=prompter), args)


@mcp.tool()
def agency_install_review_plugins(
    plugins: list[str] | None = None,
    overwrite: bool = False,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Install review-check plugins into .ai/review-checks/.

    Args:
        plugins: Plugin filenames (e.g. ["general.md"]). Omit to install all of them.
        overwrite: Replace plugins that already exist.
        dry_run: Preview without writing.
    """
    args = _mock_args(dry_run=dry_run)
    prompter = _FixedPrompter(plugins, overwrite)
    return _run_cmd(partial(agency.cmd_install_review_plugins, prompter=prompter), args)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run(transport="stdio")
