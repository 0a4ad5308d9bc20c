"""Shared fixtures for the_agency tests."""

from __future__ import annotations

import argparse
import importlib.util
import sys
from pathlib import Path
from typing import Any, Optional

import pytest

# ---------------------------------------------------------------------------
# Load the package straight from the checkout.
# Register in sys.modules so all test files share the SAME instance.
# ---------------------------------------------------------------------------

_PACKAGE = Path(__file__).parent.parent / "scripts" / "the_agency"

if "the_agency" not in sys.modules:
    _spec = importlib.util.spec_from_file_location(
        "the_agency", _PACKAGE / "__init__.py", submodule_search_locations=[str(_PACKAGE)]
    )
    _mod = importlib.util.module_from_spec(_spec)
    sys.modules["the_agency"] = _mod
    _spec.loader.exec_module(_mod)

mod = sys.modules["the_agency"]

SELECT_DEFAULTS = object()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """An empty consumer project, set as the working directory."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def events():
    """Shared call log for ordering assertions across fs probes and prompts."""
    return []


@pytest.fixture
def fs_calls(monkeypatch, events):
    """Record existence probes, mkdirs and copies while still doing them."""
    real_exists = mod.file_exists
    real_makedirs = mod.os.makedirs
    real_copyfile = mod.shutil.copyfile

    def exists(path):
        events.append(("exists", Path(path)))
        return real_exists(path)

    depth = 0

    def makedirs(path, exist_ok=False):
        # os.makedirs recurses through the module attribute for missing parents
        nonlocal depth
        if depth == 0:
            events.append(("makedirs", Path(path)))
        depth += 1
        try:
            return real_makedirs(path, exist_ok=exist_ok)
        finally:
            depth -= 1

    def copyfile(src, dest):
        events.append(("copy", Path(src), Path(dest)))
        return real_copyfile(src, dest)

    monkeypatch.setattr(mod, "file_exists", exists)
    monkeypatch.setattr(mod.os, "makedirs", makedirs)
    monkeypatch.setattr(mod.shutil, "copyfile", copyfile)
    return events


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakePrompter:
    """Answers prompts from canned values and records every call."""

    def __init__(
        self,
        selected: Any = SELECT_DEFAULTS,
        answer: bool = True,
        events: Optional[list] = None,
    ) -> None:
        self.selected = selected
        self.answer = answer
        self.events = events if events is not None else []
        self.multi_select_calls: list[tuple[str, list, Optional[list]]] = []
        self.confirm_calls: list[str] = []

    def multi_select(self, prompt, options, defaults=None):
        self.multi_select_calls.append((prompt, options, defaults))
        self.events.append(("multi_select", prompt))
        if self.selected is SELECT_DEFAULTS:
            return list(defaults or [])
        return self.selected

    def confirm(self, prompt, default=True):
        self.confirm_calls.append(prompt)
        self.events.append(("confirm", prompt))
        return self.answer


def make_args(**overrides: Any) -> argparse.Namespace:
    """Create an argparse.Namespace with sensible test defaults."""
    defaults: dict[str, Any] = {
        "dry_run": False,
        "verbose": False,
        "yes": False,
        "pick": False,
        "command": "sync",
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def make_manifest(
    agents: int = 6,
    commands: int = 4,
    ai: int = 3,
    review_plugins: int = 2,
) -> Any:
    """Build a manifest with generated filenames."""
    def items(prefix: str, n: int):
        return tuple(
            mod.ManifestItem(f"{prefix}-{i}.md", f"{prefix} item {i}") for i in range(n)
        )

    return mod.Manifest(
        agents=items("agent", agents),
        commands=items("command", commands),
        ai=items("doc", ai),
        review_plugins=items("check", review_plugins),
    )


def seed_bundle(root: Path, manifest: Any) -> Path:
    """Write a source file for every manifest item under `root`. Returns root."""
    for category, items in manifest.syncable().items():
        src_dir = root / mod.CATEGORY_DIRS[category].source_dir
        src_dir.mkdir(parents=True, exist_ok=True)
        for item in items:
            (src_dir / item.file).write_text(f"{category.value}: {item.file}\n")
    plugin_dir = root / mod.REVIEW_PLUGIN_DIRS.source_dir
    plugin_dir.mkdir(parents=True, exist_ok=True)
    for plugin in manifest.review_plugins:
        (plugin_dir / plugin.file).write_text(f"plugin: {plugin.file}\n")
    return root


def seed_destinations(project: Path, files: list) -> None:
    """Pre-create every destination so each one is a conflict."""
    for f in files:
        f.dest.parent.mkdir(parents=True, exist_ok=True)
        f.dest.write_text("local edits\n")
