#!/usr/bin/env python3
"""Sync agent prompts, commands, and AI context docs into the current project."""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence

try:
    import curses

    _HAS_CURSES = True
except ImportError:
    _HAS_CURSES = False

# ---------------------------------------------------------------------------
# Terminal colors (respects NO_COLOR and non-TTY)
# ---------------------------------------------------------------------------

_USE_COLOR = (
    sys.stdout.isatty()
    and os.environ.get("NO_COLOR") is None
    and os.environ.get("TERM") != "dumb"
)


def _ansi(code: str) -> str:
    return f"\033[{code}m" if _USE_COLOR else ""


class C:
    """ANSI escape sequences, empty strings when color is disabled."""
    RESET = _ansi("0")
    BOLD = _ansi("1")
    DIM = _ansi("2")
    RED = _ansi("31")
    GREEN = _ansi("32")
    YELLOW = _ansi("33")
    BLUE = _ansi("34")
    MAGENTA = _ansi("35")
    CYAN = _ansi("36")
    BOLD_RED = _ansi("1;31")
    BOLD_GREEN = _ansi("1;32")
    BOLD_YELLOW = _ansi("1;33")
    BOLD_CYAN = _ansi("1;36")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManifestItem:
    file: str
    description: str


class Category(Enum):
    """Manifest categories handled by `sync`. Review plugins are not one."""
    AGENTS = "agents"
    COMMANDS = "commands"
    AI = "ai"


@dataclass(frozen=True)
class CategoryDirs:
    source_dir: str
    dest_dir: str


@dataclass(frozen=True)
class SyncFile:
    src: Path
    dest: Path
    label: str


@dataclass(frozen=True)
class Manifest:
    agents: tuple[ManifestItem, ...]
    commands: tuple[ManifestItem, ...]
    ai: tuple[ManifestItem, ...]
    review_plugins: tuple[ManifestItem, ...]

    def items(self, category: Category) -> tuple[ManifestItem, ...]:
        return getattr(self, category.value)

    def syncable(self) -> dict[Category, tuple[ManifestItem, ...]]:
        """Every category eligible for `sync`, in declaration order."""
        return {category: self.items(category) for category in Category}


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Bundled sources ship inside the package directory.
PACKAGE_ROOT = Path(__file__).resolve().parent

CATEGORY_DIRS: Mapping[Category, CategoryDirs] = {
    Category.AGENTS: CategoryDirs("templates/.claude/agents", ".claude/agents"),
    Category.COMMANDS: CategoryDirs("templates/.claude/commands", ".claude/commands"),
    Category.AI: CategoryDirs("templates/.ai", ".ai"),
}

# The review-pr command looks for checks in .ai/review-checks/.
REVIEW_PLUGIN_DIRS = CategoryDirs("review-plugins", ".ai/review-checks")


def build_manifest() -> Manifest:
    """Return the catalog of files shipped with this package."""
    return Manifest(
        agents=(
            ManifestItem("architect.md", "Designs technical approach, produces build plans"),
            ManifestItem("dev.md", "Implements features from build plans"),
            ManifestItem("explorer.md", "Explores and maps unfamiliar codebases"),
            ManifestItem("pm.md", "Produces product briefs from requirements"),
            ManifestItem("reviewer.md", "Adversarial code review with pass/fail verdict"),
            ManifestItem("test-hardener.md", "Hardens test coverage, finds edge cases"),
        ),
        commands=(
            ManifestItem("architect.md", "Interactive architecture design sessions"),
            ManifestItem("build.md", "Build orchestrator pipeline"),
            ManifestItem("pm.md", "Interactive product requirements discovery"),
            ManifestItem("prep-pr.md", "Pre-submission PR prep and draft creation"),
            ManifestItem("review-pr.md", "Structured PR review briefing"),
            ManifestItem("weekly-summary.md", "Weekly synthesis of merged PRs"),
        ),
        ai=(
            ManifestItem("UnitTestGeneration.md", "Unit testing style guide"),
            ManifestItem("UnitTestExamples.md", "Reference examples for the test style guide"),
            ManifestItem("workflow.md", "Multi-agent development workflow guide"),
        ),
        review_plugins=(
            ManifestItem(
                "general.md",
                "General checks: env vars, type safety, dead code, debugging "
                "leftovers, breaking changes, binary assets",
            ),
            ManifestItem(
                "node-backend.md",
                "Node.js backend checks: API design, error handling, security, "
                "database patterns",
            ),
            ManifestItem(
                "react-frontend.md",
                "React frontend checks: component design, hooks, rendering, accessibility",
            ),
            ManifestItem(
                "unit-test.md",
                "Unit test checks: test quality, coverage, mocking patterns, assertions",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# CLI setup
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="the-agency",
        description="Copy agent, command, and AI context files into the current project.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Preview changes without writing")
    parser.add_argument("--verbose", action="store_true", help="Detailed output")
    parser.add_argument("--yes", action="store_true", help="Skip confirmation prompts")

    sub = parser.add_subparsers(dest="command")
    sync_p = sub.add_parser("sync", help="Sync all Claude Code files to the current project")
    sync_p.add_argument("--pick", action="store_true",
                        help="Interactively select which files to sync")
    sub.add_parser("install-review-plugins", help="Pick optional review-check plugins to install")
    sub.add_parser("status", help="Show which manifest files are present in this project")
    sub.add_parser("help", help="Show this message")

    return parser


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def section_header(title: str) -> None:
    width = 50
    rule = "─" * max(1, width - len(title) - 5)
    print(f"\n{C.BOLD_CYAN}─── {title} {rule}{C.RESET}")


def log(msg: str) -> None:
    print(f"  {msg}")


def log_verbose(msg: str, args: argparse.Namespace) -> None:
    if args.verbose:
        print(f"  {C.DIM}[verbose] {msg}{C.RESET}")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    def multi_select(
        self,
        prompt: str,
        options: list[tuple[str, str]],
        defaults: Optional[list[str]] = None,
    ) -> Optional[list[str]]: ...

    def confirm(self, prompt: str, default: bool = True) -> bool: ...


def _curses_multi_select(
    stdscr: Any,
    prompt: str,
    options: list[tuple[str, str]],
    defaults: Optional[list[str]],
) -> Optional[list[str]]:
    """Interactive multi-select using curses. Called via curses.wrapper."""
    curses.curs_set(0)
    curses.use_default_colors()
    selected = set(defaults or [])
    cursor = 0
    hint = "(↑↓ navigate, Space toggle, a all, Enter confirm, q cancel)"

    while True:
        stdscr.clear()
        max_y, max_x = stdscr.getmaxyx()
        stdscr.addnstr(0, 0, prompt, max_x - 1)
        stdscr.addnstr(1, 0, hint, max_x - 1)

        # Keep the cursor row on screen when the list is taller than the terminal
        visible = max(1, max_y - 3)
        top = max(0, cursor - visible + 1)
        for row, (oid, label) in enumerate(options[top:top + visible]):
            i = top + row
            marker = "x" if oid in selected else " "
            prefix = ">" if i == cursor else " "
            line = f"  {prefix} [{marker}] {label}"
            stdscr.addnstr(row + 3, 0, line, max_x - 1)

        stdscr.refresh()
        key = stdscr.getch()

        if key == curses.KEY_UP and cursor > 0:
            cursor -= 1
        elif key == curses.KEY_DOWN and cursor < len(options) - 1:
            cursor += 1
        elif key == ord(" "):
            oid = options[cursor][0]
            selected ^= {oid}
        elif key == ord("a"):
            all_ids = {o for o, _ in options}
            selected = set() if selected == all_ids else all_ids
        elif key in (curses.KEY_ENTER, 10, 13):
            return [o for o, _ in options if o in selected]
        elif key == ord("q") or key == 27:
            return None


def _fallback_multi_select(
    prompt: str,
    options: list[tuple[str, str]],
    defaults: Optional[list[str]],
) -> Optional[list[str]]:
    """Comma-separated number input fallback for non-TTY environments."""
    print(f"\n{prompt}")
    for i, (oid, label) in enumerate(options, 1):
        marker = "*" if defaults and oid in defaults else " "
        print(f"  {i}. [{marker}] {label}")
    if defaults:
        print("\n  (* = preselected, press Enter to accept)")
    try:
        raw = input("\n  Select (comma-separated numbers, 'all', or 'q' to cancel): ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return None
    if not raw:
        return list(defaults or [])
    if raw.lower() == "q":
        return None
    if raw.lower() == "all":
        return [oid for oid, _ in options]
    selected = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            idx = int(part) - 1
            if 0 <= idx < len(options) and options[idx][0] not in selected:
                selected.append(options[idx][0])
    return selected


class TerminalPrompter:
    """Prompts on the controlling terminal: curses when available, plain input otherwise."""

    def multi_select(
        self,
        prompt: str,
        options: list[tuple[str, str]],
        defaults: Optional[list[str]] = None,
    ) -> Optional[list[str]]:
        """Return the chosen option ids, or None if cancelled."""
        if not options:
            return []

        if _HAS_CURSES and sys.stdin.isatty() and sys.stdout.isatty():
            try:
                return curses.wrapper(
                    _curses_multi_select, prompt, options, defaults
                )
            except curses.error:
                pass
            except KeyboardInterrupt:
                return None

        return _fallback_multi_select(prompt, options, defaults)

    def confirm(self, prompt: str, default: bool = True) -> bool:
        suffix = f"{C.BOLD}[Y/n]{C.RESET}" if default else f"{C.BOLD}[y/N]{C.RESET}"
        try:
            answer = input(f"{prompt} {suffix} ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        if not answer:
            return default
        return answer in ("y", "yes")


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def resolve_items(
    dirs: CategoryDirs,
    items: Sequence[ManifestItem],
    package_root: Path,
    cwd: Path,
) -> list[SyncFile]:
    """Join one directory pair with each item's filename."""
    return [
        SyncFile(
            src=package_root / dirs.source_dir / item.file,
            dest=cwd / dirs.dest_dir / item.file,
            label=f"{dirs.dest_dir}/{item.file}",
        )
        for item in items
    ]


def get_files_to_sync(
    categories: Mapping[Category, Sequence[ManifestItem]],
    package_root: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> list[SyncFile]:
    """Resolve manifest categories into concrete source/destination paths.

    Keys must be members of `CATEGORY_DIRS`. Anything else (a review plugin
    list, a raw string) raises KeyError: upstream filtering is broken.
    Output follows category order, then item order within each category.
    """
    if package_root is None:
        package_root = PACKAGE_ROOT
    if cwd is None:
        cwd = Path.cwd()
    files: list[SyncFile] = []
    for category, items in categories.items():
        files.extend(resolve_items(CATEGORY_DIRS[category], items, package_root, cwd))
    return files


# ---------------------------------------------------------------------------
# Conflict detection and copying
# ---------------------------------------------------------------------------


def file_exists(path: Path) -> bool:
    """Return True if something exists at `path`.

    This is an access(F_OK) probe, not a stat. A probe that fails for any
    reason, including permission denied on a parent directory, reads as
    "does not exist"; the later copy then surfaces the real error.
    """
    return os.access(path, os.F_OK)


def find_conflicts(files: Sequence[SyncFile]) -> list[SyncFile]:
    """Probe every destination and return the ones that already exist."""
    return [f for f in files if file_exists(f.dest)]


def copy_sync_file(f: SyncFile, args: argparse.Namespace) -> None:
    os.makedirs(f.dest.parent, exist_ok=True)
    shutil.copyfile(f.src, f.dest)
    log_verbose(f"{f.src} -> {f.dest}", args)


def apply_sync_files(
    files: Sequence[SyncFile],
    args: argparse.Namespace,
    prompter: Prompter,
    cancelled_msg: str,
    summary_msg: str,
) -> int:
    """Check for conflicts, ask once if there are any, then copy everything.

    `summary_msg` is formatted with `count`. Returns the number of files
    copied (0 when the user declines or in dry-run mode). Copy errors are
    not caught here: files written before the failure stay on disk.
    """
    conflicts = find_conflicts(files)

    if conflicts:
        print(f"\n{C.BOLD_YELLOW}Existing files that will be overwritten:{C.RESET}")
        for f in conflicts:
            print(f"  {C.YELLOW}-{C.RESET} {f.label}")

        if args.yes:
            log_verbose("--yes given, overwriting without asking", args)
        elif not args.dry_run and not prompter.confirm(
            f"\n{len(conflicts)} destination file(s) will be overwritten. Proceed?",
            default=True,
        ):
            print(f"{C.DIM}{cancelled_msg}{C.RESET}")
            return 0

    if args.dry_run:
        print()
        for f in files:
            log(f"{C.MAGENTA}[dry-run]{C.RESET} Would copy {f.label}")
        print(f"\n{C.MAGENTA}(dry-run){C.RESET} {len(files)} file(s), nothing written.")
        return 0

    print()
    for f in files:
        copy_sync_file(f, args)
        log(f"{C.GREEN}✓{C.RESET} {f.label}")

    print(f"\n{C.BOLD_GREEN}{summary_msg.format(count=len(files))}{C.RESET}")
    return len(files)


# ---------------------------------------------------------------------------
# Pick mode
# ---------------------------------------------------------------------------


def select_options(
    prompter: Prompter,
    prompt: str,
    options: list[tuple[str, str]],
    defaults: list[str],
    auto_accept: bool = False,
) -> Optional[list[str]]:
    """Multi-select through `prompter`, or take the defaults when auto_accept is set."""
    if auto_accept:
        print(f"\n{prompt}")
        for oid in defaults:
            label = next((lbl for o, lbl in options if o == oid), oid)
            print(f"  {C.DIM}[auto]{C.RESET} {label}")
        return list(defaults)
    return prompter.multi_select(prompt, options, defaults=defaults)


def pick_categories(
    manifest: Manifest,
    prompter: Prompter,
    auto_accept: bool = False,
) -> Optional[dict[Category, list[ManifestItem]]]:
    """Ask which syncable files to copy. Returns None if nothing was chosen."""
    choices: dict[str, tuple[Category, ManifestItem]] = {}
    options: list[tuple[str, str]] = []
    for category, items in manifest.syncable().items():
        dest_dir = CATEGORY_DIRS[category].dest_dir
        for item in items:
            label = f"{dest_dir}/{item.file}"
            choices[label] = (category, item)
            options.append((label, f"{label:40s} {item.description}"))

    selected = select_options(
        prompter,
        "Select files to sync:",
        options,
        defaults=list(choices),
        auto_accept=auto_accept,
    )
    if not selected:
        print(f"{C.DIM}Nothing selected. Exiting.{C.RESET}")
        return None

    grouped: dict[Category, list[ManifestItem]] = {}
    for label in selected:
        category, item = choices[label]
        grouped.setdefault(category, []).append(item)
    return grouped


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_sync(
    args: argparse.Namespace,
    prompter: Optional[Prompter] = None,
    manifest: Optional[Manifest] = None,
    package_root: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Copy agent, command, and AI context files into the project.

    Review plugins are not part of this: they have their own
    `install-review-plugins` flow since they are opt-in extras.
    """
    if prompter is None:
        prompter = TerminalPrompter()
    if manifest is None:
        manifest = build_manifest()

    if getattr(args, "pick", False):
        categories = pick_categories(manifest, prompter, auto_accept=args.yes)
        if categories is None:
            return 0
    else:
        categories = manifest.syncable()

    files = get_files_to_sync(categories, package_root, cwd)
    return apply_sync_files(
        files,
        args,
        prompter,
        cancelled_msg="Sync cancelled.",
        summary_msg="Synced {count} file(s).",
    )


def cmd_install_review_plugins(
    args: argparse.Namespace,
    prompter: Optional[Prompter] = None,
    manifest: Optional[Manifest] = None,
    package_root: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Let the user pick review plugins and copy them into .ai/review-checks/."""
    if prompter is None:
        prompter = TerminalPrompter()
    if manifest is None:
        manifest = build_manifest()
    if package_root is None:
        package_root = PACKAGE_ROOT
    if cwd is None:
        cwd = Path.cwd()

    by_file = {plugin.file: plugin for plugin in manifest.review_plugins}
    options = [
        (plugin.file, f"{plugin.file:20s} {plugin.description}")
        for plugin in manifest.review_plugins
    ]
    selected = select_options(
        prompter,
        "Select review plugins to install:",
        options,
        defaults=list(by_file),
        auto_accept=args.yes,
    )
    if not selected:
        print(f"{C.DIM}Nothing selected. Exiting.{C.RESET}")
        return 0

    files = resolve_items(
        REVIEW_PLUGIN_DIRS,
        [by_file[name] for name in selected],
        package_root,
        cwd,
    )
    return apply_sync_files(
        files,
        args,
        prompter,
        cancelled_msg="Install cancelled.",
        summary_msg="Installed {count} review plugin(s).",
    )


def cmd_status(
    args: argparse.Namespace,
    manifest: Optional[Manifest] = None,
    package_root: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> None:
    if manifest is None:
        manifest = build_manifest()
    if package_root is None:
        package_root = PACKAGE_ROOT
    if cwd is None:
        cwd = Path.cwd()

    groups: list[tuple[str, CategoryDirs, Sequence[ManifestItem]]] = [
        (category.value, CATEGORY_DIRS[category], items)
        for category, items in manifest.syncable().items()
    ]
    groups.append(("review plugins", REVIEW_PLUGIN_DIRS, manifest.review_plugins))

    present = 0
    total = 0
    for title, dirs, items in groups:
        section_header(f"{title} ({len(items)})")
        for f, item in zip(resolve_items(dirs, items, package_root, cwd), items):
            total += 1
            if file_exists(f.dest):
                present += 1
                mark = f"{C.GREEN}✓{C.RESET}"
            else:
                mark = f"{C.DIM}·{C.RESET}"
            print(f"  {mark} {C.BOLD}{f.label:40s}{C.RESET} {C.DIM}{item.description}{C.RESET}")

    section_header("Summary")
    print(f"  {C.BOLD}{present}{C.RESET} of {C.BOLD}{total}{C.RESET} files present in {cwd}")
    print()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command or args.command == "help":
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "sync":
            cmd_sync(args)
        elif args.command == "install-review-plugins":
            cmd_install_review_plugins(args)
        elif args.command == "status":
            cmd_status(args)
    except OSError as e:
        print(f"{C.BOLD_RED}Error:{C.RESET} {e}", file=sys.stderr)
        print("  Some files may already have been copied.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
