"""
Placeholder substitution over an instantiated starter.

Walks the starter's file tree with a thread pool, one task per directory,
and rewrites file contents in place according to the template rules.
Failures are contained: a file that cannot be read or written is logged,
recorded in the run summary, and stops only the directory branch it was
found in. Nothing already written is rolled back.
"""

import os
import re
import logging
from concurrent.futures import ThreadPoolExecutor, FIRST_COMPLETED, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pathspec

from .template import GENERATOR_FILE_NAME, ArgsPlaceholder, Template

logger = logging.getLogger(__name__)

# Build output at the root of a starter, never rewritten
EXCLUDED_DIR_NAME = "target"

IGNORE_FILE_NAME = ".ignore"
GITIGNORE_FILE_NAME = ".gitignore"

# (base directory, path prefix relative to the spec's own directory, spec)
IgnoreSpecs = Tuple[Tuple[Path, str, pathspec.PathSpec], ...]

APPLIED = "applied"
UNCHANGED = "unchanged"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class FileOutcome:
    """Result of visiting one file."""

    path: str
    status: str
    error: Optional[str] = None


@dataclass
class GenerationSummary:
    """Aggregated outcome of one generation run."""

    source_dir: str
    applied: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    pruned: List[str] = field(default_factory=list)
    descriptor_removed: bool = False

    def record(self, outcome: FileOutcome):
        if outcome.status == FAILED:
            self.failed[outcome.path] = outcome.error or ""
        else:
            getattr(self, outcome.status).append(outcome.path)

    @property
    def ok(self) -> bool:
        return not self.failed

    def counts(self) -> Dict[str, int]:
        return {
            'applied': len(self.applied),
            'unchanged': len(self.unchanged),
            'skipped': len(self.skipped),
            'failed': len(self.failed),
        }

    def to_dict(self) -> Dict:
        return {
            'source_dir': self.source_dir,
            'counts': self.counts(),
            'applied': sorted(self.applied),
            'unchanged': sorted(self.unchanged),
            'skipped': sorted(self.skipped),
            'failed': dict(sorted(self.failed.items())),
            'pruned': sorted(self.pruned),
            'descriptor_removed': self.descriptor_removed,
        }


def should_run_file(path, patterns: Optional[Sequence[re.Pattern]]) -> bool:
    """
    Check whether a file passes a set of path patterns.

    No pattern set means every path passes. Otherwise the path must be a
    regular file and its full string form must match at least one pattern.
    """
    if patterns is None:
        return True
    path = Path(path)
    if not path.is_file():
        return False
    text = str(path)
    return any(pattern.search(text) for pattern in patterns)


def apply_rules(template: Template, path, args: ArgsPlaceholder) -> bool:
    """
    Apply the template rules to one file, rewriting it in place.

    Rules run in declaration order, each on the output of the previous one.
    The file is written only when at least one rule matched.

    Args:
        template: Template whose rules are applied.
        path: File to process.
        args: Placeholder values.

    Returns:
        True if the file was rewritten.

    Raises:
        OSError: If the file cannot be read or written.
        UnicodeDecodeError: If the file is not UTF-8 text.
    """
    with open(path, 'r', encoding='utf-8', newline='') as f:
        content = f.read()

    is_changed = False
    for rule in template.rules:
        if not should_run_file(path, rule.file_patterns):
            continue
        if rule.pattern.search(content) is None:
            continue
        value = rule.kind.resolve(args)
        content = rule.pattern.sub(lambda _match: value, content)
        is_changed = True

    if is_changed:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

    return is_changed


def _read_ignore_file(path: Path) -> Optional[pathspec.PathSpec]:
    """Parse a gitignore-style file, or None if it is absent or unusable."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return pathspec.PathSpec.from_lines('gitwildmatch', f.read().splitlines())
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.debug(f"Could not read ignore file {path}: {e}")
        return None


def _find_git_root(directory: Path) -> Optional[Path]:
    for candidate in (directory, *directory.parents):
        if (candidate / '.git').exists():
            return candidate
    return None


def is_ignored(path: Path, is_dir: bool, specs: IgnoreSpecs) -> bool:
    """
    Check a path against the ignore files in effect for its branch.

    Specs are ordered from lowest to highest precedence; within a spec the
    last matching pattern wins, so ``!pattern`` re-includes a path.
    """
    for base, prefix, spec in reversed(specs):
        rel = prefix + path.relative_to(base).as_posix()
        if is_dir:
            rel += '/'
        decision = None
        for pattern in spec.patterns:
            if pattern.include is not None and pattern.match_file(rel) is not None:
                decision = pattern.include
        if decision is not None:
            return decision
    return False


class TemplateGenerator:
    """Runs a template's rules over a starter directory."""

    def __init__(self, template: Template, source_dir, args: ArgsPlaceholder,
                 max_workers: Optional[int] = None, skip_hidden: bool = True,
                 respect_ignore_files: bool = True):
        """
        Args:
            template: Parsed starter template.
            source_dir: Directory to rewrite in place.
            args: Placeholder values for this run.
            max_workers: Thread pool size, executor default when None.
            skip_hidden: Leave entries whose name starts with a dot alone.
            respect_ignore_files: Leave entries excluded by ``.ignore`` files,
                and by ``.gitignore`` files and git excludes when the
                directory is inside a git repository, alone.
        """
        self.template = template
        self.source_dir = Path(source_dir)
        self.args = args
        self.max_workers = max_workers
        self.skip_hidden = skip_hidden
        self.respect_ignore_files = respect_ignore_files
        self.excluded_path = self.source_dir / EXCLUDED_DIR_NAME
        self.in_git_repo = False

    def run(self) -> GenerationSummary:
        """Walk the tree, apply the rules and remove the descriptor."""
        summary = GenerationSummary(source_dir=str(self.source_dir))
        root_specs = self._inherited_specs()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            pending = {executor.submit(self._walk_directory, self.source_dir, root_specs)}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    directory, outcomes, subdirs, pruned = future.result()
                    for outcome in outcomes:
                        summary.record(outcome)
                    if pruned:
                        summary.pruned.append(str(directory))
                    for subdir, specs in subdirs:
                        pending.add(executor.submit(self._walk_directory, subdir, specs))

        summary.descriptor_removed = self._remove_descriptor()

        counts = summary.counts()
        logger.info(
            f"Generated {self.source_dir}: {counts['applied']} rewritten, "
            f"{counts['unchanged']} unchanged, {counts['skipped']} skipped, "
            f"{counts['failed']} failed"
        )
        return summary

    def _inherited_specs(self) -> IgnoreSpecs:
        """
        Ignore rules that apply to the whole tree from outside it: git
        excludes and ignore files of the parent directories.
        """
        if not self.respect_ignore_files:
            return ()

        resolved = self.source_dir.resolve()
        git_root = _find_git_root(resolved)
        self.in_git_repo = git_root is not None

        specs = []
        if git_root is not None:
            spec = _read_ignore_file(git_root / '.git' / 'info' / 'exclude')
            if spec is not None:
                specs.append((self.source_dir, _prefix(resolved, git_root), spec))

        for parent in reversed(resolved.parents):
            names = [IGNORE_FILE_NAME]
            if git_root is not None and (parent == git_root or git_root in parent.parents):
                names.insert(0, GITIGNORE_FILE_NAME)
            for name in names:
                spec = _read_ignore_file(parent / name)
                if spec is not None:
                    specs.append((self.source_dir, _prefix(resolved, parent), spec))

        return tuple(specs)

    def _directory_specs(self, directory: Path, inherited: IgnoreSpecs) -> IgnoreSpecs:
        if not self.respect_ignore_files:
            return inherited

        names = [GITIGNORE_FILE_NAME, IGNORE_FILE_NAME] if self.in_git_repo else [IGNORE_FILE_NAME]
        specs = list(inherited)
        for name in names:
            spec = _read_ignore_file(directory / name)
            if spec is not None:
                specs.append((directory, '', spec))
        return tuple(specs)

    def _walk_directory(self, directory: Path, inherited: IgnoreSpecs):
        """
        Process the files of one directory.

        Returns the directory, the per-file outcomes, the subdirectories to
        visit next (each with the ignore rules of its branch) and whether
        this branch was cut short by a failure.
        """
        outcomes = []
        subdirs = []

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.info(f"Could not read directory {directory}: {e}")
            return directory, outcomes, subdirs, False

        specs = self._directory_specs(directory, inherited)

        for entry in entries:
            if self.skip_hidden and entry.name.startswith('.'):
                continue

            path = Path(entry.path)
            if path == self.excluded_path:
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                if not is_dir and not entry.is_file():
                    continue
            except OSError as e:
                logger.debug(f"Could not stat {path}: {e}")
                continue

            if specs and is_ignored(path, is_dir, specs):
                logger.debug(f"Ignored {path}")
                continue

            if is_dir:
                subdirs.append((path, specs))
                continue

            outcome = self._process_file(path)
            outcomes.append(outcome)
            if outcome.status == FAILED:
                return directory, outcomes, [], True

        return directory, outcomes, subdirs, False

    def _process_file(self, path: Path) -> FileOutcome:
        if not should_run_file(path, self.template.file_patterns):
            return FileOutcome(str(path), SKIPPED)

        try:
            changed = apply_rules(self.template, path, self.args)
        except (OSError, UnicodeDecodeError) as e:
            logger.info(f"Could not run rules placeholder replacement on {path}: {e}")
            return FileOutcome(str(path), FAILED, str(e))

        if changed:
            logger.debug(f"Rewrote {path}")
            return FileOutcome(str(path), APPLIED)
        return FileOutcome(str(path), UNCHANGED)

    def _remove_descriptor(self) -> bool:
        descriptor = self.source_dir / GENERATOR_FILE_NAME
        try:
            os.remove(descriptor)
        except OSError as e:
            logger.debug(f"Could not delete generator file {descriptor}: {e}")
            return False
        return True


def _prefix(directory: Path, ancestor: Path) -> str:
    rel = directory.relative_to(ancestor).as_posix()
    return '' if rel == '.' else rel + '/'


def generate(template: Template, source_dir, args: ArgsPlaceholder,
             max_workers: Optional[int] = None, skip_hidden: bool = True,
             respect_ignore_files: bool = True) -> GenerationSummary:
    """
    Instantiate a starter in place.

    Args:
        template: Parsed starter template.
        source_dir: Directory holding the copied starter.
        args: Placeholder values.
        max_workers: Thread pool size.
        skip_hidden: Leave dot-files and dot-directories untouched.
        respect_ignore_files: Leave paths excluded by ignore files untouched.

    Returns:
        Summary of the run. Per-file failures are reported here and in the
        log, never raised.
    """
    return TemplateGenerator(template, source_dir, args, max_workers=max_workers,
                             skip_hidden=skip_hidden,
                             respect_ignore_files=respect_ignore_files).run()
