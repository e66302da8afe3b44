"""Directory listing filters and type-priority sampling."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence

from contextpack.fetch.types import DirectoryEntry
from contextpack.filetypes.classifier import classify
from contextpack.filetypes.table import CATEGORY_PRIORITY

logger = logging.getLogger(__name__)

# Directories never descended into
SKIP_DIRS = frozenset({
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".next",
    ".nuxt",
})

SAMPLE_SHARE = 0.3
"""Max share of the remaining slots a single category may take per pass."""


def compile_patterns(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    """Compile include/exclude regexes.

    Raises:
        ValueError: On an invalid regular expression.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e
    return tuple(compiled)


def filter_entries(
    entries: Sequence[DirectoryEntry],
    include: Sequence[re.Pattern[str]] = (),
    exclude: Sequence[re.Pattern[str]] = (),
) -> list[DirectoryEntry]:
    """Apply exclude patterns to every entry and include patterns to files.

    Patterns are searched against the entry's full file path.
    """
    kept: list[DirectoryEntry] = []
    for entry in entries:
        path = entry.spec.file_path
        if entry.is_dir and entry.name in SKIP_DIRS:
            continue
        if any(p.search(path) for p in exclude):
            continue
        if entry.is_file and include and not any(p.search(path) for p in include):
            continue
        kept.append(entry)
    return kept


def sample_by_type(entries: Sequence[DirectoryEntry], max_count: int) -> list[DirectoryEntry]:
    """Pick at most ``max_count`` file entries, favoring code and config.

    Categories are visited in priority order; each may take up to 30% of the
    slots still open, smallest files first. Slots left after that pass go to
    the smallest remaining files. The result keeps listing order.
    """
    if len(entries) <= max_count:
        return list(entries)

    by_category: dict[str, list[int]] = {}
    for index, entry in enumerate(entries):
        category = classify(entry.name).category
        by_category.setdefault(category, []).append(index)

    order = list(CATEGORY_PRIORITY) + sorted(set(by_category) - set(CATEGORY_PRIORITY))
    chosen: set[int] = set()
    remaining = max_count

    for category in order:
        indices = by_category.get(category)
        if not indices or remaining <= 0:
            continue
        take = min(math.ceil(remaining * SAMPLE_SHARE), len(indices))
        smallest = sorted(indices, key=lambda i: entries[i].size)[:take]
        chosen.update(smallest)
        remaining -= take

    if remaining > 0:
        rank = {category: n for n, category in enumerate(order)}
        leftovers = sorted(
            (i for i in range(len(entries)) if i not in chosen),
            key=lambda i: (rank[classify(entries[i].name).category], entries[i].size),
        )
        chosen.update(leftovers[:remaining])

    logger.debug("Sampled %d of %d directory files", len(chosen), len(entries))
    return [entries[i] for i in sorted(chosen)]


def select_children(
    entries: Sequence[DirectoryEntry],
    *,
    max_files: int,
    include: Sequence[re.Pattern[str]] = (),
    exclude: Sequence[re.Pattern[str]] = (),
) -> list[DirectoryEntry]:
    """Filter a listing, then bound what will be fetched to ``max_files``.

    Files are sampled first; subdirectories take the slots left over, in
    listing order. Symlinks and submodules are never fetched and pass through
    for the resolver to record.
    """
    kept = filter_entries(entries, include, exclude)
    files = [e for e in kept if e.is_file]
    dirs = [e for e in kept if e.is_dir]
    if len(files) + len(dirs) <= max_files:
        return kept

    chosen = {id(e) for e in sample_by_type(files, max_files)}
    open_slots = max_files - len(chosen)
    chosen.update(id(e) for e in dirs[:open_slots])
    if len(dirs) > open_slots:
        logger.debug(
            "Dropped %d of %d subdirectories over the per-directory limit",
            len(dirs) - max(open_slots, 0),
            len(dirs),
        )
    return [e for e in kept if id(e) in chosen or not (e.is_file or e.is_dir)]
