"""ContextResolver: specs in, bounded multimodal bundle out.

Flow for one resolve() call:

    parse every spec          invalid ones become ItemErrors (or raise, see below)
    schedule level 0          caller specs, bounded concurrency
      per spec:               classify -> pre-check -> cache -> single-flight fetch
                              -> sniff -> budget admission
    schedule level n+1        children of directories found at level n
    flatten                   children spliced in at their directory's position

Directories are expanded one level at a time up to ``max_depth``. The cache
and the single-flight table outlive a call; the budget does not.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from contextpack.budget.manager import BudgetManager
from contextpack.budget.types import BudgetPhase, Decision
from contextpack.cache.store import ContentCache
from contextpack.fetch.fetcher import ContentFetcher
from contextpack.fetch.listing import compile_patterns, select_children
from contextpack.fetch.types import FetchResult, FetchStats
from contextpack.filetypes.classifier import classify_spec, looks_binary
from contextpack.filetypes.types import ClassifiedFile, SemanticType
from contextpack.foundation.config import get_config
from contextpack.foundation.errors import (
    ConfigError,
    ContextPackError,
    DeadlineExceeded,
    FetchError,
    InvalidPathError,
    SizeLimitExceeded,
    UnsupportedFileType,
)
from contextpack.foundation.types.config import ContextPackConfig
from contextpack.parallel.scheduler import ConcurrencyScheduler
from contextpack.parallel.singleflight import SingleFlight
from contextpack.paths.parser import parse_path_spec
from contextpack.paths.types import PathSpec
from contextpack.resolver.report import build_report
from contextpack.resolver.types import (
    BundleItem,
    ItemError,
    ResolvedBundle,
    ResolveOptions,
    ResolveStatus,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Node:
    """One spec being resolved; becomes an item, a directory, or nothing."""

    spec: PathSpec
    depth: int = 0
    size_hint: int | None = None
    is_dir: bool = False
    item: BundleItem | None = None
    children: list[_Node] | None = None


@dataclass(slots=True)
class _CallState:
    """Mutable state scoped to one resolve() call."""

    options: ResolveOptions
    budget: BudgetManager
    cancel: asyncio.Event
    include: tuple[re.Pattern[str], ...]
    exclude: tuple[re.Pattern[str], ...]
    errors: list[ItemError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: FetchStats = field(default_factory=FetchStats)
    directories: int = 0

    def record_error(self, spec: str, error: ContextPackError) -> None:
        self.errors.append(ItemError(spec=spec, code=error.code, message=str(error)))


class ContextResolver:
    """Resolve path specifiers into a budget-compliant ResolvedBundle.

    Example:
        async with ContextResolver.from_config(root=".") as resolver:
            bundle = await resolver.resolve(["README.md", "owner/repo:src/app.py@main"])
            for item in bundle.included:
                print(item.key, item.semantic_type)
            print(bundle.report.status, bundle.report.total_bytes)

    One resolver may serve concurrent resolve() calls on the same event loop;
    identical specs in flight at the same time are fetched once.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        cache: ContentCache | None = None,
        *,
        options: ResolveOptions | None = None,
    ) -> None:
        self.fetcher = fetcher
        self._owns_cache = cache is None
        self.cache = cache if cache is not None else ContentCache()
        self.options = options or ResolveOptions()
        self._flight: SingleFlight[FetchResult] = SingleFlight()
        self._sweep_interval: float | None = None

    @classmethod
    def from_config(
        cls,
        config: ContextPackConfig | None = None,
        *,
        root: Path | str | None = None,
        cache: ContentCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ContextResolver:
        """Build a resolver (fetcher, cache, default options) from configuration."""
        config = config or get_config()
        owns_cache = cache is None
        if cache is None:
            cache = ContentCache(
                ttl=config.cache.ttl_seconds, max_entries=config.cache.max_entries
            )
        resolver = cls(
            ContentFetcher.from_config(config, root=root, transport=transport),
            cache,
            options=ResolveOptions.from_config(config),
        )
        resolver._owns_cache = owns_cache
        if owns_cache and config.cache.sweep_interval > 0:
            resolver._sweep_interval = config.cache.sweep_interval
        return resolver

    async def close(self) -> None:
        """Close the fetcher's HTTP client and any sweeper on an owned cache."""
        if self._owns_cache:
            await self.cache.stop_sweeper()
        await self.fetcher.close()

    async def __aenter__(self) -> ContextResolver:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def resolve(
        self,
        specs: Sequence[object],
        options: ResolveOptions | None = None,
    ) -> ResolvedBundle:
        """Resolve specifiers into an ordered bundle plus size report.

        Per-item failures are recorded in the report and never raise.

        Raises:
            InvalidPathError: If every spec is invalid, or on the first
                invalid spec when ``options.fail_fast`` is set.
            ConfigError: If an include/exclude pattern is not a valid regex.
        """
        options = options or self.options
        started = time.perf_counter()
        loop = asyncio.get_running_loop()
        deadline_at = loop.time() + options.deadline if options.deadline is not None else None
        if self._sweep_interval is not None and not self.cache.sweeper_running:
            self.cache.start_sweeper(self._sweep_interval)

        try:
            include = compile_patterns(options.include_patterns)
            exclude = compile_patterns(options.exclude_patterns)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        state = _CallState(
            options=options,
            budget=BudgetManager(options.limits),
            cancel=asyncio.Event(),
            include=include,
            exclude=exclude,
        )

        roots = self._parse_all(specs, state)
        logger.info("Resolving %d spec(s) (%d invalid)", len(roots), len(state.errors))

        scheduler = ConcurrencyScheduler(options.concurrency)
        deadline_exceeded = False
        level = roots
        while level and not state.cancel.is_set():
            outcome = await scheduler.run_all(
                level,
                lambda node: self._resolve_node(node, state),
                cancel=state.cancel,
                deadline=deadline_at,
            )
            deadline_exceeded = deadline_exceeded or outcome.deadline_exceeded
            level = [
                child
                for node in level
                if node.children
                for child in node.children
                if child.item is None
            ]

        items: list[BundleItem] = []
        dropped = self._flatten(roots, items)

        snapshot = state.budget.finalize()
        if deadline_exceeded:
            status = ResolveStatus.DEADLINE_EXCEEDED
            exceeded = DeadlineExceeded(f"deadline of {options.deadline}s exceeded")
            logger.warning("%s; returning %d item(s)", exceeded, len(items))
            state.warnings.append(str(exceeded))
        elif snapshot.phase is BudgetPhase.ABORTING:
            status = ResolveStatus.ABORTED
        elif state.errors:
            status = ResolveStatus.PARTIAL
        else:
            status = ResolveStatus.COMPLETE

        report = build_report(
            items,
            state.errors,
            snapshot,
            status=status,
            warnings=state.warnings,
            stats=state.stats,
            dropped=dropped,
            directories=state.directories,
            elapsed=time.perf_counter() - started,
        )
        logger.info(
            "Resolved %d file(s), %d bytes, ~%d tokens (%s, budget %s)",
            report.total_files,
            report.total_bytes,
            report.estimated_tokens,
            status.value,
            snapshot.phase.value,
        )
        return ResolvedBundle(items=items, report=report)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _parse_all(self, specs: Sequence[object], state: _CallState) -> list[_Node]:
        roots: list[_Node] = []
        first_error: InvalidPathError | None = None
        for raw in specs:
            try:
                spec = parse_path_spec(raw)
            except InvalidPathError as e:
                if state.options.fail_fast:
                    raise
                logger.warning("Skipping invalid path spec: %s", e)
                state.record_error(str(raw), e)
                first_error = first_error or e
                continue
            roots.append(_Node(spec=spec, is_dir=spec.file_path.endswith("/")))

        if specs and not roots:
            raise InvalidPathError(
                f"All {len(specs)} path specifier(s) are invalid; first error: {first_error}"
            )
        return roots

    async def _fetch(self, spec: PathSpec, state: _CallState) -> tuple[FetchResult, bool]:
        """Cache, then single-flight fetch. Returns (result, from_cache)."""
        options = state.options
        entry, hit = self.cache.get(spec.key)
        if hit and entry is not None:
            self.fetcher.stats.cache_hits += 1
            state.stats.cache_hits += 1
            return FetchResult.file(spec, entry.content), True
        self.fetcher.stats.cache_misses += 1
        state.stats.cache_misses += 1

        async def _flight() -> FetchResult:
            result = await self.fetcher.fetch(
                spec,
                max_retries=options.max_retries,
                timeout=options.per_fetch_timeout,
                stats=state.stats,
                cancel=state.cancel,
            )
            if not result.is_directory and result.content is not None:
                self.cache.put(spec.key, result.content)
            return result

        return await self._flight.do(spec.key, _flight), False

    async def _resolve_node(self, node: _Node, state: _CallState) -> bool:
        """Worker body: fill node.item or node.children. Always returns True."""
        if state.cancel.is_set():
            return True

        spec = node.spec
        budget = state.budget
        file = classify_spec(spec, node.size_hint or 0)

        if not node.is_dir:
            skipped = await self._precheck(node, file, state)
            if skipped is not None:
                node.item = skipped
                return True

        try:
            result, from_cache = await self._fetch(spec, state)
        except UnsupportedFileType as e:
            node.item = self._skip(node, file, Decision.SKIP_TYPE, str(e))
            return True
        except SizeLimitExceeded as e:
            node.item = self._skip(node, file.with_size(e.size), Decision.SKIP_SIZE, str(e))
            return True
        except ContextPackError as e:
            if state.cancel.is_set():
                logger.debug("Dropping %s after cancellation: %s", spec.key, e)
                return True
            logger.warning("Failed to load %s: %s", spec.key, e)
            state.record_error(spec.key, e)
            node.item = BundleItem(
                file=file, omitted_reason=f"{e.code.value}: {e}", depth=node.depth
            )
            return True
        except Exception as e:
            logger.exception("Unexpected error loading %s", spec.key)
            error = FetchError(
                f"Unexpected error loading {spec.key}: {e!r}", spec=spec.key, cause=e
            )
            state.record_error(spec.key, error)
            node.item = BundleItem(
                file=file, omitted_reason=f"{error.code.value}: {error}", depth=node.depth
            )
            return True

        if result.is_directory:
            self._expand(node, result, state)
            return True

        content = result.content or b""
        file = file.with_size(len(content))
        if file.hint.cautious and looks_binary(content):
            logger.info("%s has an unknown extension and binary content", spec.key)
            file = file.retyped(SemanticType.BINARY, "application/octet-stream")
        elif file.hint.cautious:
            logger.info("%s has an unknown extension, treating as text", spec.key)

        admission = budget.admit(file)
        if admission.decision is Decision.ABORT:
            state.cancel.set()
            state.warnings.append(f"budget aborted: {admission.reason}")
            return True
        if admission.warning:
            state.warnings.append(admission.warning)
        if not admission.accepted:
            node.item = self._skip(node, file, admission.decision, admission.reason)
            return True

        if file.semantic_type is SemanticType.SENSITIVE:
            logger.warning("Admitting sensitive file %s", spec.key)
            state.warnings.append(f"sensitive file admitted: {spec.key}")
        node.item = BundleItem(
            file=file,
            content=content,
            decision=Decision.ACCEPT,
            warning=admission.warning,
            from_cache=from_cache,
            depth=node.depth,
        )
        return True

    async def _precheck(
        self, node: _Node, file: ClassifiedFile, state: _CallState
    ) -> BundleItem | None:
        """Reject without fetching when type, known size or budget state decide it."""
        budget = state.budget
        # Without a known size only the type checks can reject
        rejected = budget.check(file, node.size_hint or 0)
        if rejected is not None:
            if file.base_type is SemanticType.BINARY and node.size_hint is None:
                try:
                    size = await self.fetcher.stat(node.spec)
                except ContextPackError as e:
                    logger.debug("No size for %s: %s", node.spec.key, e)
                    size = None
                file = file.with_size(size or 0)
            if file.semantic_type is SemanticType.SENSITIVE:
                logger.info("Skipping sensitive file %s", node.spec.key)
            return self._skip(node, file, rejected.decision, rejected.reason)
        if budget.phase is BudgetPhase.CLOSED:
            return self._skip(node, file, Decision.SKIP_SIZE, "budget closed")
        return None

    def _skip(
        self, node: _Node, file: ClassifiedFile, decision: Decision, reason: str
    ) -> BundleItem:
        logger.debug("Skipping %s: %s", node.spec.key, reason)
        return BundleItem(file=file, omitted_reason=reason, decision=decision, depth=node.depth)

    def _expand(self, node: _Node, result: FetchResult, state: _CallState) -> None:
        options = state.options
        node.is_dir = True
        state.directories += 1
        if node.depth >= options.max_depth:
            state.warnings.append(f"max depth {options.max_depth} reached at {node.spec.key}")
            node.children = []
            return

        selected = select_children(
            result.entries,
            max_files=options.max_files_per_directory,
            include=state.include,
            exclude=state.exclude,
        )
        files_listed = sum(1 for e in result.entries if e.is_file)
        files_kept = sum(1 for e in selected if e.is_file)
        if files_kept < files_listed:
            logger.info(
                "%s: loading %d of %d files after filtering/sampling",
                node.spec.key,
                files_kept,
                files_listed,
            )

        children: list[_Node] = []
        for entry in selected:
            child = _Node(
                spec=entry.spec,
                depth=node.depth + 1,
                size_hint=entry.size if entry.is_file else None,
                is_dir=entry.is_dir,
            )
            if entry.kind in ("symlink", "submodule"):
                child.item = self._skip(
                    child,
                    classify_spec(entry.spec),
                    Decision.SKIP_TYPE,
                    f"{entry.kind} not followed",
                )
            children.append(child)
        node.children = children

    def _flatten(self, nodes: list[_Node], items: list[BundleItem]) -> int:
        """Append items depth-first in input order; return the dropped count."""
        dropped = 0
        for node in nodes:
            if node.item is not None:
                items.append(node.item)
            elif node.children is not None:
                dropped += self._flatten(node.children, items)
            else:
                dropped += 1
        return dropped
