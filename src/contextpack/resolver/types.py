"""Resolver inputs and outputs."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contextpack.budget.types import BudgetLimits, BudgetPhase, Decision
from contextpack.filetypes.types import ClassifiedFile, SemanticType
from contextpack.foundation.errors import ErrorCode
from contextpack.foundation.types.config import ContextPackConfig


class ResolveStatus(Enum):
    """Overall outcome of a resolve call."""

    COMPLETE = "complete"
    """Every spec was processed without per-item errors."""

    PARTIAL = "partial"
    """Some specs failed; see SizeReport.errors."""

    ABORTED = "aborted"
    """A strict budget limit was breached; remaining work was dropped."""

    DEADLINE_EXCEEDED = "deadline_exceeded"
    """The resolve deadline passed; the bundle holds what finished in time."""


@dataclass(frozen=True, slots=True)
class ItemError:
    """A per-item failure recorded in the report."""

    spec: str
    code: ErrorCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"spec": self.spec, "code": self.code.value, "message": self.message}


@dataclass(frozen=True, slots=True)
class BundleItem:
    """One file in the bundle: content, or the reason it was left out."""

    file: ClassifiedFile
    content: bytes | None = None
    omitted_reason: str | None = None
    decision: Decision | None = None
    warning: str | None = None
    from_cache: bool = False
    depth: int = 0
    """0 for caller-supplied specs, n for files found n directories down."""

    @property
    def included(self) -> bool:
        return self.content is not None

    @property
    def key(self) -> str:
        return self.file.spec.key

    @property
    def semantic_type(self) -> SemanticType:
        return self.file.semantic_type

    @property
    def size_bytes(self) -> int:
        return self.file.size_bytes

    def text(self, encoding: str = "utf-8") -> str:
        """Decode text content, replacing undecodable bytes.

        Raises:
            ValueError: If the item is not text-like (images, PDFs).
        """
        if self.content is None:
            return ""
        if not self.file.base_type.is_text_like:
            raise ValueError(f"{self.key} is {self.file.base_type.value}, not text")
        return self.content.decode(encoding, errors="replace")

    def to_dict(self) -> dict[str, Any]:
        return {
            "spec": self.key,
            "type": self.file.semantic_type.value,
            "mime": self.file.mime,
            "size_bytes": self.size_bytes,
            "included": self.included,
            "omitted_reason": self.omitted_reason,
            "decision": self.decision.value if self.decision else None,
            "from_cache": self.from_cache,
            "depth": self.depth,
            "tags": sorted(self.file.hint.tags),
        }


@dataclass(slots=True)
class SizeReport:
    """Totals, skips, errors and health for one resolve call."""

    total_files: int = 0
    total_bytes: int = 0
    estimated_tokens: int = 0
    skipped: int = 0
    dropped: int = 0
    """Specs never completed (strict abort or deadline)."""

    directories: int = 0
    errors: list[ItemError] = field(default_factory=list)
    by_type: dict[SemanticType, int] = field(default_factory=dict)
    bytes_by_type: dict[SemanticType, int] = field(default_factory=dict)
    state: BudgetPhase = BudgetPhase.CLOSED
    status: ResolveStatus = ResolveStatus.COMPLETE
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)
    health: str = "healthy"
    health_message: str = ""
    recommendations: list[str] = field(default_factory=list)
    limits: BudgetLimits | None = None
    elapsed: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "estimated_tokens": self.estimated_tokens,
            "skipped": self.skipped,
            "dropped": self.dropped,
            "directories": self.directories,
            "errors": [e.to_dict() for e in self.errors],
            "by_type": {t.value: n for t, n in self.by_type.items()},
            "bytes_by_type": {t.value: n for t, n in self.bytes_by_type.items()},
            "state": self.state.value,
            "status": self.status.value,
            "warnings": list(self.warnings),
            "stats": dict(self.stats),
            "health": self.health,
            "health_message": self.health_message,
            "recommendations": list(self.recommendations),
            "elapsed": round(self.elapsed, 3),
        }


@dataclass(slots=True)
class ResolvedBundle:
    """Ordered bundle plus its report. Owned by the caller after return."""

    items: list[BundleItem]
    report: SizeReport

    def __iter__(self) -> Iterator[BundleItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def included(self) -> list[BundleItem]:
        return [item for item in self.items if item.included]

    def of_type(self, semantic_type: SemanticType) -> list[BundleItem]:
        return [item for item in self.included if item.semantic_type is semantic_type]

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe summary (content omitted)."""
        return {
            "items": [item.to_dict() for item in self.items],
            "report": self.report.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ResolveOptions:
    """Per-call settings. All plain values."""

    concurrency: int = 5
    max_retries: int = 2
    per_fetch_timeout: float = 10.0
    max_depth: int = 3
    max_files_per_directory: int = 20
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    limits: BudgetLimits = field(default_factory=BudgetLimits)
    deadline: float | None = None
    """Seconds from the start of resolve(); None disables it."""

    fail_fast: bool = False

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_files_per_directory < 1:
            raise ValueError("max_files_per_directory must be >= 1")

    @classmethod
    def from_config(cls, config: ContextPackConfig) -> ResolveOptions:
        return cls(
            concurrency=config.resolver.concurrency,
            max_retries=config.fetch.max_retries,
            per_fetch_timeout=config.fetch.per_fetch_timeout,
            max_depth=config.resolver.max_depth,
            max_files_per_directory=config.resolver.max_files_per_directory,
            include_patterns=tuple(config.resolver.include_patterns),
            exclude_patterns=tuple(config.resolver.exclude_patterns),
            limits=BudgetLimits.from_config(config.budget),
            deadline=config.resolver.deadline,
            fail_fast=config.resolver.fail_fast,
        )
