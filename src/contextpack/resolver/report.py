"""Size report assembly: totals, health status and recommendations."""

from __future__ import annotations

from collections.abc import Sequence

from contextpack.budget.types import BudgetPhase, BudgetSnapshot, Decision
from contextpack.fetch.types import FetchStats
from contextpack.filetypes.types import SemanticType
from contextpack.foundation.errors import ErrorCode
from contextpack.foundation.types.config import MiB
from contextpack.foundation.utils import format_bytes
from contextpack.resolver.types import BundleItem, ItemError, ResolveStatus, SizeReport

# Thresholds for recommendations
MANY_SKIPPED = 10
MANY_IMAGES = 10
HEAVY_TYPE_BYTES = 10 * MiB


def _health(report: SizeReport, snapshot: BudgetSnapshot) -> tuple[str, str]:
    """Health label and message, most severe first."""
    if report.status is ResolveStatus.ABORTED:
        return "error", "Strict budget limit breached; resolution aborted"
    if report.status is ResolveStatus.DEADLINE_EXCEEDED:
        return "warning", "Deadline exceeded; bundle is partial"
    warn = snapshot.limits.warn_ratio
    if snapshot.tokens_ratio > warn:
        return "warning", "Approaching token limit"
    if snapshot.bytes_ratio > warn:
        return "warning", "Approaching byte limit"
    if report.errors:
        return "error", "Errors encountered during loading"
    return "healthy", "All limits within normal parameters"


def _recommendations(report: SizeReport, snapshot: BudgetSnapshot) -> list[str]:
    tips: list[str] = []
    warn = snapshot.limits.warn_ratio

    if snapshot.tokens_ratio > warn or snapshot.phase is BudgetPhase.ABORTING:
        tips.append("Reduce context paths or use more specific include patterns")
    if report.skipped > MANY_SKIPPED:
        tips.append(f"{report.skipped} files were skipped. Consider using exclude patterns.")
    if report.by_type.get(SemanticType.IMAGE, 0) > MANY_IMAGES:
        tips.append("Many images loaded. Consider selecting only essential images.")
    if any(e.code is ErrorCode.RATE_LIMITED or "rate limit" in e.message for e in report.errors):
        tips.append("GitHub rate limit hit. Set GITHUB_TOKEN or lower concurrency.")
    if report.status is ResolveStatus.DEADLINE_EXCEEDED:
        tips.append("Raise the deadline or resolve fewer specs per call.")

    if report.bytes_by_type:
        heaviest, size = max(report.bytes_by_type.items(), key=lambda kv: kv[1])
        if size > HEAVY_TYPE_BYTES:
            tips.append(f"{heaviest.value} files use {format_bytes(size)}. Consider filtering.")
    return tips


def build_report(
    items: Sequence[BundleItem],
    errors: Sequence[ItemError],
    snapshot: BudgetSnapshot,
    *,
    status: ResolveStatus,
    warnings: Sequence[str] = (),
    stats: FetchStats | None = None,
    dropped: int = 0,
    directories: int = 0,
    elapsed: float = 0.0,
) -> SizeReport:
    """Aggregate bundle items into a SizeReport."""
    report = SizeReport(
        status=status,
        state=snapshot.phase,
        errors=list(errors),
        warnings=list(dict.fromkeys(warnings)),
        stats=stats.to_dict() if stats is not None else {},
        dropped=dropped,
        directories=directories,
        limits=snapshot.limits,
        elapsed=elapsed,
        estimated_tokens=snapshot.estimated_tokens,
    )

    for item in items:
        if item.included:
            report.total_files += 1
            report.total_bytes += item.size_bytes
            kind = item.semantic_type
            report.by_type[kind] = report.by_type.get(kind, 0) + 1
            report.bytes_by_type[kind] = report.bytes_by_type.get(kind, 0) + item.size_bytes
        elif item.decision in (Decision.SKIP_SIZE, Decision.SKIP_TYPE):
            report.skipped += 1

    report.health, report.health_message = _health(report, snapshot)
    report.recommendations = _recommendations(report, snapshot)
    return report
