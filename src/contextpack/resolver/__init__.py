"""Context resolution façade: specs in, bounded bundle out."""

from contextpack.resolver.report import build_report
from contextpack.resolver.resolver import ContextResolver
from contextpack.resolver.types import (
    BundleItem,
    ItemError,
    ResolvedBundle,
    ResolveOptions,
    ResolveStatus,
    SizeReport,
)

__all__ = [
    "BundleItem",
    "ContextResolver",
    "ItemError",
    "ResolveOptions",
    "ResolveStatus",
    "ResolvedBundle",
    "SizeReport",
    "build_report",
]
