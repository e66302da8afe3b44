"""contextpack - Multimodal context resolution for LLM prompts.

Turns file references (local paths, ``owner/repo:path@ref`` GitHub paths,
directories) into an ordered, size-bounded bundle of text, images and PDFs,
with a report of what was skipped and why.
"""

from contextpack.budget import BudgetLimits, BudgetManager, BudgetMode, BudgetPhase, Decision
from contextpack.cache import ContentCache
from contextpack.fetch import ContentFetcher, GitHubContentsSource, LocalSource
from contextpack.filetypes import ClassifiedFile, SemanticType, classify
from contextpack.foundation.errors import (
    ConfigError,
    ContextPackError,
    ErrorCode,
    FetchError,
    InvalidPathError,
    NotFoundError,
    RateLimitError,
    SizeLimitExceeded,
    UnsupportedFileType,
)
from contextpack.paths import PathSpec, parse_path_spec
from contextpack.resolver import (
    BundleItem,
    ContextResolver,
    ItemError,
    ResolvedBundle,
    ResolveOptions,
    ResolveStatus,
    SizeReport,
)

__version__ = "0.1.0"

__all__ = [
    # Resolution
    "ContextResolver",
    "ResolveOptions",
    "ResolvedBundle",
    "BundleItem",
    "SizeReport",
    "ItemError",
    "ResolveStatus",
    # Building blocks
    "PathSpec",
    "parse_path_spec",
    "SemanticType",
    "ClassifiedFile",
    "classify",
    "ContentCache",
    "ContentFetcher",
    "LocalSource",
    "GitHubContentsSource",
    "BudgetManager",
    "BudgetLimits",
    "BudgetMode",
    "BudgetPhase",
    "Decision",
    # Errors
    "ErrorCode",
    "ContextPackError",
    "ConfigError",
    "FetchError",
    "InvalidPathError",
    "NotFoundError",
    "RateLimitError",
    "SizeLimitExceeded",
    "UnsupportedFileType",
]
