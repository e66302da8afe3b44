"""Name-based file classification.

Classification never looks at content, with one exception: files of unknown
type are sniffed after fetch (see looks_binary) and re-typed BINARY when they
contain a NUL byte.
"""

from __future__ import annotations

import fnmatch
import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from contextpack.filetypes.table import (
    EXTENSIONS,
    KNOWN_FILENAMES,
    SENSITIVE_PATTERNS,
    TAG_SEGMENTS,
    UNKNOWN_MIME,
)
from contextpack.filetypes.types import ClassificationHint, ClassifiedFile, SemanticType

if TYPE_CHECKING:
    from contextpack.paths.types import PathSpec

logger = logging.getLogger(__name__)

SNIFF_BYTES = 8192
"""Prefix length inspected by looks_binary()."""

_KNOWN_LOWER = {name.lower(): entry for name, entry in KNOWN_FILENAMES.items()}


def _basename(file_name: str) -> str:
    return file_name.rstrip("/").rsplit("/", 1)[-1]


def _extension(lowered: str) -> str:
    """Final extension with its dot, or '' when the name has none.

    A lone leading dot (".env") counts as the extension; multi-dot names
    resolve on the last segment only.
    """
    if lowered.startswith(".env"):
        return ".env"
    dot = lowered.rfind(".")
    if dot < 0 or dot == len(lowered) - 1:
        return ""
    return lowered[dot:]


def _tags(lowered: str, ext: str) -> frozenset[str]:
    inner = lowered.strip(".").split(".")[1:-1]
    tags = {TAG_SEGMENTS[segment] for segment in inner if segment in TAG_SEGMENTS}
    if ext == ".map":
        tags.add("source-map")
    return frozenset(tags)


def is_sensitive_name(file_name: str) -> bool:
    """Check a basename against the secret/credential patterns."""
    lowered = _basename(file_name).lower()
    return any(fnmatch.fnmatchcase(lowered, pattern) for pattern in SENSITIVE_PATTERNS)


@lru_cache(maxsize=1024)
def classify(file_name: str) -> ClassificationHint:
    """Classify a file by its name.

    Args:
        file_name: Basename or path; only the final segment is considered.

    Returns:
        ClassificationHint. Unknown names come back as UNKNOWN with
        ``cautious=True`` and are handled as text downstream.
    """
    name = _basename(file_name)
    lowered = name.lower()
    sensitive = is_sensitive_name(name)

    known = KNOWN_FILENAMES.get(name) or _KNOWN_LOWER.get(lowered)
    if known is not None:
        category, mime, language = known
        return ClassificationHint(
            base_type=SemanticType.TEXT,
            mime=mime,
            category=category,
            language=language,
            sensitive=sensitive,
        )

    ext = _extension(lowered)
    tags = _tags(lowered, ext)
    entry = EXTENSIONS.get(ext)
    if entry is None:
        logger.debug("No type entry for %r, treating as cautious text", name)
        return ClassificationHint(
            base_type=SemanticType.UNKNOWN,
            mime=UNKNOWN_MIME,
            sensitive=sensitive,
            cautious=True,
            tags=tags,
        )

    semantic_type, category, mime, language = entry
    return ClassificationHint(
        base_type=semantic_type,
        mime=mime,
        category=category,
        language=language,
        sensitive=sensitive,
        tags=tags,
    )


def classify_spec(spec: PathSpec, size_bytes: int = 0) -> ClassifiedFile:
    """Classify a parsed spec, attaching a size when already known."""
    return ClassifiedFile(spec=spec, hint=classify(spec.name), size_bytes=size_bytes)


def looks_binary(content: bytes) -> bool:
    """NUL-byte sniff over the first SNIFF_BYTES of content."""
    return b"\x00" in content[:SNIFF_BYTES]
