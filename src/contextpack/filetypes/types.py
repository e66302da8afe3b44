"""Semantic file types and classification results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextpack.paths.types import PathSpec


class SemanticType(Enum):
    """Classifier output category driving admission policy."""

    TEXT = "text"
    IMAGE = "image"
    PDF = "pdf"
    BINARY = "binary"
    SENSITIVE = "sensitive"
    UNKNOWN = "unknown"

    @property
    def is_text_like(self) -> bool:
        """Whether content counts toward the token estimate."""
        return self in (SemanticType.TEXT, SemanticType.SENSITIVE, SemanticType.UNKNOWN)


@dataclass(frozen=True, slots=True)
class ClassificationHint:
    """Result of classifying a file name."""

    base_type: SemanticType
    """Type from the name/extension tables, before the sensitive overlay."""

    mime: str
    """MIME tag for the content."""

    category: str = "unknown"
    """Coarse family used for directory sampling (code, config, text, data, image...)."""

    language: str | None = None
    """Language or format name for text content (python, markdown, yaml...)."""

    sensitive: bool = False
    """Name matches a secret/credential pattern."""

    cautious: bool = False
    """Unknown extension; treated as text but sniffed after fetch."""

    tags: frozenset[str] = field(default_factory=frozenset)
    """Metadata annotations (minified, test, spec, declaration, source-map)."""

    @property
    def semantic_type(self) -> SemanticType:
        return SemanticType.SENSITIVE if self.sensitive else self.base_type


@dataclass(frozen=True, slots=True)
class ClassifiedFile:
    """A path spec with its classification and (once known) size."""

    spec: PathSpec
    hint: ClassificationHint
    size_bytes: int = 0

    @property
    def semantic_type(self) -> SemanticType:
        return self.hint.semantic_type

    @property
    def base_type(self) -> SemanticType:
        return self.hint.base_type

    @property
    def mime(self) -> str:
        return self.hint.mime

    @property
    def name(self) -> str:
        return self.spec.name

    def with_size(self, size_bytes: int) -> ClassifiedFile:
        return replace(self, size_bytes=size_bytes)

    def retyped(self, base_type: SemanticType, mime: str) -> ClassifiedFile:
        """Copy with a new base type, used when content sniffing overrides the name."""
        hint = replace(self.hint, base_type=base_type, mime=mime, cautious=False)
        return replace(self, hint=hint)
