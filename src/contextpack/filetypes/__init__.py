"""Multimodal file-type classification."""

from contextpack.filetypes.classifier import (
    SNIFF_BYTES,
    classify,
    classify_spec,
    is_sensitive_name,
    looks_binary,
)
from contextpack.filetypes.types import ClassificationHint, ClassifiedFile, SemanticType

__all__ = [
    "SNIFF_BYTES",
    "ClassificationHint",
    "ClassifiedFile",
    "SemanticType",
    "classify",
    "classify_spec",
    "is_sensitive_name",
    "looks_binary",
]
