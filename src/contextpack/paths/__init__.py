"""Path specifier grammar: ``[owner/repo:]path[@ref]``."""

from contextpack.paths.parser import is_valid_ref, parse_path_spec, try_parse_path_spec
from contextpack.paths.types import PathSpec

__all__ = [
    "PathSpec",
    "is_valid_ref",
    "parse_path_spec",
    "try_parse_path_spec",
]
