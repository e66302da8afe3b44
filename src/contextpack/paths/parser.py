"""Path specifier parsing.

Grammar:
    spec        := [owner_repo ":"] file_path ["@" ref]
    owner_repo  := name "/" name          (name = [A-Za-z0-9_.-]+)
    ref         := sha | refname          (sha = 7-40 hex chars)

Examples:
    README.md                       → local file
    docs/guides/                    → local directory
    path/to/file.txt@main           → local path with a ref
    owner/repo:src/app.py           → remote file on the default branch
    owner/repo:file.txt@v1.0.0      → remote file at a tag
    owner/repo:file@.txt            → '@' kept in the filename (".txt" is no ref)

Rejected (InvalidPathError, never sanitized):
    ""  "   "  None  "null"  "undefined"
    "../../etc/passwd"  "/etc/passwd"  "C:\\Users\\f.txt"  "\\\\server\\share"
    "owner/repo/path"               (cross-repo shape without the colon)
    "owner/repo:path;rm -rf /"      (shell metacharacters)
    "a:b:c"                         (more than one colon)
"""

from __future__ import annotations

import logging
import re

from contextpack.filetypes.table import KNOWN_FILENAMES
from contextpack.foundation.errors import InvalidPathError
from contextpack.paths.types import PathSpec

logger = logging.getLogger(__name__)

_OWNER_REPO = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_NAME_SEGMENT = re.compile(r"^[A-Za-z0-9_.-]+$")
_SHA = re.compile(r"^[0-9a-fA-F]{7,40}$")
_REFNAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._/-]*$")
_DRIVE_ROOT = re.compile(r"^[A-Za-z]:[\\/]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# Shell separators and characters reserved on common filesystems
_FORBIDDEN_CHARS = frozenset(';|`<>"?*')

_NULL_LITERALS = frozenset({"null", "undefined", "none"})


def is_valid_ref(candidate: str) -> bool:
    """Check a string against the branch/tag/SHA grammar."""
    if not candidate:
        return False
    if _SHA.match(candidate):
        return True
    if not _REFNAME.match(candidate):
        return False
    if ".." in candidate or "//" in candidate:
        return False
    return not candidate.endswith(("/", ".", ".lock"))


def _split_ref(rest: str, original: str) -> tuple[str, str]:
    """Split on the last '@' only when the suffix is a valid ref."""
    head, sep, tail = rest.rpartition("@")
    if not sep or not is_valid_ref(tail):
        return rest, ""
    if not head.strip():
        raise InvalidPathError(f"Missing file path before '@{tail}' in {original!r}", spec=original)
    return head, tail


def _normalize_file_path(raw: str, original: str) -> str:
    """Validate path shape and drop empty/'.' segments.

    A trailing slash (directory marker) is preserved.
    """
    path = raw.strip()
    if not path:
        raise InvalidPathError(f"Missing file path in {original!r}", spec=original)

    if path.startswith(("\\\\", "//")):
        raise InvalidPathError(f"UNC paths are not allowed: {original!r}", spec=original)
    if path.startswith("/") or _DRIVE_ROOT.match(path):
        raise InvalidPathError(f"Absolute paths are not allowed: {original!r}", spec=original)
    if "\\" in path:
        raise InvalidPathError(
            f"Backslash separators are not allowed: {original!r}", spec=original
        )

    bad = sorted(set(path) & _FORBIDDEN_CHARS)
    if bad:
        raise InvalidPathError(
            f"Forbidden character(s) {''.join(bad)!r} in {original!r}", spec=original
        )

    segments = path.split("/")
    if any(segment == ".." for segment in segments):
        raise InvalidPathError(f"Path traversal ('..') in {original!r}", spec=original)

    trailing_slash = path.endswith("/")
    kept = [segment for segment in segments if segment not in ("", ".")]
    if not kept:
        raise InvalidPathError(f"Missing file path in {original!r}", spec=original)

    return "/".join(kept) + ("/" if trailing_slash else "")


def _looks_like_missing_colon(file_path: str) -> bool:
    """Detect ``owner/repo/path`` written without the ':' separator.

    Three or more plain name segments ending in an extensionless, unknown
    name read as a cross-repo reference; local directories at that depth are
    written with a trailing slash instead.
    """
    if file_path.endswith("/"):
        return False
    segments = file_path.split("/")
    if len(segments) < 3:
        return False
    if not all(_NAME_SEGMENT.match(segment) for segment in segments):
        return False
    last = segments[-1]
    if last in KNOWN_FILENAMES or last.startswith("."):
        return False
    return "." not in last


def parse_path_spec(raw: object) -> PathSpec:
    """Parse a path specifier string into a PathSpec.

    Args:
        raw: The specifier; anything but a non-empty str is rejected.

    Returns:
        Fully-populated PathSpec (owner/repo/ref empty when absent).

    Raises:
        InvalidPathError: On any malformed or unsafe input.
    """
    if raw is None or not isinstance(raw, str):
        raise InvalidPathError(f"Path specifier must be a string, got {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise InvalidPathError("Path specifier is empty", spec=raw)
    if text.lower() in _NULL_LITERALS:
        raise InvalidPathError(f"Path specifier is a null literal: {text!r}", spec=raw)
    if _CONTROL_CHARS.search(text):
        raise InvalidPathError(f"Control characters in path specifier {raw!r}", spec=raw)

    owner = repo = ""
    colons = text.count(":")
    if colons > 1:
        raise InvalidPathError(f"More than one ':' in {raw!r}", spec=raw)
    if colons == 1:
        owner_repo, _, rest = text.partition(":")
        if not _OWNER_REPO.match(owner_repo):
            raise InvalidPathError(
                f"Invalid repository {owner_repo!r} in {raw!r}: expected owner/repo",
                spec=raw,
            )
        owner, repo = owner_repo.split("/")
        if owner in (".", "..") or repo in (".", ".."):
            raise InvalidPathError(f"Invalid repository {owner_repo!r} in {raw!r}", spec=raw)
    else:
        rest = text

    path_part, ref = _split_ref(rest, raw)
    file_path = _normalize_file_path(path_part, raw)
    if not ref and _split_ref(file_path, raw)[1]:
        raise InvalidPathError(
            f"Ambiguous ref in {raw!r}: normalized path {file_path!r} ends in '@<ref>'",
            spec=raw,
        )

    if not owner and _looks_like_missing_colon(file_path):
        raise InvalidPathError(
            f"{raw!r} looks like owner/repo/path; use owner/repo:path for remote files "
            "or a trailing '/' for a local directory",
            spec=raw,
        )

    spec = PathSpec(owner=owner, repo=repo, file_path=file_path, ref=ref)
    logger.debug("Parsed %r -> %s", raw, spec.key)
    return spec


def try_parse_path_spec(raw: object) -> PathSpec | InvalidPathError:
    """Parse without raising; the error is returned instead."""
    try:
        return parse_path_spec(raw)
    except InvalidPathError as e:
        return e
