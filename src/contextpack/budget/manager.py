"""BudgetManager: byte/token/file accounting for one resolve call.

Transitions:

    ACCEPTING -> WARNING    bytes or tokens reach warn_ratio of their limit
    * -> ABORTING           strict mode, an admission would breach a hard limit
    * -> CLOSED             progressive mode, a hard limit was reached
    ACCEPTING/WARNING -> CLOSED   finalize()

ABORTING and CLOSED are terminal. In progressive mode the item that crosses
the byte or token limit is still admitted, so the overshoot is at most one
item. The file count never overshoots.
"""

from __future__ import annotations

import logging
import math
import threading

from contextpack.budget.types import (
    Admission,
    BudgetLimits,
    BudgetMode,
    BudgetPhase,
    BudgetSnapshot,
    Decision,
)
from contextpack.filetypes.types import ClassifiedFile, SemanticType
from contextpack.foundation.utils import format_bytes

logger = logging.getLogger(__name__)


class BudgetManager:
    """Admission control for one resolve call. Never shared between calls.

    Thread-safe: admissions are serialized under an internal lock.
    """

    def __init__(self, limits: BudgetLimits | None = None) -> None:
        self.limits = limits or BudgetLimits()
        self._lock = threading.Lock()
        self._phase = BudgetPhase.ACCEPTING
        self._files = 0
        self._bytes = 0
        self._tokens = 0
        self._images = 0

    @property
    def phase(self) -> BudgetPhase:
        return self._phase

    @property
    def is_open(self) -> bool:
        return self._phase in (BudgetPhase.ACCEPTING, BudgetPhase.WARNING)

    def estimate_tokens(self, file: ClassifiedFile, size: int) -> int:
        """ceil(bytes / bytes_per_token) for text-like content, else 0."""
        if not file.base_type.is_text_like:
            return 0
        return math.ceil(size / self.limits.bytes_per_token)

    def _type_cap(self, base_type: SemanticType) -> int | None:
        if base_type is SemanticType.IMAGE:
            return self.limits.max_image_file_bytes
        if base_type is SemanticType.PDF:
            return self.limits.max_pdf_file_bytes
        if base_type.is_text_like:
            return self.limits.max_text_file_bytes
        return None

    def check(self, file: ClassifiedFile, size: int | None = None) -> Admission | None:
        """Stateless rejections, usable before content is fetched.

        Returns:
            A SKIP admission, or None when the file may still be admitted.
        """
        size = file.size_bytes if size is None else size
        limits = self.limits

        if file.semantic_type is SemanticType.SENSITIVE and limits.skip_sensitive:
            return Admission(Decision.SKIP_TYPE, "sensitive file")
        if file.base_type is SemanticType.BINARY:
            return Admission(Decision.SKIP_TYPE, f"binary content ({file.mime})")

        cap = self._type_cap(file.base_type)
        if cap is not None and size > cap:
            return Admission(
                Decision.SKIP_SIZE,
                f"{format_bytes(size)} exceeds the {format_bytes(cap)} "
                f"{file.base_type.value} file limit",
            )
        if size > limits.max_total_bytes:
            return Admission(
                Decision.SKIP_SIZE,
                f"{format_bytes(size)} exceeds the whole byte budget",
            )
        if self.estimate_tokens(file, size) > limits.max_tokens:
            return Admission(Decision.SKIP_SIZE, "file alone exceeds the token budget")
        return None

    def admit(self, file: ClassifiedFile, size: int | None = None) -> Admission:
        """Decide whether a fetched file enters the bundle and account for it.

        Args:
            file: The classified candidate.
            size: Actual content size; defaults to ``file.size_bytes``.
        """
        size = file.size_bytes if size is None else size
        limits = self.limits
        strict = limits.mode is BudgetMode.STRICT

        with self._lock:
            if self._phase is BudgetPhase.ABORTING:
                return Admission(Decision.ABORT, "budget aborted")

            rejected = self.check(file, size)
            if rejected is not None:
                return rejected

            if self._phase is BudgetPhase.CLOSED:
                return Admission(Decision.SKIP_SIZE, "budget closed")

            if file.base_type is SemanticType.IMAGE and self._images >= limits.max_images:
                return Admission(Decision.SKIP_SIZE, f"image limit of {limits.max_images} reached")

            if self._files + 1 > limits.max_files:
                if strict:
                    return self._abort(f"file limit of {limits.max_files} exceeded")
                self._close(f"file limit of {limits.max_files} reached")
                return Admission(Decision.SKIP_SIZE, "file limit reached")

            tokens = self.estimate_tokens(file, size)
            new_bytes = self._bytes + size
            new_tokens = self._tokens + tokens
            breach = None
            if new_bytes > limits.max_total_bytes:
                breach = f"byte limit of {format_bytes(limits.max_total_bytes)}"
            elif new_tokens > limits.max_tokens:
                breach = f"token limit of {limits.max_tokens}"

            if breach is not None and strict:
                return self._abort(f"{breach} exceeded by {file.spec.key}")

            self._files += 1
            self._bytes = new_bytes
            self._tokens = new_tokens
            if file.base_type is SemanticType.IMAGE:
                self._images += 1

            if breach is not None:
                self._close(f"{breach} crossed by {file.spec.key}")
                return Admission(
                    Decision.ACCEPT,
                    warning=f"{breach} crossed; no further files will be admitted",
                )

            if self._phase is BudgetPhase.ACCEPTING and self._near_limit():
                self._phase = BudgetPhase.WARNING
                logger.warning(
                    "Budget above %.0f%%: %s, ~%d tokens",
                    limits.warn_ratio * 100,
                    format_bytes(self._bytes),
                    self._tokens,
                )

            warning = None
            if self._phase is BudgetPhase.WARNING:
                warning = f"budget above {limits.warn_ratio:.0%} of its byte or token limit"
            return Admission(Decision.ACCEPT, warning=warning)

    def _near_limit(self) -> bool:
        limits = self.limits
        return (
            self._bytes >= limits.max_total_bytes * limits.warn_ratio
            or self._tokens >= limits.max_tokens * limits.warn_ratio
        )

    def _abort(self, reason: str) -> Admission:
        self._phase = BudgetPhase.ABORTING
        logger.warning("Strict budget breached: %s", reason)
        return Admission(Decision.ABORT, reason)

    def _close(self, reason: str) -> None:
        self._phase = BudgetPhase.CLOSED
        logger.info("Budget closed: %s", reason)

    def finalize(self) -> BudgetSnapshot:
        """Close an open budget and return final totals."""
        with self._lock:
            if self.is_open:
                self._phase = BudgetPhase.CLOSED
            return self._snapshot()

    def snapshot(self) -> BudgetSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> BudgetSnapshot:
        return BudgetSnapshot(
            files_admitted=self._files,
            bytes_admitted=self._bytes,
            estimated_tokens=self._tokens,
            images_admitted=self._images,
            phase=self._phase,
            limits=self.limits,
        )
