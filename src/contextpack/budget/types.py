"""Budget limits, phases and admission decisions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from contextpack.foundation.types.config import BudgetConfig, MiB


class BudgetMode(Enum):
    """What happens when a hard limit would be crossed."""

    STRICT = "strict"
    """Abort the whole resolve on the first breach."""

    PROGRESSIVE = "progressive"
    """Admit the crossing item, then stop admitting."""


class BudgetPhase(Enum):
    """Admission state machine.

    ACCEPTING -> WARNING -> (ABORTING | CLOSED)
    """

    ACCEPTING = "accepting"
    WARNING = "warning"
    ABORTING = "aborting"
    CLOSED = "closed"


class Decision(Enum):
    """Outcome of one admission request."""

    ACCEPT = "accept"
    SKIP_SIZE = "skip_size"
    SKIP_TYPE = "skip_type"
    ABORT = "abort"


@dataclass(frozen=True, slots=True)
class BudgetLimits:
    """Immutable limits for one resolve call."""

    max_files: int = 100
    max_total_bytes: int = 50 * MiB
    max_tokens: int = 200_000
    mode: BudgetMode = BudgetMode.PROGRESSIVE
    warn_ratio: float = 0.8
    bytes_per_token: float = 4.0
    max_images: int = 20
    max_text_file_bytes: int = 1 * MiB
    max_image_file_bytes: int = 5 * MiB
    max_pdf_file_bytes: int = 10 * MiB
    skip_sensitive: bool = False

    def __post_init__(self) -> None:
        if self.max_files < 0 or self.max_total_bytes < 0 or self.max_tokens < 0:
            raise ValueError("budget limits must be >= 0")
        if not 0.0 < self.warn_ratio <= 1.0:
            raise ValueError("warn_ratio must be in (0.0, 1.0]")
        if self.bytes_per_token <= 0:
            raise ValueError("bytes_per_token must be positive")

    @classmethod
    def from_config(cls, config: BudgetConfig) -> BudgetLimits:
        return cls(
            max_files=config.max_files,
            max_total_bytes=config.max_total_bytes,
            max_tokens=config.max_tokens,
            mode=BudgetMode(config.mode),
            warn_ratio=config.warn_ratio,
            bytes_per_token=config.bytes_per_token,
            max_images=config.max_images,
            max_text_file_bytes=config.max_text_file_bytes,
            max_image_file_bytes=config.max_image_file_bytes,
            max_pdf_file_bytes=config.max_pdf_file_bytes,
            skip_sensitive=config.skip_sensitive,
        )


@dataclass(frozen=True, slots=True)
class Admission:
    """Decision for one candidate file."""

    decision: Decision
    reason: str = ""
    warning: str | None = None

    @property
    def accepted(self) -> bool:
        return self.decision is Decision.ACCEPT


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Running totals at a point in time."""

    files_admitted: int
    bytes_admitted: int
    estimated_tokens: int
    images_admitted: int
    phase: BudgetPhase
    limits: BudgetLimits

    @property
    def bytes_ratio(self) -> float:
        limit = self.limits.max_total_bytes
        return self.bytes_admitted / limit if limit else 0.0

    @property
    def tokens_ratio(self) -> float:
        limit = self.limits.max_tokens
        return self.estimated_tokens / limit if limit else 0.0

    @property
    def files_ratio(self) -> float:
        limit = self.limits.max_files
        return self.files_admitted / limit if limit else 0.0
