"""Tests for the budget manager state machine."""

import pytest

from contextpack.budget import BudgetLimits, BudgetManager, BudgetMode, BudgetPhase, Decision
from contextpack.filetypes import ClassifiedFile, classify_spec
from contextpack.foundation.types.config import BudgetConfig, MiB
from contextpack.paths import parse_path_spec


def _file(name: str, size: int) -> ClassifiedFile:
    return classify_spec(parse_path_spec(name), size)


def _manager(**limits) -> BudgetManager:
    return BudgetManager(BudgetLimits(**limits))


class TestTypeRules:
    def test_text_accepted_with_token_estimate(self) -> None:
        budget = _manager()
        admission = budget.admit(_file("a.md", 10))
        assert admission.decision is Decision.ACCEPT
        assert budget.snapshot().estimated_tokens == 3

    def test_images_cost_no_tokens(self) -> None:
        budget = _manager()
        budget.admit(_file("logo.png", 4000))
        snapshot = budget.snapshot()
        assert snapshot.estimated_tokens == 0
        assert snapshot.images_admitted == 1

    def test_binary_skipped_by_type(self) -> None:
        budget = _manager()
        admission = budget.admit(_file("tool.exe", 10))
        assert admission.decision is Decision.SKIP_TYPE
        assert budget.snapshot().files_admitted == 0

    def test_sensitive_admitted_unless_skipped(self) -> None:
        assert _manager().admit(_file(".env", 10)).decision is Decision.ACCEPT
        skipped = _manager(skip_sensitive=True).admit(_file(".env", 10))
        assert skipped.decision is Decision.SKIP_TYPE
        assert skipped.reason == "sensitive file"

    def test_check_is_stateless(self) -> None:
        budget = _manager()
        assert budget.check(_file("a.md", 10)) is None
        assert budget.check(_file("tool.exe", 10)).decision is Decision.SKIP_TYPE
        assert budget.snapshot().files_admitted == 0


class TestSizeRules:
    def test_item_larger_than_whole_budget(self) -> None:
        budget = _manager(max_total_bytes=100, mode=BudgetMode.STRICT)
        admission = budget.admit(_file("big.png", 500))
        assert admission.decision is Decision.SKIP_SIZE
        assert budget.phase is BudgetPhase.ACCEPTING

    def test_item_alone_over_token_budget(self) -> None:
        budget = _manager(max_tokens=10)
        admission = budget.admit(_file("long.md", 44))
        assert admission.decision is Decision.SKIP_SIZE
        assert budget.phase is BudgetPhase.ACCEPTING

    @pytest.mark.parametrize(
        ("name", "size"),
        [("a.md", 1 * MiB + 1), ("p.png", 5 * MiB + 1), ("d.pdf", 10 * MiB + 1)],
    )
    def test_per_type_caps(self, name: str, size: int) -> None:
        budget = _manager(max_total_bytes=100 * MiB, max_tokens=10_000_000)
        assert budget.admit(_file(name, size)).decision is Decision.SKIP_SIZE

    def test_image_count_cap(self) -> None:
        budget = _manager(max_images=1)
        assert budget.admit(_file("a.png", 10)).accepted
        assert budget.admit(_file("b.png", 10)).decision is Decision.SKIP_SIZE
        assert budget.admit(_file("c.md", 10)).accepted


class TestStrictMode:
    def test_breach_aborts(self) -> None:
        budget = _manager(max_total_bytes=100, mode=BudgetMode.STRICT)
        assert budget.admit(_file("a.md", 60)).accepted

        admission = budget.admit(_file("b.md", 60))

        assert admission.decision is Decision.ABORT
        assert budget.phase is BudgetPhase.ABORTING
        assert budget.snapshot().bytes_admitted == 60

    def test_aborting_is_terminal(self) -> None:
        budget = _manager(max_total_bytes=100, mode=BudgetMode.STRICT)
        budget.admit(_file("a.md", 60))
        budget.admit(_file("b.md", 60))

        assert budget.admit(_file("c.md", 1)).decision is Decision.ABORT
        assert budget.finalize().phase is BudgetPhase.ABORTING

    def test_file_limit_aborts(self) -> None:
        budget = _manager(max_files=2, mode=BudgetMode.STRICT)
        budget.admit(_file("a.md", 1))
        budget.admit(_file("b.md", 1))
        assert budget.admit(_file("c.md", 1)).decision is Decision.ABORT
        assert budget.snapshot().files_admitted == 2

    def test_token_limit_aborts(self) -> None:
        budget = _manager(max_tokens=10, mode=BudgetMode.STRICT)
        budget.admit(_file("a.md", 30))
        assert budget.admit(_file("b.md", 30)).decision is Decision.ABORT


class TestProgressiveMode:
    def test_crossing_item_admitted_then_closed(self) -> None:
        budget = _manager(max_total_bytes=100)
        assert budget.admit(_file("a.md", 60)).accepted

        crossing = budget.admit(_file("b.md", 60))

        assert crossing.decision is Decision.ACCEPT
        assert crossing.warning
        assert budget.phase is BudgetPhase.CLOSED
        # Overshoot bounded by the one crossing item
        assert budget.snapshot().bytes_admitted == 120

        after = budget.admit(_file("c.md", 1))
        assert after.decision is Decision.SKIP_SIZE
        assert after.reason == "budget closed"

    def test_file_limit_never_overshoots(self) -> None:
        budget = _manager(max_files=2)
        budget.admit(_file("a.md", 1))
        budget.admit(_file("b.md", 1))

        third = budget.admit(_file("c.md", 1))

        assert third.decision is Decision.SKIP_SIZE
        assert budget.phase is BudgetPhase.CLOSED
        assert budget.snapshot().files_admitted == 2

    def test_token_crossing_closes(self) -> None:
        budget = _manager(max_tokens=10)
        budget.admit(_file("a.md", 30))
        assert budget.admit(_file("b.md", 30)).accepted
        assert budget.phase is BudgetPhase.CLOSED
        assert budget.snapshot().estimated_tokens == 16


class TestWarningPhase:
    def test_warn_ratio_enters_warning(self) -> None:
        budget = _manager(max_total_bytes=100, warn_ratio=0.8)
        first = budget.admit(_file("a.md", 50))
        assert first.warning is None
        assert budget.phase is BudgetPhase.ACCEPTING

        second = budget.admit(_file("b.md", 35))
        assert second.accepted
        assert second.warning
        assert budget.phase is BudgetPhase.WARNING

    def test_warning_message_is_stable(self) -> None:
        budget = _manager(max_total_bytes=100)
        a = budget.admit(_file("a.md", 85))
        b = budget.admit(_file("b.md", 1))
        assert a.warning == b.warning

    def test_finalize_closes_open_budget(self) -> None:
        budget = _manager()
        budget.admit(_file("a.md", 1))
        snapshot = budget.finalize()
        assert snapshot.phase is BudgetPhase.CLOSED
        assert snapshot.files_admitted == 1


class TestLimits:
    @pytest.mark.parametrize(
        "kwargs",
        [{"warn_ratio": 0.0}, {"warn_ratio": 1.5}, {"bytes_per_token": 0}, {"max_files": -1}],
    )
    def test_validation(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            BudgetLimits(**kwargs)

    def test_from_config(self) -> None:
        limits = BudgetLimits.from_config(BudgetConfig(mode="strict", max_files=7))
        assert limits.mode is BudgetMode.STRICT
        assert limits.max_files == 7

    def test_snapshot_ratios(self) -> None:
        budget = _manager(max_total_bytes=200, max_files=4)
        budget.admit(_file("a.md", 50))
        snapshot = budget.snapshot()
        assert snapshot.bytes_ratio == pytest.approx(0.25)
        assert snapshot.files_ratio == pytest.approx(0.25)
