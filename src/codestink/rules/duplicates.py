from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from codestink.engine.context import FileContext
from codestink.engine.types import RuleOutcome
from codestink.rules.base import FileRule, RuleMeta


@dataclass(frozen=True, slots=True)
class DuplicateBlock:
    # 0-based start indices of the two identical windows.
    first_start: int
    second_start: int
    length: int

    @property
    def first_range(self) -> tuple[int, int]:
        return self.first_start + 1, self.first_start + self.length

    @property
    def second_range(self) -> tuple[int, int]:
        return self.second_start + 1, self.second_start + self.length

    def describe(self) -> str:
        a, b = self.first_range
        c, d = self.second_range
        return f"Duplicate code block found at lines {a}-{b} and {c}-{d}"


def find_duplicate_blocks(lines: Sequence[str], window: int, min_chars: int) -> list[DuplicateBlock]:
    """
    Find windows of `window` consecutive lines that occur again later on.

    Each start index reports at most its first later, non-overlapping match.
    Windows whose stripped text is shorter than `min_chars` are ignored, so
    runs of blank lines or closing braces do not count. Comparison is exact.
    """

    if window < 1:
        raise ValueError("window must be >= 1")

    total = len(lines)
    blocks: list[DuplicateBlock] = []
    for i in range(total - window + 1):
        block = "\n".join(lines[i : i + window])
        if len(block.strip()) < min_chars:
            continue
        for j in range(i + window, total - window + 1):
            if "\n".join(lines[j : j + window]) == block:
                blocks.append(DuplicateBlock(first_start=i, second_start=j, length=window))
                break
    return blocks


def exceeds_scan_ceiling(ctx: FileContext) -> bool:
    return len(ctx.lines) > ctx.config.max_duplicate_scan_lines


class D01DuplicateCode(FileRule):
    meta = RuleMeta(
        rule_id="D01",
        title="Duplicate code block",
        description="Identical runs of lines repeated within the same file.",
        target="file",
    )

    def check_file(self, ctx: FileContext) -> RuleOutcome:
        if exceeds_scan_ceiling(ctx):
            return self._clean()
        thresholds = ctx.config.thresholds
        blocks = find_duplicate_blocks(ctx.lines, thresholds.duplicate_block_lines, thresholds.duplicate_min_chars)
        if not blocks:
            return self._clean()
        return self._outcome(
            len(blocks) * ctx.config.penalties.duplicate_code,
            *(block.describe() for block in blocks),
        )


def builtin_file_rules() -> list[FileRule]:
    return [D01DuplicateCode()]
