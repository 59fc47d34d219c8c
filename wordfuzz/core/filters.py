from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from wordfuzz.config.constants import Constants

"""
Filter and match rules over response statistics
"""

Range = Tuple[int, int]

# every byte below a space ends a line
CONTROL_BYTES = bytes(range(0x20))


@dataclass
class ResponseStats:
    status_code: int = 0
    size_bytes: int = 0
    word_count: int = 0
    line_count: int = 0
    duration_ms: int = 0
    transport_error: Optional[str] = None

    def reset(self) -> None:
        self.status_code = 0
        self.size_bytes = 0
        self.word_count = 0
        self.line_count = 0
        self.duration_ms = 0
        self.transport_error = None

    def feed(self, chunk: bytes) -> None:
        """
        Account for one received body chunk
        """

        self.size_bytes += len(chunk)
        self.word_count += chunk.count(b" ")
        self.line_count += len(chunk) - len(chunk.translate(None, CONTROL_BYTES))

    @property
    def words(self) -> int:
        return self.word_count

    @property
    def lines(self) -> int:
        return self.line_count + 1 if self.size_bytes else 0


class RuleKind(str, Enum):
    FILTER_CODE = "fc"
    FILTER_SIZE = "fs"
    FILTER_WORDS = "fw"
    FILTER_LINES = "fl"
    FILTER_DURATION = "ft"
    MATCH_CODE = "mc"
    MATCH_SIZE = "ms"
    MATCH_WORDS = "mw"
    MATCH_LINES = "ml"
    MATCH_DURATION = "mt"

    @property
    def is_match(self) -> bool:
        return self.value.startswith("m")

    def attribute(self, stats: ResponseStats) -> int:
        subject = self.value[1]
        if subject == "c":
            return stats.status_code
        if subject == "s":
            return stats.size_bytes
        if subject == "w":
            return stats.words
        if subject == "l":
            return stats.lines
        return stats.duration_ms


def parse_ranges(selector: str) -> List[Range]:
    """
    Parse '200', '400-499' or comma lists like '200,301-303'

    Args:
    - selector (str): The range selector

    Returns:
    - List[Range]: Inclusive (low, high) pairs
    """

    ranges = []
    for token in selector.split(","):
        token = token.strip()
        if not token:
            continue
        if "-" in token:
            low, high = token.split("-", 1)
            low, high = int(low), int(high)
        else:
            low = high = int(token)
        if low > high:
            raise ValueError(f"Invalid range {token}: low bound above high bound")
        ranges.append((low, high))

    if not ranges:
        raise ValueError(f"Empty range selector: {selector!r}")
    return ranges


@dataclass
class FilterRule:
    """
    Filter rules drop a response when its attribute falls inside the ranges,
    match rules drop it when the attribute falls outside of them
    """

    kind: RuleKind
    ranges: List[Range] = field(default_factory=list)

    @classmethod
    def parse(cls, kind: str, selector: str) -> "FilterRule":
        return cls(RuleKind(kind), parse_ranges(selector))

    def contains(self, value: int) -> bool:
        return any(low <= value <= high for low, high in self.ranges)

    def keeps(self, stats: ResponseStats) -> bool:
        inside = self.contains(self.kind.attribute(stats))
        return inside if self.kind.is_match else not inside

    def __str__(self) -> str:
        spans = ",".join(str(lo) if lo == hi else f"{lo}-{hi}" for lo, hi in self.ranges)
        return f"{self.kind.value} {spans}"


def default_rules() -> List[FilterRule]:
    return [FilterRule(RuleKind.MATCH_CODE, [Constants.DEFAULT_MATCH_CODES])]


class FilterEvaluator:
    """
    Decides whether a completed response gets reported

    Args:
    - rules (Iterable[FilterRule]): Ordered rules; the default status match
      applies when empty
    - no_filter (bool): Disable the default rule
    """

    def __init__(self, rules: Iterable[FilterRule] = (), no_filter: bool = False):
        self.rules: List[FilterRule] = list(rules)
        if not self.rules and not no_filter:
            self.rules = default_rules()

    def should_report(self, stats: ResponseStats) -> bool:
        if stats.transport_error is not None:
            return True
        return all(rule.keeps(stats) for rule in self.rules)

    def describe(self) -> Sequence[str]:
        return [str(rule) for rule in self.rules]
