from abc import ABC, abstractmethod
from enum import Enum
from functools import reduce
from typing import List, Sequence

from wordfuzz.core.wordcursor import WordCursor
from wordfuzz.utility.logger import LoggerManager

"""
Iteration strategies over word cursors
"""

logger = LoggerManager(__name__).get_logger()


class Mode(str, Enum):
    CLUSTERBOMB = "clusterbomb"
    PITCHFORK = "pitchfork"
    SINGULAR = "singular"


def _decode(word: bytes) -> str:
    return word.decode("utf-8", errors="replace")


class Strategy(ABC):
    """
    Decides which words go into the next request

    Args:
    - cursors (Sequence[WordCursor]): The cursors to iterate, one per slot
      except for the singular strategy
    - slots (int): How many placeholder values every request needs
    """

    mode: Mode

    def __init__(self, cursors: Sequence[WordCursor], slots: int) -> None:
        self.cursors = list(cursors)
        self.slots = slots
        self.exhausted = False

    def new_values(self) -> List[str]:
        return [""] * self.slots

    @abstractmethod
    def load_next(self, values: List[str]) -> bool:
        """
        Fill values with the next combination

        Args:
        - values (List[str]): Output list, one entry per placeholder

        Returns:
        - bool: True once this was the last combination of the epoch
        """

    @abstractmethod
    def cardinality(self) -> int:
        """
        Returns:
        - int: Number of requests one full epoch produces
        """


class SingularStrategy(Strategy):
    """
    One word-list feeds the same word to every placeholder
    """

    mode = Mode.SINGULAR

    def load_next(self, values: List[str]) -> bool:
        cursor = self.cursors[0]
        word = _decode(cursor.next())
        for i in range(len(values)):
            values[i] = word

        if cursor.index == 0:
            self.exhausted = True
        return self.exhausted

    def cardinality(self) -> int:
        return self.cursors[0].total_count


class PitchforkStrategy(Strategy):
    """
    Every word-list feeds its own placeholder, all advancing together

    Shorter lists wrap on their own and repeat from their start until the
    longest list wraps.
    """

    mode = Mode.PITCHFORK

    def __init__(self, cursors: Sequence[WordCursor], slots: int) -> None:
        super().__init__(cursors, slots)
        self.longest = max(self.cursors, key=lambda c: c.total_count)

    def load_next(self, values: List[str]) -> bool:
        for i, cursor in enumerate(self.cursors):
            values[i] = _decode(cursor.next())

        if self.longest.index == 0:
            self.exhausted = True
        return self.exhausted

    def cardinality(self) -> int:
        return self.longest.total_count


class ClusterbombStrategy(Strategy):
    """
    Cartesian product of all word-lists

    Works like an odometer: the first cursor is the fastest digit and a
    wraparound carries into the next cursor.
    """

    mode = Mode.CLUSTERBOMB

    def load_next(self, values: List[str]) -> bool:
        for i, cursor in enumerate(self.cursors):
            values[i] = _decode(cursor.current())

        if self._carry():
            self.exhausted = True
        return self.exhausted

    def _carry(self) -> bool:
        """
        Advance the odometer by one

        Returns:
        - bool: True when the carry ran off the last cursor, i.e. every
          cursor is back at index 0
        """

        for cursor in self.cursors:
            cursor.next()
            if cursor.index != 0:
                return False
        return True

    def cardinality(self) -> int:
        return reduce(lambda total, c: total * c.total_count, self.cursors, 1)


STRATEGIES = {
    Mode.CLUSTERBOMB: ClusterbombStrategy,
    Mode.PITCHFORK: PitchforkStrategy,
    Mode.SINGULAR: SingularStrategy,
}


def build_strategy(mode: Mode, cursors: Sequence[WordCursor], slots: int) -> Strategy:
    """
    Build the strategy for mode, repairing a cursor/placeholder mismatch

    Missing cursors are padded with dummy one-word cursors and surplus
    cursors are ignored, both with a warning.

    Args:
    - mode (Mode): Iteration mode
    - cursors (Sequence[WordCursor]): Registered cursors in placeholder order
    - slots (int): Total placeholder count of the template

    Returns:
    - Strategy: The strategy instance
    """

    mode = Mode(mode)
    cursors = [c if c.total_count > 0 else WordCursor.dummy(c.source) for c in cursors]

    if mode is Mode.SINGULAR:
        if len(cursors) != 1:
            logger.warning(f"Expected 1 word-list, provided {len(cursors)}")
        if not cursors:
            cursors = [WordCursor.dummy()]
        return SingularStrategy(cursors[:1], slots)

    expected = max(slots, 1)
    if len(cursors) != expected:
        logger.warning(f"Expected {expected} word-list(s), provided {len(cursors)}")
    if len(cursors) < expected:
        cursors = cursors + [WordCursor.dummy() for _ in range(expected - len(cursors))]

    return STRATEGIES[mode](cursors[:expected], expected)
