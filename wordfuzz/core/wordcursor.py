import mmap

from typing import Optional, Union

from wordfuzz.config.constants import Constants
from wordfuzz.utility.logger import LoggerManager

"""
Word-list cursor
"""

logger = LoggerManager(__name__).get_logger()

Buffer = Union[bytes, mmap.mmap]


class WordCursor:
    """
    Circular cursor over a newline delimited word-list

    The buffer is scanned once for the word count; afterwards every next()
    call only looks for the delimiter of the word it moves to. Returning to
    index 0 is the only signal that the list has been walked completely.

    Args:
    - words (bytes | mmap): The raw word-list buffer
    - source (str): Where the buffer came from, for log messages
    """

    def __init__(self, words: Buffer, source: str = "<memory>") -> None:
        self.words = words
        self.source = source
        self.is_dummy = False
        self._mapping: Optional[mmap.mmap] = (
            words if isinstance(words, mmap.mmap) else None
        )
        self._end = self._content_end(words)

        self.index = 0
        self.offset = 0
        self.total_count = self._count_words()
        self.word_len = self._word_length(0)

    @classmethod
    def dummy(cls, source: str = "<dummy>") -> "WordCursor":
        """
        One-word list holding the literal marker, used wherever a real
        word-list is missing so index arithmetic stays aligned
        """

        cursor = cls(Constants.MARKER.encode(), source=source)
        cursor.is_dummy = True
        return cursor

    @classmethod
    def from_file(cls, file_path: str) -> "WordCursor":
        """
        Memory-map a word-list file

        Args:
        - file_path (str): Path to the word-list

        Returns:
        - WordCursor: A cursor over the file, or the dummy cursor when the
          file cannot be opened or mapped
        """

        try:
            with open(file_path, "rb") as f:
                mapping = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as e:
            logger.warning(
                f"Failed to map word-list {file_path}: {e}. Using '{Constants.MARKER}' instead"
            )
            return cls.dummy(source=file_path)

        return cls(mapping, source=file_path)

    @staticmethod
    def _content_end(words: Buffer) -> int:
        end = len(words)
        if end and words[end - 1 : end] == b"\n":
            end -= 1
        return end

    def _count_words(self) -> int:
        if len(self.words) == 0:
            return 0

        count = 1
        position = self.words.find(b"\n", 0, self._end)
        while position != -1:
            count += 1
            position = self.words.find(b"\n", position + 1, self._end)
        return count

    def _word_length(self, offset: int) -> int:
        delimiter = self.words.find(b"\n", offset, self._end)
        if delimiter == -1:
            delimiter = self._end
        return delimiter - offset

    def current(self) -> bytes:
        """
        Returns:
        - bytes: The word under the cursor, without delimiter
        """

        word = self.words[self.offset : self.offset + self.word_len]
        if word.endswith(b"\r"):
            word = word[:-1]
        return bytes(word)

    def next(self) -> bytes:
        """
        Advance to the following word, wrapping after the last one

        Returns:
        - bytes: The word the cursor was on before advancing
        """

        previous = self.current()

        self.index += 1
        if self.index >= self.total_count:
            self.index = 0
            self.offset = 0
        else:
            self.offset += self.word_len + 1
        self.word_len = self._word_length(self.offset)

        return previous

    def duplicate(self) -> "WordCursor":
        """
        A second cursor over the same buffer at the same position

        The buffer stays owned by this cursor; only the position is copied.
        """

        twin = WordCursor.__new__(WordCursor)
        twin.words = self.words
        twin.source = self.source
        twin.is_dummy = self.is_dummy
        twin._mapping = None
        twin._end = self._end
        twin.index = self.index
        twin.offset = self.offset
        twin.total_count = self.total_count
        twin.word_len = self.word_len
        return twin

    def close(self) -> None:
        if self._mapping is not None and not self._mapping.closed:
            self._mapping.close()
        self._mapping = None

    def __len__(self) -> int:
        return self.total_count

    def __repr__(self) -> str:
        return (
            f"WordCursor(source={self.source!r}, index={self.index}, "
            f"total_count={self.total_count})"
        )
