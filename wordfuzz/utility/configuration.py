from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from termcolor import colored

from .logger import LoggerManager
from wordfuzz.core.filters import FilterRule
from wordfuzz.core.template import FuzzTemplate
from wordfuzz.core.wordcursor import WordCursor

"""
Configuration class
"""

FIELD_URL = "url"
FIELD_BODY = "data"
FIELD_HEADER = "header"
FIELD_WORDLIST = "wordlist"


class Configuration:
    """
    Args:
    - fields (Sequence[Tuple[str, str]]): Templated fields and word-lists in
      command line order, e.g. [("url", "http://x/FUZZ"), ("wordlist", "a.txt")]
    - filters (Iterable[Tuple[str, str]]): Filter/match selectors such as
      ("fc", "400-499")
    - proxy_url (str): Proxy for both http and https (optional)
    """

    def __init__(
        self,
        fields: Optional[Sequence[Tuple[str, str]]] = None,
        filters: Optional[Iterable[Tuple[str, str]]] = None,
        proxy_url: Optional[str] = None,
    ) -> None:
        """
        Initialize configuration

        Args:
        - fields (Sequence[Tuple[str, str]]): Ordered template declarations
        - filters (Iterable[Tuple[str, str]]): Filter/match selectors
        - proxy_url (str): Proxy URL
        """

        self.logger = LoggerManager(__name__).get_logger()
        self.fields = list(fields or [])
        self.filters = list(filters or [])
        self.proxy_url = proxy_url
        self._opened: Dict[str, WordCursor] = {}

    def load_wordlist(self, file_path: str) -> WordCursor:
        """
        Open a word-list, duplicating the cursor of a path opened before

        Args:
        - file_path (str): Path to the word-list file

        Returns:
        - WordCursor: A cursor of its own over the word-list
        """

        if file_path in self._opened:
            return self._opened[file_path].duplicate()

        cursor = WordCursor.from_file(file_path)
        self._opened[file_path] = cursor
        if not cursor.is_dummy:
            self.logger.debug(f"Loaded {cursor.total_count} words from {file_path}")
        return cursor

    def build_template(self) -> Tuple[FuzzTemplate, List[WordCursor]]:
        """
        Build the request template and bind every word-list to the field
        declared right before it (the URL when none was declared yet)

        Returns:
        - Tuple[FuzzTemplate, List[WordCursor]]: The frozen template and the
          cursors in substitution order: URL, body, then each header
        """

        template = FuzzTemplate()
        url_lists: List[WordCursor] = []
        body_lists: List[WordCursor] = []
        header_lists: List[List[WordCursor]] = []
        current = url_lists

        for kind, value in self.fields:
            if kind == FIELD_URL:
                if template.url is not None:
                    self.logger.warning(f"URL {template.url} replaced by {value}")
                template.set_url(self.validate_url(value))
                current = url_lists
            elif kind == FIELD_BODY:
                template.add_body(value)
                current = body_lists
            elif kind == FIELD_HEADER:
                if ":" not in value:
                    self.logger.warning(f"Skipping invalid header: {value}")
                    continue
                template.add_header(value)
                header_lists.append([])
                current = header_lists[-1]
            elif kind == FIELD_WORDLIST:
                current.append(self.load_wordlist(value))
            else:
                raise ValueError(f"Unknown template field: {kind}")

        if template.url is None:
            raise ValueError("No URL given")

        cursors = url_lists + body_lists
        for lists in header_lists:
            cursors.extend(lists)

        if not any(not cursor.is_dummy for cursor in cursors):
            raise ValueError("Cannot continue with no usable word-list")

        return template.freeze(), cursors

    def close(self) -> None:
        for cursor in self._opened.values():
            cursor.close()
        self._opened.clear()

    def proxy(self, enable_proxy=False) -> Dict[str, str]:
        """
        Initialize the proxy for inspecting and troubleshooting

        Args:
        - enable_proxy (bool): Whether to enable proxy

        Returns:
        - Dict[str, str]: A requests style proxy mapping
        """

        if enable_proxy and self.proxy_url:
            return {
                "http": self.proxy_url,
                "https": self.proxy_url,
            }
        return {}

    def validate_url(self, url: str) -> str:
        """
        Ensure the provided URL includes a scheme (http/https) and correct format.
        Adds 'http://' if no scheme provided in the argument.

        Returns:
        - A valid url for further processing.
        """

        if not url.startswith(("http://", "https://")):
            if "://" in url:
                raise ValueError(f"Invalid scheme in {url} - only http/https allowed")
            url = "http://" + url

        parsed = urlparse(url)
        if not parsed.netloc:
            raise ValueError(f"Invalid URL format: {url}")

        return url

    def filter_rules(self) -> List[FilterRule]:
        """
        Parse filter/match selectors

        Returns:
        - List[FilterRule]: Rules in the order they were given
        """

        rules = []
        for kind, selector in self.filters:
            try:
                rules.append(FilterRule.parse(kind, selector))
            except ValueError as e:
                raise ValueError(f"Invalid --{kind} value {selector!r}: {e}") from e
        return rules

    @staticmethod
    def parse_delay(delay: Optional[str]) -> Tuple[int, int]:
        """
        Parse a delay of 'N' or 'lo-hi' microseconds

        Returns:
        - Tuple[int, int]: Lower and upper bound, equal for a fixed delay
        """

        if not delay:
            return 0, 0

        try:
            if "-" in delay:
                low, high = (int(v) for v in delay.split("-", 1))
            else:
                low = high = int(delay)
        except ValueError as e:
            raise ValueError(f"Invalid delay {delay!r}, expected N or lo-hi") from e

        if low < 0 or high < low:
            raise ValueError(f"Invalid delay range {delay!r}")
        return low, high

    def write_results_to_file(
        self, results: List[str], output_file_path: Optional[str] = None
    ) -> None:
        """
        Writes the result to an output file

        Args:
        - results: (List[str]): The list of result strings to write
        - output_file_path (str): Path to the output file where results will be written
        """

        if not results:
            self.logger.warning("No result to write")
            return

        try:
            with open(output_file_path, "w", encoding="utf-8") as f:
                for line in results:
                    f.write(line + "\n")
            self.logger.info(f"Results written to {output_file_path}")
        except IOError as e:
            self.logger.error(
                f"I/O Error occurred when writing to {output_file_path}: {e}"
            )

    @staticmethod
    def color_status_code(status_code: int, line: str) -> str:
        """
        Color the line with the status code to indicate success, failure or so

        Args:
        - status_code (int): the status code of the given line, 0 on transport errors
        - line: the line of the request result to the web application.

        Returns:
        - str: The line of the request attempt in colored/plain status code format
        """

        if status_code == 0:
            return colored(line, "yellow")
        elif 200 <= status_code < 300:
            return colored(line, "green")
        elif 300 <= status_code < 400:
            return colored(line, "cyan")
        elif 400 <= status_code < 500:
            if status_code == 404:
                return colored(line, "magenta")
            elif status_code == 429:
                return colored(line, "red", attrs=["bold"])
            else:
                return colored(line, "red")
        elif 500 <= status_code < 600:
            return colored(line, "red", attrs=["bold"])
        else:
            return line

    @staticmethod
    def format_time_remaining(seconds: float) -> str:
        """
        Format time remaining in a user-friendly way

        Args:
        - seconds: times remaining in seconds
        """

        if seconds <= 0:
            return "0s"
        elif seconds < 60:
            return f"{seconds:.0f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            remaining_seconds = int(seconds % 60)
            if remaining_seconds > 0:
                return f"{minutes}m {remaining_seconds}s"
            else:
                return f"{minutes}m"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            if minutes > 0:
                return f"{hours}h {minutes}m"
            else:
                return f"{hours}h"
