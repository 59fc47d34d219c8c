from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from wordfuzz.config.constants import Constants

"""
Request template with placeholder markers
"""


def placeholder_count(text: Optional[str], marker: str = Constants.MARKER) -> int:
    """
    Count non-overlapping markers in a template field

    Args:
    - text (str): The template field, may be None
    - marker (str): The placeholder token

    Returns:
    - int: Number of markers found
    """

    if not text:
        return 0
    return text.count(marker)


def instantiate(
    text: str, values: Sequence[str], marker: str = Constants.MARKER
) -> str:
    """
    Replace markers left to right with consecutive values

    Markers left over once the values run out are kept verbatim.
    """

    return substitute(text, values, 0, marker)[0]


def substitute(
    text: str,
    values: Sequence[str],
    start: int = 0,
    marker: str = Constants.MARKER,
) -> Tuple[str, int]:
    """
    Like instantiate(), continuing from a shared position in values

    Args:
    - text (str): The template field
    - values (Sequence[str]): Values to substitute
    - start (int): Index of the first unconsumed value

    Returns:
    - Tuple[str, int]: The substituted text and how many values it consumed
    """

    parts = text.split(marker)
    if len(parts) == 1:
        return text, 0

    out = [parts[0]]
    consumed = 0
    for part in parts[1:]:
        position = start + consumed
        if position < len(values):
            out.append(values[position])
            consumed += 1
        else:
            out.append(marker)
        out.append(part)

    return "".join(out), consumed


@dataclass
class FuzzRequest:
    """
    A fully substituted request, owned by one request context
    """

    url: str
    body: Optional[str] = None
    headers: List[str] = field(default_factory=list)

    def header_dict(self) -> dict:
        """
        Header lines as a mapping; repeated names are joined with ", "
        """

        headers = {}
        names = {}
        for line in self.headers:
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            key = names.setdefault(key.strip().lower(), key.strip())
            if key in headers:
                headers[key] = f"{headers[key]}, {value.strip()}"
            else:
                headers[key] = value.strip()
        return headers


class FuzzTemplate:
    """
    URL, body and headers of the request-to-be

    Fields are declared one by one while the command line is read. Once
    freeze() is called the template is read-only and remembers which fields
    carry markers, so static fields are never substituted again.
    """

    def __init__(self, marker: str = Constants.MARKER) -> None:
        self.marker = marker
        self.url: Optional[str] = None
        self.body: Optional[str] = None
        self.headers: List[str] = []

        self.url_has_fuzz = False
        self.body_has_fuzz = False
        self.header_has_fuzz = False
        self.frozen = False

    def _check_mutable(self) -> None:
        if self.frozen:
            raise RuntimeError("Template is frozen once the engine has started")

    def set_url(self, url: str) -> None:
        """
        Set the URL template, replacing any previous one
        """

        self._check_mutable()
        self.url = url

    def add_body(self, part: str) -> None:
        """
        Append a body parameter, joining parameters with '&'
        """

        self._check_mutable()
        if self.body is None:
            self.body = part
        elif part.startswith("&") or self.body.endswith("&"):
            self.body += part
        else:
            self.body += "&" + part

    def add_header(self, line: str) -> None:
        self._check_mutable()
        self.headers.append(line)

    @property
    def url_count(self) -> int:
        return placeholder_count(self.url, self.marker)

    @property
    def body_count(self) -> int:
        return placeholder_count(self.body, self.marker)

    @property
    def header_counts(self) -> List[int]:
        return [placeholder_count(h, self.marker) for h in self.headers]

    @property
    def fuzz_count(self) -> int:
        return self.url_count + self.body_count + sum(self.header_counts)

    def freeze(self) -> "FuzzTemplate":
        self.url_has_fuzz = self.url_count > 0
        self.body_has_fuzz = self.body_count > 0
        self.header_has_fuzz = any(self.header_counts)
        self.frozen = True
        return self

    def render(self, values: Sequence[str]) -> FuzzRequest:
        """
        Substitute values into URL, body and headers, in that order

        Args:
        - values (Sequence[str]): One value per placeholder

        Returns:
        - FuzzRequest: Freshly built request strings
        """

        used = 0

        url = self.url or ""
        if self.url_has_fuzz:
            url, n = substitute(url, values, used, self.marker)
            used += n

        body = self.body
        if body is not None and self.body_has_fuzz:
            body, n = substitute(body, values, used, self.marker)
            used += n

        if self.header_has_fuzz:
            headers = []
            for line in self.headers:
                line, n = substitute(line, values, used, self.marker)
                used += n
                headers.append(line)
        else:
            headers = list(self.headers)

        return FuzzRequest(url=url, body=body, headers=headers)
