from dataclasses import dataclass
from typing import List, Dict, Callable, Optional

from wordfuzz.core.filters import FilterRule
from wordfuzz.core.template import FuzzTemplate
from wordfuzz.core.wordcursor import WordCursor
from wordfuzz.utility.configuration import Configuration

"""
Static configuration
"""


@dataclass
class FuzzerStaticConfig:
    base_url: str
    template: FuzzTemplate
    cursors: List[WordCursor]
    filter_rules: List[FilterRule]
    proxy: Dict[str, str]
    write_results_to_file: Callable[[List[str], Optional[str]], None]
    color_status_code: Callable[[int, str], str]
    format_time_remaining: Callable[[float], str]
    close: Callable[[], None]

    @classmethod
    def build_fuzzer_config(cls, utility: Configuration) -> "FuzzerStaticConfig":
        try:
            template, cursors = utility.build_template()
            return FuzzerStaticConfig(
                base_url=template.url,
                template=template,
                cursors=cursors,
                filter_rules=utility.filter_rules(),
                proxy=utility.proxy(enable_proxy=bool(utility.proxy_url)),
                write_results_to_file=utility.write_results_to_file,
                color_status_code=utility.color_status_code,
                format_time_remaining=utility.format_time_remaining,
                close=utility.close,
            )
        except (FileNotFoundError, ValueError) as e:
            utility.close()
            raise ValueError(f"Failed to build fuzzer config: {e}") from e
