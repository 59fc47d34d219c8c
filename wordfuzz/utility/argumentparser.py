import argparse

from typing import List, Optional, Sequence, Tuple

from wordfuzz.config.constants import Constants
from wordfuzz.core.filters import RuleKind
from wordfuzz.core.strategy import Mode
from wordfuzz.utility.configuration import (
    FIELD_BODY,
    FIELD_HEADER,
    FIELD_URL,
    FIELD_WORDLIST,
)

BANNER = r"""
                        _  __
 __      _____  _ __ __| |/ _|_   _ _________
 \ \ /\ / / _ \| '__/ _` | |_| | | |_  /_  /
  \ V  V / (_) | | | (_| |  _| |_| |/ / / /
   \_/\_/ \___/|_|  \__,_|_|  \__,_/___/___|

Example:
  wordfuzz -u http://target/FUZZ -w paths.txt -H "X-Id: FUZZ" -w ids.txt -m pitchfork
        """


class OrderedFieldAction(argparse.Action):
    """
    Records templated fields and word-lists in the order they appear, so a
    word-list can be bound to the field declared right before it
    """

    def __call__(self, parser, namespace, values, option_string=None):
        fields = list(getattr(namespace, self.dest, None) or [])
        fields.append((self.const, values))
        setattr(namespace, self.dest, fields)


class FilterAction(argparse.Action):
    """
    Collects filter/match selectors as (kind, selector) pairs
    """

    def __call__(self, parser, namespace, values, option_string=None):
        filters = list(getattr(namespace, self.dest, None) or [])
        filters.append((self.const, values))
        setattr(namespace, self.dest, filters)


FILTER_HELP = {
    RuleKind.FILTER_CODE: "Filter out HTTP status codes (e.g. 404 or 400-499,500)",
    RuleKind.MATCH_CODE: "Match HTTP status codes (default: 200-399)",
    RuleKind.FILTER_SIZE: "Filter out response sizes in bytes",
    RuleKind.MATCH_SIZE: "Match response sizes in bytes",
    RuleKind.FILTER_WORDS: "Filter out response word counts",
    RuleKind.MATCH_WORDS: "Match response word counts",
    RuleKind.FILTER_LINES: "Filter out response line counts",
    RuleKind.MATCH_LINES: "Match response line counts",
    RuleKind.FILTER_DURATION: "Filter out response durations in milliseconds",
    RuleKind.MATCH_DURATION: "Match response durations in milliseconds",
}


class ArgumentParser:
    """
    Handles argument parsing and script execution
    """

    def __init__(self):
        self.parser = self.create_parser()

    def create_parser(self) -> argparse.ArgumentParser:
        """
        Configures the argument parser with expected arguments.

        Returns:
        - argparse.ArgumentParser: The configured argument parser
        """

        parser = argparse.ArgumentParser(
            prog="wordfuzz",
            description="Word-list driven web fuzzer with a bounded request pool",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=BANNER,
        )

        parser.add_argument(
            "-u",
            "--url",
            dest="fields",
            action=OrderedFieldAction,
            const=FIELD_URL,
            help="Target URL template, FUZZ marks a placeholder",
        )

        parser.add_argument(
            "-d",
            "--data",
            dest="fields",
            action=OrderedFieldAction,
            const=FIELD_BODY,
            help="Append a body parameter template (e.g. 'user=FUZZ')",
        )

        parser.add_argument(
            "-H",
            "--header",
            dest="fields",
            action=OrderedFieldAction,
            const=FIELD_HEADER,
            help="Append a header template format: 'Header-Name: value'",
        )

        parser.add_argument(
            "-w",
            "--wordlist",
            dest="fields",
            action=OrderedFieldAction,
            const=FIELD_WORDLIST,
            help="Word-list for the most recently declared -u/-d/-H",
        )

        parser.add_argument(
            "-m",
            "--mode",
            type=str,
            choices=[mode.value for mode in Mode],
            default=Mode.CLUSTERBOMB.value,
            help="Iteration mode (default: clusterbomb)",
        )

        parser.add_argument(
            "-t",
            "--concurrent",
            type=int,
            default=Constants.DEFAULT_CONCURRENCY,
            help=f"Number of concurrent requests (default: {Constants.DEFAULT_CONCURRENCY})",
        )

        parser.add_argument(
            "-R",
            "--rate",
            type=float,
            default=0,
            help="Max requests per second (default: unlimited)",
        )

        parser.add_argument(
            "-p",
            "--delay",
            type=str,
            help="Delay between requests in microseconds: N or lo-hi",
        )

        parser.add_argument(
            "-T",
            "--timeout",
            type=float,
            default=Constants.TIMEOUT,
            help=f"Per request timeout in seconds (default: {Constants.TIMEOUT})",
        )

        parser.add_argument(
            "-X",
            "--method",
            type=str,
            help="HTTP method to use (default: GET, POST when a body is set)",
        )

        parser.add_argument(
            "-x",
            "--proxy",
            type=str,
            help="Proxy URL for http and https (e.g. http://127.0.0.1:8080)",
        )

        parser.add_argument(
            "-k",
            "--verify",
            action="store_true",
            help="Verify TLS certificates",
        )

        parser.add_argument(
            "--time",
            type=float,
            help="Max scan in minutes, stops sending new requests afterwards",
        )

        parser.add_argument(
            "-o",
            "--output_file",
            type=str,
            help="File to write result to (optional)",
        )

        for kind, help_text in FILTER_HELP.items():
            parser.add_argument(
                f"--{kind.value}",
                dest="filters",
                action=FilterAction,
                const=kind.value,
                metavar="RANGE",
                help=help_text,
            )

        parser.add_argument(
            "--no-filter",
            action="store_true",
            help="Report every response, disables the default status match",
        )

        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Debug output",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {Constants.VERSION}",
        )

        return parser

    def parse_args(self, argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
        """
        Parse and return command-line arguments

        Returns a namespace object
        """

        args = self.parser.parse_args(argv)
        if args.fields is None:
            args.fields = []
        if args.filters is None:
            args.filters = []
        return args

    @staticmethod
    def has_url(fields: List[Tuple[str, str]]) -> bool:
        return any(kind == FIELD_URL for kind, _ in fields)
