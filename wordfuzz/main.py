import sys
import urllib3

from typing import Optional, Sequence

from wordfuzz.config.runtime_config import FuzzerRuntimeConfig
from wordfuzz.config.static_config import FuzzerStaticConfig
from wordfuzz.core.errors import EngineError

from wordfuzz.utility.argumentparser import ArgumentParser
from wordfuzz.utility.logger import LoggerManager
from wordfuzz.utility.configuration import Configuration

from wordfuzz.fuzzer import Fuzzer

logger = LoggerManager(__name__).get_logger()

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


class App:
    def __init__(self, argv: Optional[Sequence[str]] = None):
        """
        Initialize the application, including argument parsing and runner
        """

        parser = ArgumentParser()
        args = parser.parse_args(argv)

        LoggerManager.set_verbosity(args.verbose)

        if not parser.has_url(args.fields):
            logger.error("Error: You must provide a target URL with -u")
            sys.exit(1)

        configuration = Configuration(
            fields=args.fields,
            filters=args.filters,
            proxy_url=args.proxy,
        )

        try:
            delay = configuration.parse_delay(args.delay)
            config = FuzzerStaticConfig.build_fuzzer_config(configuration)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

        runtime_config = FuzzerRuntimeConfig(
            mode=args.mode,
            num_threads=args.concurrent,
            rate=args.rate,
            timeout=args.timeout,
            delay=delay,
            time=args.time,
            output_file=args.output_file,
            method=args.method,
            no_filter=args.no_filter,
            verify_ssl=args.verify,
        )

        try:
            self.fuzzer = Fuzzer(config=config, runtime_config=runtime_config)
        except EngineError:
            config.close()
            raise

    def run(self):
        """
        Runs the main logic for the script execution
        """

        self.fuzzer.run()


def main(argv: Optional[Sequence[str]] = None):
    """
    The entry point for script execution
    """

    try:
        app = App(argv)
        app.run()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except EngineError as e:
        logger.error(f"Fatal: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
