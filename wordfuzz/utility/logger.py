import logging

"""
Logger class
"""


class LoggerManager:
    """
    Initalize the logging instance

    Returns:
    - The logger associated with this module
    """

    def __init__(self, name: str = "wordfuzz", level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Avoid duplicate handlers if logger already has one
        if not self.logger.hasHandlers():
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def get_logger(self) -> logging.Logger:
        return self.logger

    @staticmethod
    def set_verbosity(verbose: bool) -> None:
        """
        Switch every wordfuzz logger between INFO and DEBUG

        Args:
        - verbose (bool): Whether debug output is wanted
        """

        level = logging.DEBUG if verbose else logging.INFO
        for name, logger in logging.root.manager.loggerDict.items():
            if name.startswith("wordfuzz") and isinstance(logger, logging.Logger):
                logger.setLevel(level)
