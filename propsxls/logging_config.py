import logging
import os
import sys

from tqdm import tqdm

from propsxls.app_config import AppConfig

LOGGER_NAME = "propsxls"


class TqdmLoggingHandler(logging.Handler):
    """Console handler that prints through tqdm.write so the file progress bars stay intact."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)


class WarningCounter(logging.Handler):
    """
    Counts the warnings of one run.

    Skipped properties files, workbook rows and columns are only reported as
    warnings, so the count is what tells a user that a run was partial.
    """

    def __init__(self):
        super().__init__(logging.WARNING)
        self.count = 0

    def emit(self, record):
        self.count += 1


def setup_logger(config: AppConfig) -> logging.Logger:
    """
    Configure the ``propsxls`` logger that all converter modules log through.

    The console handler writes through tqdm while progress bars are shown and
    is a plain stderr handler otherwise. ``log_file_path`` adds a UTF-8 log
    file; an empty path disables it.

    Args:
        config: The loaded application configuration.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    # Clear any existing handlers to prevent duplicate logging
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    handlers = []
    if config.log_file_path:
        log_dir = os.path.dirname(config.log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file_path, encoding='utf-8'))
    if config.log_to_console:
        handlers.append(TqdmLoggingHandler() if config.show_progress else logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def attach_warning_counter(logger: logging.Logger) -> WarningCounter:
    counter = WarningCounter()
    logger.addHandler(counter)
    return counter
