import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILENAME = "notifyrun.log"


def setup_logger(name="notifyrun", log_dir=None, log_filename=DEFAULT_LOG_FILENAME, level=logging.INFO, console=True):
    """
    Set up and return a logger with console and (optionally) file handlers.

    Args:
        name (str): The logger name. Module loggers below it propagate to it.
        log_dir (str, optional): Directory for the log file. No file is written if None.
        log_filename (str): Log file name inside log_dir.
        level (int): Logging level.
        console (bool): Whether to add a console handler.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def parse_level(level_name, default=logging.INFO):
    """Map a level name such as "debug" to its logging constant."""
    if isinstance(level_name, int):
        return level_name
    return getattr(logging, str(level_name).upper(), default)
