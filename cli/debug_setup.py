"""Logging and console setup for CLI"""

import logging
import os

from rich.console import Console

from utils.debug_console import create_debug_console, setup_debug_logger


def setup_logging(debug: bool, log_file: str, log_level: str = "info") -> Console:
    """
    Configure the root logger and pick the console

    Args:
        debug: Whether debug mode is enabled
        log_file: Debug log file, appended to in debug mode
        log_level: Root level when not in debug mode

    Returns:
        Console instance (either regular or debug-enabled)
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if not debug:
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        # Keep library chatter out of the interactive output
        logging.getLogger("httpx").setLevel(logging.WARNING)
        return Console()

    root_logger.setLevel(logging.DEBUG)

    log_file = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Rich console output is mirrored into the same file
    debug_logger = setup_debug_logger(log_file)
    console = create_debug_console(debug_enabled=True, debug_logger=debug_logger)
    debug_logger.debug("[CLI] ===== CLI SESSION STARTED =====")

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return console
