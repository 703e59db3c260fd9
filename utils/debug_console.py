"""Rich console that mirrors everything it prints into the debug log.

Terminal output keeps its formatting; the log gets the plain text.
"""

import logging
from typing import Optional

from rich.console import Console as RichConsole

CONSOLE_PREFIX = "[CONSOLE] "


class DebugCapturingConsole(RichConsole):
    """Console whose ``print`` also writes a plain-text copy to a logger"""

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self.render_plain(*objects, **kwargs)
            if plain_text:
                self.debug_logger.debug(f"{CONSOLE_PREFIX}{plain_text}")

    def render_plain(self, *objects, **kwargs) -> str:
        """Render objects the way ``print`` would, without styles or colors"""
        plain = RichConsole(width=self.width, no_color=True, force_terminal=False, legacy_windows=False)
        with plain.capture() as capture:
            plain.print(*objects, **kwargs)
        return capture.get().rstrip()


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Pick the console for this session.

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logger(log_file: str = "account_vault_debug.log") -> logging.Logger:
    """
    Set up the dedicated, non-propagating logger for console output.

    Args:
        log_file: Path to debug log file (appended to)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("debug_console")
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    # Root logger already writes to the same file
    logger.propagate = False

    return logger
