import sys
import logging
from pathlib import Path
from typing import Optional


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw subprocess logs."""

    HUB_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'

    def format(self, record):
        # Subprocess lines get a short name prefix only; they carry their own formatting.
        if record.name.startswith('proc.'):
            return f"[{record.name[len('proc.'):]}] {record.getMessage()}"

        # Temporarily change the format string for the superclass call.
        original_format = self._style._fmt
        self._style._fmt = self.HUB_FORMAT
        formatted_message = super().format(record)
        self._style._fmt = original_format
        return formatted_message


def setup_logging(console_level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """
    Configures the root logger for the hub.
    This sets up a console handler and, optionally, a file handler,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_file: If given, every record (subprocess output included) is also appended here.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- File Handler (optional) ---
    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(MainFormatter())
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to open log file '{log_file}': {e}. File logging will be disabled.")

    # python-dotenv reports unparsable .env lines through its own logger.
    logging.getLogger("dotenv").setLevel(logging.WARNING)
