import logging

from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class FileLoggingContext:
    """Context manager to tee all loggers into a conversion log file.

    This class captures ALL logging that occurs within its context.
    """

    def __init__(self, log_file_path: Path):
        """
        Args:
            log_file_path: Path to the log file. Its directory is created.
        """
        self.log_file_path = log_file_path
        self.file_handler = None

    def __enter__(self):
        """Set up file handler on the root logger."""
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_handler = logging.FileHandler(self.log_file_path)
        self.file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        # Get root logger to capture everything.
        logging.getLogger().addHandler(self.file_handler)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Detach and close the file handler."""
        root_logger = logging.getLogger()
        if self.file_handler in root_logger.handlers:
            root_logger.removeHandler(self.file_handler)

        if self.file_handler:
            self.file_handler.close()
            self.file_handler = None
