"""Runtime settings for the tree export processor."""


class Settings:
    """Processor settings."""

    # Logging
    LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    LOG_DATE_FORMAT = "%H:%M:%S"

    # Input
    GZIP_SUFFIX = ".gz"
    ENCODING = "utf-8"

    # Log a progress line every N parsed nodes
    PROGRESS_INTERVAL = 10_000
