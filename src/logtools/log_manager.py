import logging

def get_logger(name: str | None = None) -> logging.Logger:
    """
    Returns a logger instance for the specified name.

    Loggers returned here satisfy the ``common.logging.Logger`` protocol and can be
    handed to the exporter, the file store and the export worker.

    Args:
        name: Optional name for the logger.

    Returns:
        logging.Logger: Logger instance for the given name.
    """
    return logging.getLogger(name)
