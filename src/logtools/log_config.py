from pathlib import Path
import logging.config

def get_logging_config(dir_output: str, base_file: str) -> dict:
    """Generates a logging configuration dictionary for export runs.
    Creates the output directory if it does not exist and configures file and console handlers.

    Args:
        dir_output: Directory where log files will be stored.
        base_file: Name of the log file.

    Returns:
        dict: Logging configuration dictionary compatible with logging.config.dictConfig.
    """
    path_output = Path(dir_output)
    path_output.mkdir(parents=True, exist_ok=True)

    path_json = path_output / base_file

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": "%(asctime)s %(levelname)s %(message)s %(module)s %(funcName)s %(process)d",
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
            },
            "console": {
                "format": "%(levelname)s: %(message)s | module '%(module)s' | function '%(funcName)s'",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
                "level": "WARNING",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "json",
                "filename": str(path_json),
                "maxBytes": 204800,
                "backupCount": 10,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "": {"handlers": ["stdout", "file"], "level": "WARNING"}
        },
    }

def setup_logging(dir_output: str, base_file: str = "export.log", log_level: str = "INFO") -> None:
    """Configures the root logger for an export run.
    Sets up logging handlers, formatters, and log level for consistent logging across packages.

    Args:
        dir_output: Directory where log files will be stored.
        base_file: Name of the log file.
        log_level: Logging level to set for the root logger.

    Returns:
        None
    """
    root = logging.getLogger()

    # Only skip when we configured it ourselves
    if getattr(root, "_configured_by_exporter", False):
        return

    for h in root.handlers[:]:
        root.removeHandler(h)

    config = get_logging_config(dir_output=dir_output, base_file=base_file)
    logging.config.dictConfig(config)

    root.setLevel(log_level.upper())
    root._configured_by_exporter = True
