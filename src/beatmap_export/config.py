"""
Configuration loading and validation for beatmap_export.

Handles:
- Export settings with environment-variable defaults
- Loading an exporter configuration YAML file
- Validating filter definitions
- Mapping the compression setting onto zipfile parameters
"""

import os
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from common.logging import Logger, NullLogger

from .exceptions import ConfigurationError
from .filters import BeatmapFilter, FilterTemplate, build_filter

# name -> (zipfile method, compresslevel)
COMPRESSION_LEVELS = {
    "optimal": (zipfile.ZIP_DEFLATED, 6),
    "fastest": (zipfile.ZIP_DEFLATED, 1),
    "smallest": (zipfile.ZIP_DEFLATED, 9),
    "none": (zipfile.ZIP_STORED, None),
}

DEFAULT_EXPORT_PATH = "lazerexport"


@dataclass
class ExporterConfiguration:
    """
    Mutable export settings and filter rules.

    Attributes:
        export_path: Directory all exported files are written to.
        compression: One of ``optimal``, ``fastest``, ``smallest`` or ``none``.
        filters: Ordered filter rules. Collection filters in this list are replaced
            in place by the selector.
    """

    export_path: Path = field(
        default_factory=lambda: Path(os.getenv("EXPORT_PATH", DEFAULT_EXPORT_PATH))
    )
    compression: str = field(default_factory=lambda: os.getenv("EXPORT_COMPRESSION", "optimal"))
    filters: list[BeatmapFilter] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.export_path, Path):
            self.export_path = Path(self.export_path)
        self.compression = self.compression.lower()
        if self.compression not in COMPRESSION_LEVELS:
            raise ConfigurationError(
                f"Unknown compression '{self.compression}'",
                [f"expected one of {', '.join(COMPRESSION_LEVELS)}"],
            )

    def zip_compression(self) -> tuple[int, int | None]:
        """The (compression method, compresslevel) pair for ``zipfile.ZipFile``."""
        return COMPRESSION_LEVELS[self.compression]


def load_configuration(config_path: Path, logger: Logger | None = None) -> ExporterConfiguration:
    """
    Load an exporter configuration YAML file.

    Example file::

        export_path: ./export
        compression: fastest
        filters:
          - template: artist
            args: [camellia]
          - template: collection
            args: ["#2", favourites]
            negated: true

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    logger = logger or NullLogger()
    config_path = Path(config_path)
    data = _read_config_data(config_path)

    is_valid, errors = validate_config_data(data)
    if not is_valid:
        raise ConfigurationError(f"Invalid configuration in {config_path}", errors)

    filters = _parse_filters(data.get("filters") or [])
    kwargs = {"filters": filters}
    if "export_path" in data:
        kwargs["export_path"] = Path(data["export_path"])
    if "compression" in data:
        kwargs["compression"] = str(data["compression"])

    configuration = ExporterConfiguration(**kwargs)
    logger.info(
        f"Loaded configuration from {config_path}: {len(filters)} filter(s), "
        f"export to {configuration.export_path}"
    )
    return configuration


def _read_config_data(config_path: Path) -> dict:
    """Read and parse the YAML configuration file into a dict."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {config_path}", [str(e)])
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_path}", [str(e)])


def _template_for(name: str) -> FilterTemplate | None:
    try:
        return FilterTemplate(str(name).lower())
    except ValueError:
        return None


def validate_config_data(data: dict) -> tuple[bool, list[str]]:
    """
    Validate configuration data structure.

    Args:
        data: Parsed YAML data

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        return False, ["Configuration must be a dictionary"]

    compression = data.get("compression")
    if compression is not None and str(compression).lower() not in COMPRESSION_LEVELS:
        errors.append(
            f"'compression' must be one of {', '.join(COMPRESSION_LEVELS)}, got '{compression}'"
        )

    filters = data.get("filters") or []
    if not isinstance(filters, list):
        errors.append("'filters' must be a list")
        return False, errors

    for i, entry in enumerate(filters):
        _validate_filter_entry(entry, f"Filter {i + 1}", errors)

    return not errors, errors


def _validate_filter_entry(entry, prefix: str, errors: list[str]) -> None:
    if not isinstance(entry, dict):
        errors.append(f"{prefix}: Must be a dictionary")
        return

    if "template" not in entry:
        errors.append(f"{prefix}: Missing required field 'template'")
    elif _template_for(entry["template"]) is None:
        known = ", ".join(t.value for t in FilterTemplate)
        errors.append(f"{prefix}: Unknown template '{entry['template']}' (known: {known})")

    args = entry.get("args", [])
    if not isinstance(args, list):
        errors.append(f"{prefix}: 'args' must be a list")

    if not isinstance(entry.get("negated", False), bool):
        errors.append(f"{prefix}: 'negated' must be true or false")


def _parse_filters(entries: list[dict]) -> list[BeatmapFilter]:
    filters: list[BeatmapFilter] = []
    for i, entry in enumerate(entries):
        template = _template_for(entry["template"])
        try:
            filters.append(
                build_filter(template, entry.get("args", []), entry.get("negated", False))
            )
        except ValueError as e:
            raise ConfigurationError("Invalid filter", [f"Filter {i + 1}: {e}"])
    return filters
