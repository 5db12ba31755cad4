# ABOUTME: YAML configuration: file discovery, default template, and validated frozen dataclasses.
# ABOUTME: Also provides the library and notifier lookups used when wiring import types.

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "EARMARK_CONFIG"
CONFIG_FILENAME = "config.yaml"

DEFAULT_SEARCH_URL = "https://api.audible.com/1.0/catalog/products"
DEFAULT_METADATA_URL = "https://api.audnex.us/books"
DEFAULT_HISTORY_PATH = "~/.earmark/history.db"

DEFAULT_CONFIG_TEMPLATE = """\
# earmark configuration

logging:
  # debug, info, warning, error, or none
  level: info

qbit:
  url: http://localhost:8080
  username: admin
  password: adminadmin
  # Download root as qBittorrent sees it
  downloadPath: /downloads
  # The same directory as this machine sees it
  localDownloadPath: /downloads
  timeout: 15

catalog:
  searchUrl: https://api.audible.com/1.0/catalog/products
  metadataUrl: https://api.audnex.us/books
  searchLimit: 10
  minRequestInterval: 0.1

importers:
  importedTag: imported
  manualInterventionTag: manual-intervention
  probeCommand: ffprobe
  probeTimeout: 60
  sweepInterval: 300
  # Set to an empty string to disable the import history database
  historyPath: ~/.earmark/history.db
  audiobooks:
    libraries: []
    #  - name: audiobooks
    #    path: /library/audiobooks
    importTypes: []
    #  - category: audiobooks
    #    library: audiobooks
    #    notification: discord

notifications:
  notifiers: []
  #  - name: discord
  #    type: discord
  #    url: https://discord.com/api/webhooks/...
"""


class ConfigError(Exception):
    """Raised when the configuration file is missing, malformed, or inconsistent."""


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "info"


@dataclass(frozen=True)
class QbitConfig:
    url: str = "http://localhost:8080"
    username: str = ""
    password: str = ""
    download_path: str = ""
    local_download_path: str = ""
    timeout: float = 15.0


@dataclass(frozen=True)
class CatalogConfig:
    search_url: str = DEFAULT_SEARCH_URL
    metadata_url: str = DEFAULT_METADATA_URL
    search_limit: int = 10
    min_request_interval: float = 0.1


@dataclass(frozen=True)
class LibraryConfig:
    """A named library root on the importer's filesystem."""

    name: str
    path: Path


@dataclass(frozen=True)
class ImportTypeConfig:
    """Maps a torrent category to a library and an optional notifier."""

    category: str
    library: str
    notification: str | None = None


@dataclass(frozen=True)
class NotifierConfig:
    name: str
    type: str
    url: str


@dataclass(frozen=True)
class ImportersConfig:
    imported_tag: str = "imported"
    manual_intervention_tag: str = "manual-intervention"
    probe_command: str = "ffprobe"
    probe_timeout: float = 60.0
    sweep_interval: float = 300.0
    history_path: Path | None = None
    libraries: list[LibraryConfig] = field(default_factory=list)
    import_types: list[ImportTypeConfig] = field(default_factory=list)


@dataclass(frozen=True)
class Config:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    qbit: QbitConfig = field(default_factory=QbitConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    importers: ImportersConfig = field(default_factory=ImportersConfig)
    notifiers: list[NotifierConfig] = field(default_factory=list)


def default_config_path() -> Path:
    """$EARMARK_CONFIG, else the XDG config location."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "earmark" / CONFIG_FILENAME


def write_default_config(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    logger.info("Wrote default configuration to %s", path)


def load_config(path: Path | None = None) -> Config:
    """Load and validate the configuration file.

    When the file does not exist, the default template is written there
    first so the user has something to edit.

    Raises:
        ConfigError: The file cannot be read, parsed, or validated.
    """
    config_path = path if path is not None else default_config_path()

    try:
        if not config_path.exists():
            write_default_config(config_path)
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {config_path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

    logger.debug("Loaded configuration from %s", config_path)
    return parse_config(data if data is not None else {})


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ConfigError(f"'{key}' must be a list of mappings")
    return value


def _str(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from exc


def _parse_importers(data: dict[str, Any]) -> ImportersConfig:
    audiobooks = _section(data, "audiobooks")

    libraries = [
        LibraryConfig(name=_str(entry, "name"), path=Path(_str(entry, "path")).expanduser())
        for entry in _entries(audiobooks, "libraries")
    ]
    import_types = [
        ImportTypeConfig(
            category=_str(entry, "category"),
            library=_str(entry, "library"),
            notification=_str(entry, "notification") or None,
        )
        for entry in _entries(audiobooks, "importTypes")
    ]

    history = _str(data, "historyPath", DEFAULT_HISTORY_PATH)

    return ImportersConfig(
        imported_tag=_str(data, "importedTag", "imported"),
        manual_intervention_tag=_str(data, "manualInterventionTag", "manual-intervention"),
        probe_command=_str(data, "probeCommand", "ffprobe"),
        probe_timeout=_number(data, "probeTimeout", 60.0),
        sweep_interval=_number(data, "sweepInterval", 300.0),
        history_path=Path(history).expanduser() if history else None,
        libraries=libraries,
        import_types=import_types,
    )


def _validate(config: Config) -> None:
    importers = config.importers

    if not importers.imported_tag or not importers.manual_intervention_tag:
        raise ConfigError("importedTag and manualInterventionTag must not be empty")
    if importers.imported_tag == importers.manual_intervention_tag:
        raise ConfigError("importedTag and manualInterventionTag must differ")

    seen: set[str] = set()
    for library in importers.libraries:
        if not library.name:
            raise ConfigError("every library needs a name")
        if library.name in seen:
            raise ConfigError(f"duplicate library name {library.name!r}")
        seen.add(library.name)

    for import_type in importers.import_types:
        if not import_type.category:
            raise ConfigError("import type with an empty category")
        if import_type.library not in seen:
            raise ConfigError(
                f"import type {import_type.category!r} names unknown library {import_type.library!r}"
            )


def parse_config(data: Any) -> Config:
    """Build a validated Config from the parsed YAML document.

    Raises:
        ConfigError: The document is not a mapping or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping at the top level")

    log_section = _section(data, "logging")
    qbit = _section(data, "qbit")
    catalog = _section(data, "catalog")
    notifications = _section(data, "notifications")

    config = Config(
        logging=LoggingConfig(level=_str(log_section, "level", "info")),
        qbit=QbitConfig(
            url=_str(qbit, "url", "http://localhost:8080"),
            username=_str(qbit, "username"),
            password=_str(qbit, "password"),
            download_path=_str(qbit, "downloadPath"),
            local_download_path=_str(qbit, "localDownloadPath"),
            timeout=_number(qbit, "timeout", 15.0),
        ),
        catalog=CatalogConfig(
            search_url=_str(catalog, "searchUrl", DEFAULT_SEARCH_URL),
            metadata_url=_str(catalog, "metadataUrl", DEFAULT_METADATA_URL),
            search_limit=int(_number(catalog, "searchLimit", 10)),
            min_request_interval=_number(catalog, "minRequestInterval", 0.1),
        ),
        importers=_parse_importers(_section(data, "importers")),
        notifiers=[
            NotifierConfig(
                name=_str(entry, "name"),
                type=_str(entry, "type", "discord"),
                url=_str(entry, "url"),
            )
            for entry in _entries(notifications, "notifiers")
        ],
    )
    _validate(config)
    return config


def find_library_by_name(libraries: list[LibraryConfig], name: str) -> LibraryConfig | None:
    for library in libraries:
        if library.name == name:
            return library
    return None


def find_notifier_by_name(notifiers: list[NotifierConfig], name: str) -> NotifierConfig | None:
    for notifier in notifiers:
        if notifier.name == name:
            return notifier
    return None
