# ABOUTME: Wires configuration into production collaborators for the CLI commands.
# ABOUTME: Builders are module-level functions so tests can replace any one of them.

import threading
from pathlib import Path

from rich.console import Console

from earmark.config import Config, ConfigError, ImportTypeConfig, load_config
from earmark.core.importer import ImportPipeline
from earmark.db.connection import open_history
from earmark.db.history import ImportHistory
from earmark.log import configure_logging
from earmark.metadata.audible import AudibleCatalogClient
from earmark.metadata.http import CatalogHttpClient
from earmark.metadata.resolver import MetadataResolver
from earmark.metadata.tags import FFProbeTagReader
from earmark.notifications import build_notifiers
from earmark.torrents.paths import PathMapper
from earmark.torrents.qbittorrent import QBittorrentGateway

console = Console(stderr=True)


def load_settings(config_path: Path | None) -> Config:
    """Load the config and set up logging, exiting with status 1 on a config error."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise SystemExit(1) from exc
    configure_logging(config.logging.level)
    return config


def build_gateway(config: Config) -> QBittorrentGateway:
    return QBittorrentGateway(
        config.qbit.url,
        config.qbit.username,
        config.qbit.password,
        timeout=config.qbit.timeout,
    )


def build_resolver(config: Config) -> MetadataResolver:
    http_client = CatalogHttpClient(min_request_interval=config.catalog.min_request_interval)
    catalog = AudibleCatalogClient(
        http_client,
        search_url=config.catalog.search_url,
        metadata_url=config.catalog.metadata_url,
        search_limit=config.catalog.search_limit,
    )
    return MetadataResolver(catalog)


def build_history(config: Config) -> ImportHistory | None:
    if config.importers.history_path is None:
        return None
    return ImportHistory(open_history(config.importers.history_path))


def build_pipeline(
    config: Config,
    *,
    import_types: list[ImportTypeConfig] | None = None,
    cancel: threading.Event | None = None,
) -> ImportPipeline:
    importers = config.importers
    return ImportPipeline(
        build_gateway(config),
        PathMapper(config.qbit.download_path, config.qbit.local_download_path),
        FFProbeTagReader(importers.probe_command, importers.probe_timeout),
        build_resolver(config),
        libraries=importers.libraries,
        import_types=import_types if import_types is not None else importers.import_types,
        notifiers=build_notifiers(config.notifiers),
        imported_tag=importers.imported_tag,
        manual_tag=importers.manual_intervention_tag,
        history=build_history(config),
        cancel=cancel,
    )
