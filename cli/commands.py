"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.exceptions import ConfigurationError
from common.logging_config import get_logger
from common.node_client import NodeClient
from common.settings import (
    ConnectionSettings,
    DiagnosticSettings,
    ListingSettings,
    ReplicationSettings,
    build_settings,
)
from cli.config import Config
from cli.models import ConnectionOptions, DiagnoseCommand, ListCommand, ReplicateCommand
from inventory.scanner import run_inventory
from replication.diagnostics import diagnose
from replication.runner import run_replication

logger = get_logger(__name__)


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get or create global Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        logger.debug("Loading CLI configuration")
        _config = Config()
    return _config


def build_connection(options: ConnectionOptions, config: Config) -> ConnectionSettings:
    """
    Merge connection flags over configured values.

    Raises:
        ConfigurationError: If tenant, domain or token is missing or invalid
    """
    values = {
        "tenant": config.get("tenant", options.tenant),
        "domain": config.get("domain", options.domain),
        "token": config.get("token", options.token),
    }
    missing = [f"--{name}" for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(f"Missing required parameter(s): {', '.join(missing)}")

    return build_settings(
        ConnectionSettings,
        timeout=config.get("timeout", options.timeout),
        insecure=options.insecure,
        request_retries=config.get("retries"),
        retry_delay=config.get("retry_delay"),
        **values,
    )


def handle_list(cmd: ListCommand, config: Optional[Config] = None, client: Optional[NodeClient] = None) -> str:
    """
    Handle 'list' command.

    Args:
        cmd: ListCommand with namespace, nodes and listing options
        config: Optional Config for dependency injection (testing)
        client: Optional NodeClient for dependency injection (testing)

    Returns:
        Summary of the inventory run

    Raises:
        ConfigurationError: If a required parameter is missing or invalid
    """
    logger.info(f"Executing list command: namespace={cmd.namespace} nodes={list(cmd.nodes)}")
    if config is None:
        config = get_config()
    settings = build_settings(
        ListingSettings,
        connection=build_connection(cmd.connection, config),
        namespace=cmd.namespace,
        nodes=list(cmd.nodes),
        page_size=config.get("page_size", cmd.page_size),
        object_suffix=config.get("object_suffix", cmd.suffix),
        workers=config.get("listing_workers", cmd.workers),
        out_dir=Path(config.get("out_dir", cmd.out_dir)),
        debug=cmd.debug,
    )
    summary = run_inventory(settings, client=client)
    logger.debug("List command completed")
    return summary.render()


def handle_replicate(cmd: ReplicateCommand, config: Optional[Config] = None, client: Optional[NodeClient] = None) -> str:
    """
    Handle 'replicate' command.

    Args:
        cmd: ReplicateCommand with list file, target, sources and run options
        config: Optional Config for dependency injection (testing)
        client: Optional NodeClient for dependency injection (testing)

    Returns:
        Per-decision summary of the replication run

    Raises:
        ConfigurationError: If a required parameter is missing or invalid, or
            the list file cannot be read
    """
    logger.info(
        f"Executing replicate command: list_file={cmd.list_file} target={cmd.target} "
        f"sources={list(cmd.sources)} dry_run={cmd.dry_run}"
    )
    if config is None:
        config = get_config()
    settings = build_settings(
        ReplicationSettings,
        connection=build_connection(cmd.connection, config),
        list_file=Path(cmd.list_file),
        target=cmd.target,
        sources=list(cmd.sources),
        target_namespace=cmd.target_namespace,
        retries=config.get("retries", cmd.retries),
        retry_delay=config.get("retry_delay", cmd.retry_delay),
        workers=config.get("workers", cmd.workers),
        dry_run=cmd.dry_run,
        out_dir=Path(config.get("out_dir", cmd.out_dir)),
        debug=cmd.debug,
    )
    summary = run_replication(settings, client=client)
    logger.debug("Replicate command completed")
    return summary.render()


def handle_diagnose(cmd: DiagnoseCommand, config: Optional[Config] = None, client: Optional[NodeClient] = None) -> str:
    """
    Handle 'diagnose' command.

    Args:
        cmd: DiagnoseCommand with path, target and candidate nodes
        config: Optional Config for dependency injection (testing)
        client: Optional NodeClient for dependency injection (testing)

    Returns:
        Probe results and verdict
    """
    if config is None:
        config = get_config()
    settings = build_settings(
        DiagnosticSettings,
        connection=build_connection(cmd.connection, config),
        path=cmd.path,
        target=cmd.target,
        nodes=list(cmd.nodes),
    )
    if client is not None:
        return diagnose(client, settings.path, settings.target, settings.nodes).render()
    with NodeClient(settings.connection) as owned:
        return diagnose(owned, settings.path, settings.target, settings.nodes).render()
