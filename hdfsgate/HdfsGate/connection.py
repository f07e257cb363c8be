"""
HdfsGate connection resolution.

Turns declarative HdfsProperties into a ClusterConfig and builds the
filesystem client from it.
"""

from typing import Callable, List, Optional

from hdfsgate.shared.gate import GateLogger

from .client import ArrowHadoopClient, HadoopClient
from .errors import ConfigError, HdfsConnectionError
from .models import (
    ClusterConfig,
    HdfsProperties,
    HighAvailabilityClusterConfig,
    SimpleClusterConfig,
)

_log = GateLogger.get("ConnectionResolver")

HA_REQUIRED_FIELDS = (
    "ha_path",
    "ha_cluster_alias",
    "ha_name_nodes",
    "ha_rpc_address1",
    "ha_rpc_address2",
)


def split_namenodes(value: str) -> List[str]:
    """
    Split the comma-separated namenode list.

    Raises:
        ConfigError: unless the value holds exactly two non-empty identifiers
    """
    tokens = [token.strip() for token in value.split(",")]
    if len(tokens) != 2 or not all(tokens):
        raise ConfigError(
            f"haNameNodes must name exactly two namenodes separated by a comma, got {value!r}"
        )
    if tokens[0] == tokens[1]:
        raise ConfigError(f"haNameNodes must name two distinct namenodes, got {value!r}")
    return tokens


def resolve_cluster_config(properties: HdfsProperties) -> ClusterConfig:
    """
    Resolve connection properties into a cluster configuration.

    Args:
        properties: Declarative connection settings

    Returns:
        SimpleClusterConfig or HighAvailabilityClusterConfig

    Raises:
        ConfigError: if required settings are missing or inconsistent
    """
    if not properties.is_ha:
        if not properties.path or not properties.path.strip():
            raise ConfigError("path is required when HA is disabled")
        return SimpleClusterConfig(endpoint_uri=properties.path.strip())

    missing = [
        name for name in HA_REQUIRED_FIELDS
        if not (getattr(properties, name) or "").strip()
    ]
    if missing:
        raise ConfigError(f"HA configuration incomplete, missing: {', '.join(missing)}")

    namenode_ids = split_namenodes(properties.ha_name_nodes)
    return HighAvailabilityClusterConfig(
        endpoint_uri=properties.ha_path.strip(),
        cluster_alias=properties.ha_cluster_alias.strip(),
        namenode_ids=tuple(namenode_ids),
        rpc_address1=properties.ha_rpc_address1.strip(),
        rpc_address2=properties.ha_rpc_address2.strip(),
    )


ClientFactory = Callable[..., HadoopClient]


def build_client(
    cluster: ClusterConfig,
    username: Optional[str] = None,
    factory: ClientFactory = ArrowHadoopClient,
) -> HadoopClient:
    """
    Construct the filesystem client for a cluster.

    Args:
        cluster: Resolved cluster configuration
        username: User to act as
        factory: Client constructor taking (endpoint_uri, user=, extra_conf=)

    Raises:
        HdfsConnectionError: if the client cannot be constructed
    """
    if isinstance(cluster, HighAvailabilityClusterConfig):
        _log.info(
            f"Connecting to HA nameservice {cluster.cluster_alias} "
            f"({', '.join(f'{k}={v}' for k, v in cluster.rpc_addresses.items())})"
        )
    else:
        _log.info(f"Connecting to {cluster.endpoint_uri}")

    try:
        return factory(
            cluster.endpoint_uri,
            user=username,
            extra_conf=cluster.to_hadoop_conf(),
        )
    except Exception as e:
        raise HdfsConnectionError(
            f"The HDFS file system failed to initialize ({cluster.endpoint_uri}): {e}"
        ) from e


def connect(
    properties: HdfsProperties,
    factory: ClientFactory = ArrowHadoopClient,
) -> HadoopClient:
    """Resolve properties and build the client in one step."""
    return build_client(resolve_cluster_config(properties), properties.username, factory)
