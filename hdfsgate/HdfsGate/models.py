"""
HdfsGate Pydantic models.

Defines connection properties, cluster configurations, the path policy,
and the records returned by file operations.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, FrozenSet, Tuple, Union, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_BLACKLIST: FrozenSet[str] = frozenset({"hbase", "kylin", "tmp", "user", "one"})

FAILOVER_PROXY_PROVIDER = (
    "org.apache.hadoop.hdfs.server.namenode.ha.ConfiguredFailoverProxyProvider"
)


class HdfsProperties(BaseModel):
    """Declarative connection settings, as read from configuration."""
    path: Optional[str] = Field(default=None, description="Single-namenode endpoint URI")
    username: Optional[str] = Field(default=None, description="User for filesystem operations")
    is_ha: bool = Field(default=False, description="Use the high-availability branch")
    ha_path: Optional[str] = Field(default=None, description="Logical HA endpoint (hdfs://<alias>)")
    ha_cluster_alias: Optional[str] = Field(default=None, description="Nameservice identifier")
    ha_name_nodes: Optional[str] = Field(default=None, description="Comma-separated namenode ids")
    ha_rpc_address1: Optional[str] = Field(default=None, description="RPC host:port of namenode 1")
    ha_rpc_address2: Optional[str] = Field(default=None, description="RPC host:port of namenode 2")
    blacklist: List[str] = Field(default_factory=lambda: sorted(DEFAULT_BLACKLIST))

    @classmethod
    def from_config(cls, manager) -> "HdfsProperties":
        """Build properties from a ConfigManager."""
        return cls(
            path=manager.get("HDFS_PATH"),
            username=manager.get("HDFS_USERNAME"),
            is_ha=bool(manager.get("HDFS_IS_HA", False)),
            ha_path=manager.get("HDFS_HA_PATH"),
            ha_cluster_alias=manager.get("HDFS_HA_CLUSTER_ALIAS"),
            ha_name_nodes=manager.get("HDFS_HA_NAME_NODES"),
            ha_rpc_address1=manager.get("HDFS_HA_RPC_ADDRESS1"),
            ha_rpc_address2=manager.get("HDFS_HA_RPC_ADDRESS2"),
            blacklist=manager.get("HDFS_BLACKLIST", sorted(DEFAULT_BLACKLIST)),
        )


class SimpleClusterConfig(BaseModel):
    """A cluster reached through a single namenode."""
    model_config = ConfigDict(frozen=True)

    mode: Literal["simple"] = "simple"
    endpoint_uri: str

    def to_hadoop_conf(self) -> Dict[str, str]:
        """Hadoop configuration entries for this cluster."""
        return {"fs.defaultFS": self.endpoint_uri}


class HighAvailabilityClusterConfig(BaseModel):
    """A nameservice backed by two namenodes with client-side failover."""
    model_config = ConfigDict(frozen=True)

    mode: Literal["ha"] = "ha"
    endpoint_uri: str
    cluster_alias: str
    namenode_ids: Tuple[str, str]
    rpc_address1: str
    rpc_address2: str

    @property
    def rpc_addresses(self) -> Dict[str, str]:
        """Namenode id -> RPC address, paired positionally."""
        return {
            self.namenode_ids[0]: self.rpc_address1,
            self.namenode_ids[1]: self.rpc_address2,
        }

    def to_hadoop_conf(self) -> Dict[str, str]:
        """Hadoop configuration entries for this nameservice."""
        alias = self.cluster_alias
        conf = {
            "fs.defaultFS": self.endpoint_uri,
            "dfs.nameservices": alias,
            f"dfs.ha.namenodes.{alias}": ",".join(self.namenode_ids),
            f"dfs.client.failover.proxy.provider.{alias}": FAILOVER_PROXY_PROVIDER,
        }
        for namenode_id, address in self.rpc_addresses.items():
            conf[f"dfs.namenode.rpc-address.{alias}.{namenode_id}"] = address
        return conf


ClusterConfig = Union[SimpleClusterConfig, HighAvailabilityClusterConfig]


class PathPolicy(BaseModel):
    """Reserved top-level directories that mutating operations may not touch."""
    model_config = ConfigDict(frozen=True)

    blacklist: FrozenSet[str] = Field(default=DEFAULT_BLACKLIST)

    @field_validator("blacklist", mode="before")
    @classmethod
    def _clean_entries(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(v.strip() for v in value if v and v.strip())

    def reserved_names(self) -> List[str]:
        """Blacklist entries in a stable order, for messages."""
        return sorted(self.blacklist)


class RemoteFileStatus(BaseModel):
    """Status of a path as reported by the filesystem client."""
    path: str
    length: int = 0
    is_directory: bool = False
    replication: int = 0
    block_size: int = 0
    modification_time: Optional[datetime] = None
    owner: Optional[str] = None
    group: Optional[str] = None
    permission: Optional[str] = None

    @property
    def name(self) -> str:
        """Last component of the path."""
        stripped = self.path.rstrip("/")
        return stripped.rsplit("/", 1)[-1] if stripped else "/"

    def summary(self) -> str:
        """Render the status as a single opaque line."""
        mtime = int(self.modification_time.timestamp() * 1000) if self.modification_time else 0
        return (
            f"FileStatus{{path={self.path}; isDirectory={str(self.is_directory).lower()}; "
            f"length={self.length}; replication={self.replication}; "
            f"blocksize={self.block_size}; modification_time={mtime}; "
            f"owner={self.owner or ''}; group={self.group or ''}; "
            f"permission={self.permission or ''}}}"
        )


class FileEntry(BaseModel):
    """One row of a listing."""
    name: str
    path: str
    status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json", exclude_none=True)


class BlockLocation(BaseModel):
    """Where one block of a file is stored."""
    offset: int
    length: int
    hosts: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list, description="host:port of each datanode")
    topology_paths: List[str] = Field(default_factory=list)
    corrupt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")
