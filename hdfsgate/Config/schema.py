"""
Settings understood by hdfsgate.

Each ConfigField names an HDFS_* key, its type, its default and when it is
required. ``depends_on`` and ``required_unless`` tie the cluster keys to the
HDFS_IS_HA switch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ConfigType(Enum):
    STRING = "string"
    URL = "url"
    BOOLEAN = "boolean"
    LIST = "list"          # comma-separated in env files


class ConfigCategory(Enum):
    CLUSTER = "cluster"
    HIGH_AVAILABILITY = "high_availability"
    POLICY = "policy"
    LOGGING = "logging"


@dataclass
class ConfigField:
    """One configurable key."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    required: bool = False
    default: Any = None
    env_var: Optional[str] = None          # defaults to key
    validation: Optional[str] = None       # regex the value must match
    options: Optional[List[str]] = None
    depends_on: Optional[str] = None       # required while this switch is on
    required_unless: Optional[str] = None  # required while this switch is off

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


DEFAULT_BLACKLIST = ["hbase", "kylin", "tmp", "user", "one"]


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Cluster ===
    ConfigField(
        key="HDFS_PATH",
        description="Single-namenode endpoint URI (used when HA is disabled)",
        config_type=ConfigType.URL,
        category=ConfigCategory.CLUSTER,
        validation=r"^[a-zA-Z][a-zA-Z0-9+.-]*://.+",
        required_unless="HDFS_IS_HA",
    ),
    ConfigField(
        key="HDFS_USERNAME",
        description="User name for filesystem operations",
        config_type=ConfigType.STRING,
        category=ConfigCategory.CLUSTER,
    ),
    ConfigField(
        key="HDFS_IS_HA",
        description="Connect to a high-availability cluster with two namenodes",
        config_type=ConfigType.BOOLEAN,
        category=ConfigCategory.CLUSTER,
        default=False,
    ),

    # === High availability ===
    ConfigField(
        key="HDFS_HA_PATH",
        description="Logical HA endpoint URI (hdfs://<cluster alias>)",
        config_type=ConfigType.URL,
        category=ConfigCategory.HIGH_AVAILABILITY,
        validation=r"^[a-zA-Z][a-zA-Z0-9+.-]*://.+",
        depends_on="HDFS_IS_HA",
    ),
    ConfigField(
        key="HDFS_HA_CLUSTER_ALIAS",
        description="Nameservice identifier of the HA cluster",
        config_type=ConfigType.STRING,
        category=ConfigCategory.HIGH_AVAILABILITY,
        depends_on="HDFS_IS_HA",
    ),
    ConfigField(
        key="HDFS_HA_NAME_NODES",
        description="Comma-separated pair of namenode identifiers (e.g. nn1,nn2)",
        config_type=ConfigType.STRING,
        category=ConfigCategory.HIGH_AVAILABILITY,
        validation=r"^\s*([^,\s]+)\s*,\s*(?!\1\s*$)[^,\s]+\s*$",
        depends_on="HDFS_IS_HA",
    ),
    ConfigField(
        key="HDFS_HA_RPC_ADDRESS1",
        description="RPC host:port of the first namenode",
        config_type=ConfigType.STRING,
        category=ConfigCategory.HIGH_AVAILABILITY,
        validation=r"^[^:]+:\d+$",
        depends_on="HDFS_IS_HA",
    ),
    ConfigField(
        key="HDFS_HA_RPC_ADDRESS2",
        description="RPC host:port of the second namenode",
        config_type=ConfigType.STRING,
        category=ConfigCategory.HIGH_AVAILABILITY,
        validation=r"^[^:]+:\d+$",
        depends_on="HDFS_IS_HA",
    ),

    # === Policy ===
    ConfigField(
        key="HDFS_BLACKLIST",
        description="Top-level directories that may not be modified",
        config_type=ConfigType.LIST,
        category=ConfigCategory.POLICY,
        default=DEFAULT_BLACKLIST,
    ),

    # === Logging ===
    ConfigField(
        key="HDFS_LOG_LEVEL",
        description="Log level for the hdfsgate logger tree",
        config_type=ConfigType.STRING,
        category=ConfigCategory.LOGGING,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    ),
]


_BY_KEY = {field.key: field for field in CONFIG_SCHEMA}


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    return _BY_KEY.get(key)


def get_schema_by_category(category: ConfigCategory) -> List[ConfigField]:
    return [field for field in CONFIG_SCHEMA if field.category == category]


def schema_to_dict() -> dict:
    """Schema grouped by category value, for documentation."""
    return {
        category.value: [
            {
                "key": field.key,
                "env_var": field.env_var,
                "description": field.description,
                "type": field.config_type.value,
                "default": field.default,
                "options": field.options,
                "depends_on": field.depends_on,
                "required_unless": field.required_unless,
            }
            for field in get_schema_by_category(category)
        ]
        for category in ConfigCategory
    }
