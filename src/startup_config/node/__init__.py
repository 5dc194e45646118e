"""Option schema and settings model for the node server."""

from startup_config.node.schema import build_node_schema
from startup_config.node.settings import LoggingSettings, NodeSettings

__all__ = ["LoggingSettings", "NodeSettings", "build_node_schema"]
