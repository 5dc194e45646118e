from __future__ import annotations

from pathlib import Path

from startup_config.config.models import OptionSpec, PositionalSpec, Schema
from startup_config.node.settings import NodeSettings

ENV_PREFIX = "NODE_"

_CONFIG = OptionSpec(
    "config",
    Path,
    flags=("-c", "--config"),
    help="Path to the configuration file. Defaults apply when the file is missing.",
)

COMMAND_LINE_OPTIONS = (
    _CONFIG,
    OptionSpec("help", bool, flags=("-h", "--help"), help="Show this help and exit."),
    OptionSpec("settings", bool, flags=("-s", "--settings"), help="Show the effective settings and exit."),
    OptionSpec("version", bool, flags=("-v", "--version"), help="Show the version and exit."),
    OptionSpec("logging.level", flags=("--log-level",), help="Logging level (overrides the file and environment)."),
)

ENVIRONMENT_OPTIONS = (
    _CONFIG,
    OptionSpec("logging.level"),
    OptionSpec("logging.file.path"),
    OptionSpec("network.threads", int),
    OptionSpec("network.peers", multiple=True),
    OptionSpec("database.directory", Path),
    OptionSpec("server.query_endpoint"),
)

FILE_OPTIONS = (
    OptionSpec("logging.level"),
    OptionSpec("logging.file.path"),
    OptionSpec("logging.file.rotation.backup_count", int),
    OptionSpec("network.threads", int),
    OptionSpec("network.inbound_port", int),
    OptionSpec("network.inbound_connections", int),
    OptionSpec("network.outbound_connections", int),
    OptionSpec("network.connect_timeout_seconds", float),
    OptionSpec("network.hosts_file", Path),
    OptionSpec("network.seeds", multiple=True),
    OptionSpec("network.peers", multiple=True),
    OptionSpec("database.directory", Path),
    OptionSpec("server.query_endpoint"),
    OptionSpec("server.heartbeat_endpoint"),
    OptionSpec("server.heartbeat_interval_seconds", int),
    OptionSpec("server.subscription_expiration_minutes", int),
    OptionSpec("server.query_workers", int),
    OptionSpec("server.secure_only", bool),
)


def build_node_schema() -> Schema:
    return Schema(
        settings_model=NodeSettings,
        options=COMMAND_LINE_OPTIONS,
        arguments=(PositionalSpec("config"),),
        environment=ENVIRONMENT_OPTIONS,
        settings=FILE_OPTIONS,
        env_prefix=ENV_PREFIX,
        program="startup-config",
        description="Resolve and show the node server configuration.",
    )
