from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 5


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # No file handler is installed when unset.
    path: Optional[str] = None
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)


class NetworkSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    threads: int = 4
    inbound_port: int = 8333
    inbound_connections: int = 8
    outbound_connections: int = 8
    connect_timeout_seconds: float = 5
    hosts_file: Path = Path("hosts.cache")
    seeds: List[str] = Field(
        default_factory=lambda: [
            "seed.bitcoin.sipa.be:8333",
            "dnsseed.bluematt.me:8333",
        ]
    )
    peers: List[str] = Field(default_factory=list)


class DatabaseSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    directory: Path = Path("blockchain")


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    query_endpoint: str = "tcp://*:9091"
    heartbeat_endpoint: str = "tcp://*:9092"
    heartbeat_interval_seconds: int = 5
    subscription_expiration_minutes: int = 10
    query_workers: int = 1
    secure_only: bool = False


class NodeSettings(BaseModel):
    """
    Effective node configuration after applying all precedence rules.

    `config` records the file the settings were read from and is cleared when
    no file was read.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    config: Optional[Path] = None
    help: bool = False
    settings: bool = False
    version: bool = False

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
