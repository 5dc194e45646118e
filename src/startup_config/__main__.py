from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

import yaml

from startup_config import __version__
from startup_config.config import LoadFailure, load_settings
from startup_config.config.sources import build_command_parser
from startup_config.logging import init_logging
from startup_config.node import NodeSettings, build_node_schema

logger = logging.getLogger(__name__)

DOTENV_PATH = ".env"


def _print_settings(settings: NodeSettings) -> None:
    data = settings.model_dump(mode="json", exclude={"help", "settings", "version"})
    sys.stdout.write(yaml.safe_dump(data, sort_keys=False))


def main(argv: Optional[Sequence[str]] = None) -> int:
    schema = build_node_schema()
    result = load_settings(
        schema,
        sys.argv[1:] if argv is None else argv,
        dotenv_path=DOTENV_PATH,
    )
    if isinstance(result, LoadFailure):
        sys.stderr.write(f"{schema.program}: {result.message}\n")
        return 1

    settings = result.settings
    assert isinstance(settings, NodeSettings)
    if settings.help:
        sys.stdout.write(build_command_parser(schema).format_help())
        return 0
    if settings.version:
        sys.stdout.write(f"{__version__}\n")
        return 0
    if settings.settings:
        _print_settings(settings)
        return 0

    try:
        init_logging(settings.logging)
    except ValueError as exc:
        sys.stderr.write(f"{schema.program}: {exc}\n")
        return 1

    if result.loaded_file:
        logger.info("app.config_loaded path=%s", result.config_path)
    else:
        logger.info("app.config_defaults reason=no_file")
    logger.info(
        "app.settings_resolved threads=%s database=%s query_endpoint=%s",
        settings.network.threads,
        settings.database.directory,
        settings.server.query_endpoint,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
