from __future__ import annotations

import logging
import sys

from startup_config.config import LoadFailure, load_settings
from startup_config.logging import init_logging
from startup_config.node import build_node_schema


def main() -> int:
    result = load_settings(build_node_schema(), ["--config", "examples/node.cfg"])
    if isinstance(result, LoadFailure):
        sys.stderr.write(f"{result.stage.value}: {result.message}\n")
        return 1

    settings = result.settings
    init_logging(settings.logging)

    logger = logging.getLogger("smoke")
    logger.info("Config loaded loaded_file=%s path=%s", result.loaded_file, settings.config)
    logger.info("Logging level=%s", settings.logging.level)
    logger.info("Network threads=%s seeds=%s", settings.network.threads, settings.network.seeds)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
