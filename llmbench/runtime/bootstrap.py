# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for llmbench.

The one-time setup before any evaluation work:
  1. Validate the environment (Python version)
  2. Seed the process-wide RNG
  3. Configure logging from the global config

Input generation has its own seeded RNG and doesn't depend on step 2.
Seeding the global one just keeps anything else that reaches for `random`
reproducible too.
"""

import random
from pathlib import Path

from llmbench.config.schema import GlobalConfig
from llmbench.logging.logger import configure_logging, get_logger
from llmbench.runtime.environment import check_minimum_python, get_system_info


def set_deterministic_seed(seed: int) -> None:
    """Seed Python's `random` module."""
    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")
    random.seed(seed)


def bootstrap(config: GlobalConfig) -> None:
    """
    Run the bootstrap sequence. Called once at the start of every CLI command.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file is not None else None
    configure_logging(log_level=config.log_level, log_file=log_file)

    logger = get_logger("llmbench.runtime")
    system_info = get_system_info()
    logger.info(
        "llmbench bootstrap complete",
        extra={
            "seed": config.seed,
            "concurrency": config.concurrency,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "cpu_count": system_info.cpu_count,
        },
    )
