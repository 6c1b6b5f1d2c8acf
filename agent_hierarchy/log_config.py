# Copyright 2019-2025 SURF, GÉANT, ESnet.
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Logging setup shared by the API and the command line interface."""

import logging
import os
import sys

from nwastdlib.logging import initialise_logging


def logger_config(name: str, default_level: str = "INFO") -> tuple[str, dict]:
    """Create config for the given logger with the given loglevel.

    A logger's level can be overruled at deploy time by setting an env-var, for example:
     - Level of logger "agent_hierarchy" is controlled by LOG_LEVEL_AGENT_HIERARCHY
     - Level of logger "uvicorn.access" is controlled by LOG_LEVEL_UVICORN_ACCESS

    >>> logger_config("uvicorn.access", default_level="warning")
    ('uvicorn.access', {'level': 'WARNING', 'propagate': True})

    """
    env_var_name = "LOG_LEVEL_" + name.upper().replace(".", "_")
    effective_level = os.environ.get(env_var_name, default_level).upper()

    # No handler of its own: records propagate to the root logger, which formats them through structlog
    return name, {"level": effective_level, "propagate": True}


LOGGER_OVERRIDES = dict(
    [
        logger_config("agent_hierarchy"),
        logger_config("asyncio", default_level="WARNING"),
        logger_config("httpcore", default_level="WARNING"),
        logger_config("uvicorn"),
        logger_config("uvicorn.access", default_level="WARNING"),
    ]
)


def initialise_cli_logging(verbose: bool = False) -> None:
    """Initialise logging for the command line interface.

    Log records are written to stderr, so that stdout only carries command output (the graph JSON). Only warnings
    are shown unless `verbose` is set.
    """
    initialise_logging(LOGGER_OVERRIDES)
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout:
            handler.setStream(sys.stderr)
    logging.getLogger("agent_hierarchy").setLevel(logging.DEBUG if verbose else logging.WARNING)
