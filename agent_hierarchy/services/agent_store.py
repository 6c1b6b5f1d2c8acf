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
"""Read access to the agents known to the system of record."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

import structlog
import yaml

from agent_hierarchy.schemas import PersistedAgent
from agent_hierarchy.types import SourceId
from agent_hierarchy.utils.errors import SourceUnavailableError

logger = structlog.get_logger(__name__)


class AgentStore(Protocol):
    async def list_agents(self) -> list[PersistedAgent]: ...


class StaticAgentStore:
    """Agent store serving a fixed list of agents, for example an exported agents file."""

    def __init__(self, agents: Iterable[PersistedAgent | dict[str, Any]] = ()) -> None:
        self._agents = [PersistedAgent.model_validate(agent) for agent in agents]

    @classmethod
    def from_file(cls, path: Path) -> "StaticAgentStore":
        """Load agents from a JSON or YAML file holding a list of agent records."""
        try:
            with open(path) as stream:
                rows = yaml.safe_load(stream)
        except (OSError, yaml.YAMLError) as exc:
            raise SourceUnavailableError(SourceId.DB_AGENTS, f"Failed to load agents file {path}", exc) from exc

        if not isinstance(rows, list):
            raise SourceUnavailableError(SourceId.DB_AGENTS, f"Agents file {path} does not hold a list")
        logger.debug("Loaded agents file", path=str(path), count=len(rows))
        return cls(row for row in rows if isinstance(row, dict) and isinstance(row.get("id"), str))

    async def list_agents(self) -> list[PersistedAgent]:
        return [agent.model_copy() for agent in self._agents]
