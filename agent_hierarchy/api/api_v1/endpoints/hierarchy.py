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

from http import HTTPStatus

import structlog
from fastapi.requests import Request
from fastapi.routing import APIRouter

from agent_hierarchy.api.error_handling import raise_status
from agent_hierarchy.schemas import AgentHierarchyPayload
from agent_hierarchy.services.agent_store import AgentStore
from agent_hierarchy.services.hierarchy_api import build_agent_hierarchy_api_payload
from agent_hierarchy.services.hierarchy_sources import get_agent_hierarchy_data
from agent_hierarchy.settings import app_settings

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/hierarchy", response_model=AgentHierarchyPayload, response_model_by_alias=True)
async def get_agent_hierarchy(request: Request) -> AgentHierarchyPayload:
    """Return the agent hierarchy graph.

    Source failures are reported in `data.meta`; only an unexpected error while building the graph fails the request.
    """
    agent_store: AgentStore | None = getattr(request.app.state, "agent_store", None)
    settings = getattr(request.app, "base_settings", app_settings)
    try:
        return await build_agent_hierarchy_api_payload(
            lambda: get_agent_hierarchy_data(agent_store=agent_store, settings=settings)
        )
    except Exception:  # noqa: BLE001
        logger.exception("Failed to build agent hierarchy")
        raise_status(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to build agent hierarchy")
