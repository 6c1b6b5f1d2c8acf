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

"""The main application module.

This module contains the `HierarchyCore` class for the `FastAPI` backend that serves the agent hierarchy graph.
"""

from typing import Any

import structlog
from fastapi.applications import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response

from agent_hierarchy import __version__
from agent_hierarchy.api.api_v1.api import api_router
from agent_hierarchy.api.error_handling import ProblemDetailException
from agent_hierarchy.exception_handlers import problem_detail_handler
from agent_hierarchy.log_config import LOGGER_OVERRIDES
from agent_hierarchy.services.agent_store import AgentStore
from agent_hierarchy.settings import AppSettings, app_settings
from nwastdlib.logging import ClearStructlogContextASGIMiddleware, initialise_logging

logger = structlog.get_logger(__name__)


class HierarchyCore(FastAPI):
    def __init__(
        self,
        title: str = "Agent Hierarchy",
        description: str = "Reconciles agent relationship sources into one hierarchy graph.",
        openapi_url: str = "/api/openapi.json",
        docs_url: str = "/api/docs",
        redoc_url: str = "/api/redoc",
        version: str = __version__,
        default_response_class: type[Response] = JSONResponse,
        base_settings: AppSettings = app_settings,
        agent_store: AgentStore | None = None,
        **kwargs: Any,
    ) -> None:
        self.base_settings = base_settings

        super().__init__(
            title=title,
            description=description,
            openapi_url=openapi_url,
            docs_url=docs_url,
            redoc_url=redoc_url,
            version=version,
            default_response_class=default_response_class,
            **kwargs,
        )

        initialise_logging(LOGGER_OVERRIDES)

        self.include_router(api_router, prefix="/api")

        self.add_middleware(ClearStructlogContextASGIMiddleware)
        origins = base_settings.CORS_ORIGINS.split(",")
        self.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=base_settings.CORS_ALLOW_METHODS,
            allow_headers=base_settings.CORS_ALLOW_HEADERS,
        )

        self.add_exception_handler(ProblemDetailException, problem_detail_handler)  # type: ignore[arg-type]

        if agent_store is not None:
            self.register_agent_store(agent_store)

        @self.router.get("/", response_model=str, response_class=JSONResponse, include_in_schema=False)
        def _index() -> str:
            return "Agent hierarchy"

    def register_agent_store(self, agent_store: AgentStore) -> None:
        """Register the system of record for persisted agents.

        Without a registered store the hierarchy is built without persisted agents and the `db` source is reported
        as available with zero agents.

        Args:
            agent_store: Any object implementing `AgentStore`.

        Returns:
            None

        """
        logger.info("Registering agent store", store=type(agent_store).__name__)
        self.state.agent_store = agent_store
