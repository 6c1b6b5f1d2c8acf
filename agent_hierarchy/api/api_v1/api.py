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

"""Module that implements the hierarchy API routes."""

from fastapi.routing import APIRouter

from agent_hierarchy.api.api_v1.endpoints import health, hierarchy

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Core"])
api_router.include_router(hierarchy.router, prefix="/agents", tags=["Core", "Agents"])
