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
"""Intermediate shapes produced by the source extractors.

Extractors validate and coerce their raw input into these models, so the graph builder never handles untyped data.
"""

from pydantic import Field

from agent_hierarchy.schemas.base import HierarchyBaseModel
from agent_hierarchy.schemas.hierarchy import Capabilities, HierarchyWarning


class AgentRelationshipRecord(HierarchyBaseModel):
    id: str
    reports_to: str | None = None
    delegates_to: list[str] = Field(default_factory=list)
    receives_from: list[str] = Field(default_factory=list)
    capabilities: Capabilities = Field(default_factory=Capabilities)
    label: str | None = None
    role: str | None = None


class RelationshipExtraction(HierarchyBaseModel):
    agents: list[AgentRelationshipRecord] = Field(default_factory=list)
    warnings: list[HierarchyWarning] = Field(default_factory=list)


class ToolOverlayRecord(HierarchyBaseModel):
    id: str
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    exec_security: str | None = None
    # Only set by the legacy overlay, where the global agent-to-agent block decides messaging
    message: bool | None = None
    label: str | None = None


class ToolOverlayExtraction(HierarchyBaseModel):
    agents: list[ToolOverlayRecord] = Field(default_factory=list)
    warnings: list[HierarchyWarning] = Field(default_factory=list)


class LegacyOverlayExtraction(ToolOverlayExtraction):
    messaging_enabled: bool = True
    messaging_allow: list[str] = Field(default_factory=list)


class PersistedAgent(HierarchyBaseModel):
    id: str
    runtime_agent_id: str | None = None
    slug: str | None = None
    name: str | None = None
    display_name: str | None = None
    role: str | None = None
    station: str | None = None
    status: str | None = None
    kind: str | None = None


class FreeTextDocument(HierarchyBaseModel):
    path: str
    content: str
