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

from pydantic import Field

from agent_hierarchy.schemas.base import HierarchyBaseModel
from agent_hierarchy.types import EdgeConfidence, EdgeType, NodeKind, SourceId, ToolPolicySource, WarningCode


class HierarchyWarning(HierarchyBaseModel):
    code: WarningCode
    message: str
    source: SourceId | None = None
    related_node_id: str | None = None


class ConfigSourceStatus(HierarchyBaseModel):
    available: bool = False
    path: str = ""
    error: str | None = None


class DocumentsSourceStatus(HierarchyBaseModel):
    available: bool = False
    count: int = 0


class RuntimeSourceStatus(HierarchyBaseModel):
    available: bool = False
    command: str = ""
    error: str | None = None


class FallbackSourceStatus(HierarchyBaseModel):
    available: bool = False
    used: bool = False
    path: str = ""
    error: str | None = None


class DbSourceStatus(HierarchyBaseModel):
    available: bool = False
    count: int = 0


class SourceStatus(HierarchyBaseModel):
    config: ConfigSourceStatus = Field(default_factory=ConfigSourceStatus)
    documents: DocumentsSourceStatus = Field(default_factory=DocumentsSourceStatus)
    runtime: RuntimeSourceStatus = Field(default_factory=RuntimeSourceStatus)
    fallback: FallbackSourceStatus = Field(default_factory=FallbackSourceStatus)
    db: DbSourceStatus = Field(default_factory=DbSourceStatus)


class Capabilities(HierarchyBaseModel):
    delegate: bool = False
    message: bool = False
    exec: bool = False
    write: bool = False


class ToolPolicy(HierarchyBaseModel):
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    exec_security: str | None = None
    source: ToolPolicySource


class GraphNode(HierarchyBaseModel):
    id: str
    display_id: str
    kind: NodeKind
    label: str
    role: str | None = None
    station: str | None = None
    status: str | None = None
    agent_kind: str | None = None
    db_agent_id: str | None = None
    runtime_agent_id: str | None = None
    capabilities: Capabilities = Field(default_factory=Capabilities)
    tool_policy: ToolPolicy | None = None
    sources: list[SourceId] = Field(default_factory=list)


class GraphEdge(HierarchyBaseModel):
    id: str
    type: EdgeType
    from_: str = Field(alias="from")
    to: str
    from_key: str
    to_key: str
    confidence: EdgeConfidence
    source: SourceId
    sources: list[SourceId] = Field(default_factory=list)


class HierarchyMeta(HierarchyBaseModel):
    warnings: list[HierarchyWarning] = Field(default_factory=list)
    sources: SourceStatus


class HierarchyGraph(HierarchyBaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    meta: HierarchyMeta


class AgentHierarchyPayload(HierarchyBaseModel):
    data: HierarchyGraph
