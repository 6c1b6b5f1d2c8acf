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

from agent_hierarchy.schemas.hierarchy import (
    AgentHierarchyPayload,
    Capabilities,
    ConfigSourceStatus,
    DbSourceStatus,
    DocumentsSourceStatus,
    FallbackSourceStatus,
    GraphEdge,
    GraphNode,
    HierarchyGraph,
    HierarchyMeta,
    HierarchyWarning,
    RuntimeSourceStatus,
    SourceStatus,
    ToolPolicy,
)
from agent_hierarchy.schemas.sources import (
    AgentRelationshipRecord,
    FreeTextDocument,
    LegacyOverlayExtraction,
    PersistedAgent,
    RelationshipExtraction,
    ToolOverlayExtraction,
    ToolOverlayRecord,
)

__all__ = (
    "AgentHierarchyPayload",
    "AgentRelationshipRecord",
    "Capabilities",
    "ConfigSourceStatus",
    "DbSourceStatus",
    "DocumentsSourceStatus",
    "FallbackSourceStatus",
    "FreeTextDocument",
    "GraphEdge",
    "GraphNode",
    "HierarchyGraph",
    "HierarchyMeta",
    "HierarchyWarning",
    "LegacyOverlayExtraction",
    "PersistedAgent",
    "RelationshipExtraction",
    "RuntimeSourceStatus",
    "SourceStatus",
    "ToolOverlayExtraction",
    "ToolOverlayRecord",
    "ToolPolicy",
)
