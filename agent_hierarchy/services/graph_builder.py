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
"""Build the canonical agent hierarchy graph.

The builder is a pure function of its inputs. It never raises on malformed data; anything it cannot use ends up as a
warning in `meta.warnings`. Output ordering only depends on content: nodes are sorted by key, edges by
(from, to, type) and warnings by (code, node, source, message).
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from agent_hierarchy.schemas import (
    AgentRelationshipRecord,
    Capabilities,
    GraphEdge,
    GraphNode,
    HierarchyGraph,
    HierarchyMeta,
    HierarchyWarning,
    LegacyOverlayExtraction,
    PersistedAgent,
    RelationshipExtraction,
    SourceStatus,
    ToolOverlayExtraction,
    ToolOverlayRecord,
    ToolPolicy,
)
from agent_hierarchy.services.capabilities import (
    CapabilityResolver,
    declared_capabilities,
    overlay_capabilities,
    resolve_capabilities,
)
from agent_hierarchy.types import (
    CapabilityName,
    EdgeConfidence,
    EdgeType,
    NodeKind,
    SourceId,
    ToolPolicySource,
    WarningCode,
)
from agent_hierarchy.utils.identifiers import compact_string, normalize_identifier, unique_identifiers

logger = structlog.get_logger(__name__)

DEFAULT_RELATIONSHIP_PRECEDENCE = (SourceId.CONFIG_DOCUMENT, SourceId.FREE_TEXT_DOCUMENTS)

# Sources whose relationship records carry permission flags
CAPABILITY_SOURCES = frozenset({SourceId.CONFIG_DOCUMENT})


@dataclass
class MergedRelationship:
    """A relationship record merged from all relationship sources, remembering which source filled each field."""

    record: AgentRelationshipRecord
    sources: dict[str, SourceId]


def merge_relationship_records(
    extractions: Iterable[tuple[SourceId, Iterable[AgentRelationshipRecord]]],
    key_for: Callable[[str | None], str] = normalize_identifier,
) -> dict[str, MergedRelationship]:
    """Merge relationship records by agent key.

    Sources are consulted in the given order. The first source to declare an agent sets its spelling; every later
    source only fills fields that are still empty. Records of one source that resolve to the same agent are combined:
    their target lists are joined and their permission flags are or-ed, so the result does not depend on the order
    of those records. Capabilities come from the first source that carries permission flags.

    Args:
        extractions: pairs of source and its records, in precedence order.
        key_for: maps a raw id to its agent key, so aliases of one agent merge into one record.

    """
    merged: dict[str, MergedRelationship] = {}
    for source, records in extractions:
        for record in records:
            key = key_for(record.id)
            if not key:
                continue
            if key not in merged:
                sources = {"id": source}
                sources.update(
                    (name, source)
                    for name in ("reports_to", "delegates_to", "receives_from")
                    if getattr(record, name)
                )
                if source in CAPABILITY_SOURCES:
                    sources["capabilities"] = source
                else:
                    record = record.model_copy(update={"capabilities": Capabilities()})
                merged[key] = MergedRelationship(record=record, sources=sources)
                continue

            existing = merged[key]
            update: dict = {}
            for name in ("reports_to", "label", "role"):
                if not getattr(existing.record, name) and getattr(record, name):
                    update[name] = getattr(record, name)
                    existing.sources[name] = source
            for name in ("delegates_to", "receives_from"):
                values = getattr(record, name)
                if values and existing.sources.get(name, source) == source:
                    update[name] = unique_identifiers([*getattr(existing.record, name), *values])
                    existing.sources[name] = source
            if source in CAPABILITY_SOURCES:
                if "capabilities" not in existing.sources:
                    update["capabilities"] = record.capabilities
                    existing.sources["capabilities"] = source
                elif existing.sources["capabilities"] == source:
                    current = existing.record.capabilities
                    update["capabilities"] = Capabilities(
                        **{
                            name: getattr(current, name) or getattr(record.capabilities, name)
                            for name in Capabilities.model_fields
                        }
                    )
            if update:
                existing.record = existing.record.model_copy(update=update)
    return merged


@dataclass
class _NodeDraft:
    key: str
    display_id: str
    kind: NodeKind = NodeKind.EXTERNAL
    label: str | None = None
    role: str | None = None
    station: str | None = None
    status: str | None = None
    agent_kind: str | None = None
    db_agent_id: str | None = None
    runtime_agent_id: str | None = None
    tool_policy: ToolPolicy | None = None
    capabilities: Capabilities = field(default_factory=Capabilities)
    sources: set[SourceId] = field(default_factory=set)


@dataclass
class _EdgeDraft:
    type: EdgeType
    from_key: str
    to_key: str
    confidence: EdgeConfidence
    source: SourceId
    sources: set[SourceId]


class _GraphDraft:
    """Mutable state of a single build. Never shared between builds."""

    def __init__(self) -> None:
        self.aliases: dict[str, str] = {}
        self.nodes: dict[str, _NodeDraft] = {}
        self.edges: dict[tuple[str, str, EdgeType], _EdgeDraft] = {}
        self.warnings: dict[tuple, HierarchyWarning] = {}

    def warn(self, warning: HierarchyWarning) -> None:
        identity = (warning.code, warning.source, warning.related_node_id, warning.message)
        self.warnings.setdefault(identity, warning)

    def register_alias(self, alias: str | None, key: str) -> None:
        normalized = normalize_identifier(alias)
        if normalized:
            self.aliases.setdefault(normalized, key)

    def key_for(self, raw_id: str | None) -> str:
        normalized = normalize_identifier(raw_id)
        return self.aliases.get(normalized, normalized)

    def ensure_node(self, raw_id: str, source: SourceId, agent: bool = False) -> _NodeDraft:
        key = self.key_for(raw_id)
        node = self.nodes.get(key)
        if node is None:
            node = self.nodes[key] = _NodeDraft(key=key, display_id=raw_id.strip())
        if agent:
            node.kind = NodeKind.AGENT
            self.register_alias(raw_id, key)
        node.sources.add(source)
        return node

    def add_edge(
        self,
        edge_type: EdgeType,
        from_id: str | None,
        to_id: str | None,
        source: SourceId,
        confidence: EdgeConfidence = EdgeConfidence.HIGH,
    ) -> None:
        if not normalize_identifier(from_id) or not normalize_identifier(to_id):
            self.warn(
                HierarchyWarning(
                    code=WarningCode.INVALID_RELATION,
                    source=source,
                    message=f"Dropped invalid {edge_type.value} relation with empty endpoint",
                )
            )
            return

        from_node = self.ensure_node(from_id, source)  # type: ignore[arg-type]
        to_node = self.ensure_node(to_id, source)  # type: ignore[arg-type]
        if from_node.key == to_node.key:
            self.warn(
                HierarchyWarning(
                    code=WarningCode.SELF_LOOP_DROPPED,
                    source=source,
                    related_node_id=from_node.key,
                    message=f"Dropped {edge_type.value} self-loop on {from_node.display_id}",
                )
            )
            return

        edge_key = (from_node.key, to_node.key, edge_type)
        existing = self.edges.get(edge_key)
        if existing is not None:
            existing.sources.add(source)
            if existing.confidence != EdgeConfidence.HIGH and confidence == EdgeConfidence.HIGH:
                existing.confidence = confidence
                existing.source = source
            return

        self.edges[edge_key] = _EdgeDraft(
            type=edge_type,
            from_key=from_node.key,
            to_key=to_node.key,
            confidence=confidence,
            source=source,
            sources={source},
        )

    def structural_targets(self, key: str) -> list[str]:
        """Return the keys a node delegates to or receives from, over edges that survived self-loop removal."""
        targets = {
            edge.to_key if edge.type == EdgeType.DELEGATES_TO else edge.from_key
            for edge in self.edges.values()
            if (edge.type == EdgeType.DELEGATES_TO and edge.from_key == key)
            or (edge.type == EdgeType.RECEIVES_FROM and edge.to_key == key)
        }
        return sorted(targets)


def _add_persisted_agents(draft: _GraphDraft, persisted_agents: Iterable[PersistedAgent]) -> None:
    for agent in persisted_agents:
        primary_id = compact_string(agent.runtime_agent_id) or compact_string(agent.slug) or compact_string(agent.id)
        if primary_id is None:
            continue
        key = normalize_identifier(primary_id)
        for alias in (primary_id, agent.id, agent.runtime_agent_id, agent.slug, agent.name, agent.display_name):
            draft.register_alias(alias, key)

        node = draft.ensure_node(primary_id, SourceId.DB_AGENTS, agent=True)
        node.label = node.label or compact_string(agent.display_name) or compact_string(agent.name)
        node.db_agent_id = node.db_agent_id or agent.id
        node.runtime_agent_id = node.runtime_agent_id or compact_string(agent.runtime_agent_id)
        node.role = node.role or compact_string(agent.role)
        node.station = node.station or compact_string(agent.station)
        node.status = node.status or compact_string(agent.status)
        node.agent_kind = node.agent_kind or compact_string(agent.kind)


def _overlay_records_by_key(draft: _GraphDraft, records: Iterable[ToolOverlayRecord]) -> dict[str, ToolOverlayRecord]:
    by_key: dict[str, ToolOverlayRecord] = {}
    for record in records:
        key = draft.key_for(record.id)
        if key:
            by_key.setdefault(key, record)
    return by_key


def build_agent_hierarchy_graph(
    *,
    source_status: SourceStatus,
    persisted_agents: Sequence[PersistedAgent] = (),
    config_document: RelationshipExtraction | None = None,
    free_text: RelationshipExtraction | None = None,
    runtime: ToolOverlayExtraction | None = None,
    legacy: LegacyOverlayExtraction | None = None,
    initial_warnings: Iterable[HierarchyWarning] = (),
    relationship_precedence: Sequence[SourceId] = DEFAULT_RELATIONSHIP_PRECEDENCE,
) -> HierarchyGraph:
    """Reconcile all hierarchy sources into one graph.

    Capabilities are resolved in strict priority order: the runtime overlay (when the runtime source is available),
    then the legacy overlay (only when the runtime source is unavailable), then the agent's own relationship record,
    then all false. `delegate` is never decided by an overlay.

    Args:
        source_status: availability of every source; echoed back in `meta.sources`.
        persisted_agents: agents known to the system of record.
        config_document: records from the configuration document extractor.
        free_text: records from the free text extractor.
        runtime: the runtime tool overlay, if it was fetched.
        legacy: the legacy tool overlay, if it was read.
        initial_warnings: warnings collected while fetching the sources.
        relationship_precedence: order in which relationship sources fill a field, first wins.

    Returns:
        The hierarchy graph. Two calls with equal inputs return equal graphs.

    """
    draft = _GraphDraft()
    relationship_sources = {
        SourceId.CONFIG_DOCUMENT: config_document,
        SourceId.FREE_TEXT_DOCUMENTS: free_text,
    }

    for warning in initial_warnings:
        draft.warn(warning)
    for extraction in (config_document, free_text, runtime, legacy):
        for warning in extraction.warnings if extraction else ():
            draft.warn(warning)

    _add_persisted_agents(draft, persisted_agents)

    merged = merge_relationship_records(
        (
            (source, relationship_sources[source].agents)  # type: ignore[union-attr]
            for source in relationship_precedence
            if relationship_sources.get(source) is not None
        ),
        key_for=draft.key_for,
    )
    for relationship in merged.values():
        record = relationship.record
        node = draft.ensure_node(record.id, relationship.sources["id"], agent=True)
        node.label = node.label or record.label
        node.role = node.role or record.role

    runtime_active = runtime is not None and source_status.runtime.available
    legacy_active = not source_status.runtime.available and legacy is not None and source_status.fallback.available
    overlay_source, overlay_policy_source, overlay = SourceId.RUNTIME_AGENTS_LIST, ToolPolicySource.RUNTIME, runtime
    if legacy_active:
        overlay_source, overlay_policy_source, overlay = (
            SourceId.LEGACY_TEMPLATE_POLICY,
            ToolPolicySource.FALLBACK,
            legacy,
        )

    overlay_by_key: dict[str, ToolOverlayRecord] = {}
    if overlay is not None and (runtime_active or legacy_active):
        overlay_by_key = _overlay_records_by_key(draft, overlay.agents)
        for overlay_record in overlay_by_key.values():
            node = draft.ensure_node(overlay_record.id, overlay_source, agent=True)
            node.label = node.label or overlay_record.label
            if overlay_record.allow or overlay_record.deny or overlay_record.exec_security:
                node.tool_policy = ToolPolicy(
                    allow=list(overlay_record.allow),
                    deny=list(overlay_record.deny),
                    exec_security=overlay_record.exec_security,
                    source=overlay_policy_source,
                )

    for relationship in merged.values():
        record, sources = relationship.record, relationship.sources
        if record.reports_to:
            draft.add_edge(EdgeType.REPORTS_TO, record.id, record.reports_to, sources["reports_to"])
        for target in record.delegates_to:
            draft.add_edge(EdgeType.DELEGATES_TO, record.id, target, sources["delegates_to"])
        for sender in record.receives_from:
            draft.add_edge(EdgeType.RECEIVES_FROM, sender, record.id, sources["receives_from"])

    def _from_relationship(key: str) -> dict:
        relationship = merged.get(key)
        if relationship is None or "capabilities" not in relationship.sources:
            return {}
        return declared_capabilities(relationship.record.capabilities)

    def _from_overlay(key: str) -> dict:
        overlay_record = overlay_by_key.get(key)
        return dict(overlay_capabilities(overlay_record)) if overlay_record else {}

    resolvers = [
        CapabilityResolver(SourceId.RUNTIME_AGENTS_LIST, runtime_active, _from_overlay),
        CapabilityResolver(SourceId.LEGACY_TEMPLATE_POLICY, legacy_active, _from_overlay),
        CapabilityResolver(SourceId.CONFIG_DOCUMENT, True, _from_relationship),
    ]

    for key in sorted(draft.nodes):
        node = draft.nodes[key]
        if node.kind != NodeKind.AGENT:
            continue
        node.capabilities, decided_by = resolve_capabilities(key, resolvers)
        if not node.capabilities.message:
            continue

        message_source = decided_by.get(CapabilityName.MESSAGE, SourceId.CONFIG_DOCUMENT)
        targets = draft.structural_targets(key)
        if not targets:
            draft.warn(
                HierarchyWarning(
                    code=WarningCode.MESSAGING_TARGETS_AMBIGUOUS,
                    source=message_source,
                    related_node_id=key,
                    message=f"Messaging capability inferred for {node.display_id}, but exact target set is unknown",
                )
            )
            continue
        for target in targets:
            draft.add_edge(
                EdgeType.CAN_MESSAGE,
                node.display_id,
                draft.nodes[target].display_id,
                message_source,
                EdgeConfidence.MEDIUM,
            )

    graph = HierarchyGraph(
        nodes=[_finish_node(draft.nodes[key]) for key in sorted(draft.nodes)],
        edges=[_finish_edge(draft, draft.edges[edge_key]) for edge_key in sorted(draft.edges)],
        meta=HierarchyMeta(
            warnings=sorted(
                draft.warnings.values(),
                key=lambda w: (w.code, w.related_node_id or "", w.source or "", w.message),
            ),
            sources=source_status.model_copy(deep=True),
        ),
    )
    logger.debug(
        "Built agent hierarchy graph",
        nodes=len(graph.nodes),
        edges=len(graph.edges),
        warnings=len(graph.meta.warnings),
    )
    return graph


def _finish_node(node: _NodeDraft) -> GraphNode:
    return GraphNode(
        id=node.key,
        display_id=node.display_id,
        kind=node.kind,
        label=node.label or node.display_id,
        role=node.role,
        station=node.station,
        status=node.status,
        agent_kind=node.agent_kind,
        db_agent_id=node.db_agent_id,
        runtime_agent_id=node.runtime_agent_id,
        capabilities=node.capabilities if node.kind == NodeKind.AGENT else Capabilities(),
        tool_policy=node.tool_policy,
        sources=sorted(node.sources),
    )


def _finish_edge(draft: _GraphDraft, edge: _EdgeDraft) -> GraphEdge:
    return GraphEdge(
        id=f"{edge.type.value}:{edge.from_key}->{edge.to_key}",
        type=edge.type,
        from_=draft.nodes[edge.from_key].display_id,
        to=draft.nodes[edge.to_key].display_id,
        from_key=edge.from_key,
        to_key=edge.to_key,
        confidence=edge.confidence,
        source=edge.source,
        sources=sorted(edge.sources),
    )
