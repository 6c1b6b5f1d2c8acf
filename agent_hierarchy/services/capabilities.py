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
"""Capability resolution for agent nodes.

Capabilities are decided per capability by an explicit, ordered list of resolvers. The first available resolver that
has an opinion on a capability decides it; the last resolver in the chain always answers `False`.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from agent_hierarchy.schemas import Capabilities, ToolOverlayRecord
from agent_hierarchy.types import CapabilityName, SourceId
from agent_hierarchy.utils.identifiers import normalize_identifier

WILDCARD = "*"

TOOL_TOKENS: dict[CapabilityName, frozenset[str]] = {
    CapabilityName.WRITE: frozenset({"write", "edit", "group:fs", "filesystem"}),
    CapabilityName.EXEC: frozenset({"exec", "run", "group:runtime", "shell", "terminal"}),
    CapabilityName.MESSAGE: frozenset(
        {"message", "messages", "agenttoagent", "group:agenttoagent", "group:messages"}
    ),
}

PartialCapabilities = Mapping[CapabilityName, bool]


def infer_from_tool_lists(allow: Iterable[str], deny: Iterable[str], tokens: frozenset[str]) -> bool | None:
    """Decide a capability from tool allow/deny lists.

    A deny entry wins over an allow entry. `*` matches every capability.

    >>> infer_from_tool_lists(["*"], ["exec"], TOOL_TOKENS[CapabilityName.EXEC])
    False
    >>> infer_from_tool_lists(["shell"], [], TOOL_TOKENS[CapabilityName.EXEC])
    True
    >>> infer_from_tool_lists(["browser"], [], TOOL_TOKENS[CapabilityName.EXEC]) is None
    True

    """
    denied = {normalize_identifier(token) for token in deny}
    if WILDCARD in denied or denied & tokens:
        return False
    allowed = {normalize_identifier(token) for token in allow}
    if WILDCARD in allowed or allowed & tokens:
        return True
    return None


def overlay_capabilities(record: ToolOverlayRecord) -> PartialCapabilities:
    """Return the capabilities a tool overlay record decides.

    Overlays never decide `delegate`. An explicit `message` on the record (the legacy global messaging decision) wins
    over the tool lists, and an exec security mode of `deny` always disables exec.
    """
    decided: dict[CapabilityName, bool] = {}
    for capability, tokens in TOOL_TOKENS.items():
        value = infer_from_tool_lists(record.allow, record.deny, tokens)
        if value is not None:
            decided[capability] = value

    if record.exec_security == "deny":
        decided[CapabilityName.EXEC] = False
    elif record.exec_security and CapabilityName.EXEC not in decided:
        decided[CapabilityName.EXEC] = True

    if record.message is not None:
        decided[CapabilityName.MESSAGE] = record.message
    return decided


def declared_capabilities(capabilities: Capabilities) -> PartialCapabilities:
    return {capability: getattr(capabilities, capability.value) for capability in CapabilityName}


@dataclass(frozen=True)
class CapabilityResolver:
    source: SourceId | None
    available: bool
    resolve: Callable[[str], PartialCapabilities]


def no_capabilities(_key: str) -> PartialCapabilities:
    return dict.fromkeys(CapabilityName, False)


DEFAULT_RESOLVER = CapabilityResolver(source=None, available=True, resolve=no_capabilities)


def resolve_capabilities(
    key: str, resolvers: Sequence[CapabilityResolver]
) -> tuple[Capabilities, dict[CapabilityName, SourceId]]:
    """Resolve the capabilities of one node.

    Args:
        key: the normalized node key.
        resolvers: resolvers in priority order, highest first.

    Returns:
        The resolved capabilities and, per capability, the source that decided it (absent for defaults).

    """
    values: dict[CapabilityName, bool] = {}
    sources: dict[CapabilityName, SourceId] = {}
    for resolver in (*resolvers, DEFAULT_RESOLVER):
        if not resolver.available:
            continue
        for capability, value in resolver.resolve(key).items():
            if capability in values:
                continue
            values[capability] = value
            if resolver.source is not None:
                sources[capability] = resolver.source
        if len(values) == len(CapabilityName):
            break

    return Capabilities(**{capability.value: value for capability, value in values.items()}), sources
