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

from typing import Any

from agent_hierarchy.schemas import HierarchyWarning, LegacyOverlayExtraction, ToolOverlayRecord
from agent_hierarchy.services.runtime_overlay import read_tool_lists
from agent_hierarchy.types import SourceId, WarningCode
from agent_hierarchy.utils.identifiers import as_mapping, compact_string, normalize_identifier, to_string_list


def extract_legacy_tool_overlay(data: Any) -> LegacyOverlayExtraction:
    """Turn the legacy template configuration into tool overlay records.

    The legacy format decides messaging globally: an agent may message other agents only when
    `tools.agentToAgent.enabled` is not false and its id is in `tools.agentToAgent.allow`. The per-agent tool lists
    only decide the exec and write capabilities.

    Allow-listed ids that have no entry in `agents.list` still get a record, so they are known as agents.

    Args:
        data: the parsed legacy configuration.

    Returns:
        The overlay records plus the global messaging settings.

    """
    root = as_mapping(data)
    if root is None:
        return LegacyOverlayExtraction(
            messaging_enabled=False,
            warnings=[
                HierarchyWarning(
                    code=WarningCode.PARSE_ERROR,
                    source=SourceId.LEGACY_TEMPLATE_POLICY,
                    message="Legacy configuration root is not a mapping",
                )
            ],
        )

    agent_to_agent = as_mapping((as_mapping(root.get("tools")) or {}).get("agentToAgent")) or {}
    enabled = agent_to_agent.get("enabled") is not False
    allow_list = to_string_list(agent_to_agent.get("allow"))
    allowed = {normalize_identifier(agent_id) for agent_id in allow_list}

    raw_list = (as_mapping(root.get("agents")) or {}).get("list")
    records: list[ToolOverlayRecord] = []
    for row in raw_list if isinstance(raw_list, list) else []:
        item = as_mapping(row)
        agent_id = compact_string(item.get("id")) if item else None
        if item is None or agent_id is None:
            continue

        identity = as_mapping(item.get("identity")) or {}
        records.append(
            ToolOverlayRecord(
                id=agent_id,
                label=compact_string(identity.get("name")) or compact_string(item.get("name")),
                message=enabled and normalize_identifier(agent_id) in allowed,
                **read_tool_lists(item.get("tools")),
            )
        )

    listed = {normalize_identifier(record.id) for record in records}
    for agent_id in allow_list:
        key = normalize_identifier(agent_id)
        if key in listed:
            continue
        listed.add(key)
        records.append(ToolOverlayRecord(id=agent_id, message=enabled))

    warnings = []
    if enabled and not allowed:
        warnings.append(
            HierarchyWarning(
                code=WarningCode.MESSAGING_TARGETS_AMBIGUOUS,
                source=SourceId.LEGACY_TEMPLATE_POLICY,
                message="Legacy configuration enables tools.agentToAgent but does not declare an allow list",
            )
        )

    return LegacyOverlayExtraction(
        agents=records,
        warnings=warnings,
        messaging_enabled=enabled,
        messaging_allow=allow_list,
    )
