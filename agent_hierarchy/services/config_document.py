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
"""Extract agent relationships from the parsed configuration document."""

from collections.abc import Mapping
from typing import Any

import structlog

from agent_hierarchy.schemas import AgentRelationshipRecord, Capabilities, HierarchyWarning, RelationshipExtraction
from agent_hierarchy.types import SourceId, WarningCode
from agent_hierarchy.utils.identifiers import as_mapping, compact_string, to_string_list

logger = structlog.get_logger(__name__)

PERMISSION_FLAGS = {
    "delegate": "can_delegate",
    "message": "can_send_messages",
    "exec": "can_execute_code",
    "write": "can_modify_files",
}


def _agents_section(root: Mapping[str, Any]) -> Mapping[str, Any] | None:
    if "agents" in root:
        return as_mapping(root["agents"])
    # A bare agent map without the `agents` wrapper
    return root or None


def _capabilities(permissions: Mapping[str, Any] | None) -> Capabilities:
    permissions = permissions or {}
    return Capabilities(
        **{name: permissions.get(flag) is True for name, flag in PERMISSION_FLAGS.items()},
    )


def extract_config_document_hierarchy(parsed: Any) -> RelationshipExtraction:
    """Turn a parsed configuration document into relationship records.

    Entries that are not mappings, or that have a blank key, are skipped without a warning; partially broken
    documents are expected. Only a document that has no usable agents section at all is reported.

    Args:
        parsed: the configuration document as loaded by the YAML parser.

    Returns:
        One record per agent key, in document order, plus document level warnings.

    """
    root = as_mapping(parsed)
    if root is None:
        return RelationshipExtraction(
            warnings=[
                HierarchyWarning(
                    code=WarningCode.PARSE_ERROR,
                    source=SourceId.CONFIG_DOCUMENT,
                    message="Configuration document root is not a mapping",
                )
            ]
        )

    agents_section = _agents_section(root)
    if agents_section is None:
        return RelationshipExtraction(
            warnings=[
                HierarchyWarning(
                    code=WarningCode.INVALID_RELATION,
                    source=SourceId.CONFIG_DOCUMENT,
                    message="No agents section found in configuration document",
                )
            ]
        )

    records = []
    for raw_id, raw_agent in agents_section.items():
        agent_id = compact_string(raw_id)
        agent = as_mapping(raw_agent)
        if agent_id is None or agent is None:
            logger.debug("Skipping malformed agent entry", agent=str(raw_id))
            continue

        records.append(
            AgentRelationshipRecord(
                id=agent_id,
                label=compact_string(agent.get("name")),
                role=compact_string(agent.get("role")),
                reports_to=compact_string(agent.get("reports_to")),
                delegates_to=to_string_list(agent.get("delegates_to")),
                receives_from=to_string_list(agent.get("receives_from")),
                capabilities=_capabilities(as_mapping(agent.get("permissions"))),
            )
        )

    return RelationshipExtraction(agents=records)
