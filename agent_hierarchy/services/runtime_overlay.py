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

from agent_hierarchy.schemas import HierarchyWarning, ToolOverlayExtraction, ToolOverlayRecord
from agent_hierarchy.types import SourceId, WarningCode
from agent_hierarchy.utils.identifiers import as_mapping, compact_string, to_string_list


def read_tool_lists(raw_tools: Any) -> dict[str, Any]:
    """Read the allow/deny lists and exec security mode from an agent's `tools` block."""
    tools = as_mapping(raw_tools) or {}
    exec_settings = as_mapping(tools.get("exec")) or {}
    return {
        "allow": to_string_list(tools.get("allow")),
        "deny": to_string_list(tools.get("deny")),
        "exec_security": compact_string(exec_settings.get("security")),
    }


def extract_runtime_tool_overlay(data: Any) -> ToolOverlayExtraction:
    """Turn the runtime agents list snapshot into tool overlay records.

    Rows are passed through in snapshot order; rows without an id are skipped.
    """
    if not isinstance(data, list):
        return ToolOverlayExtraction(
            warnings=[
                HierarchyWarning(
                    code=WarningCode.PARSE_ERROR,
                    source=SourceId.RUNTIME_AGENTS_LIST,
                    message="Runtime agents list payload is not a list",
                )
            ]
        )

    records = []
    for row in data:
        item = as_mapping(row)
        agent_id = compact_string(item.get("id")) if item else None
        if item is None or agent_id is None:
            continue

        identity = as_mapping(item.get("identity")) or {}
        records.append(
            ToolOverlayRecord(
                id=agent_id,
                label=compact_string(item.get("name")) or compact_string(identity.get("name")),
                **read_tool_lists(item.get("tools")),
            )
        )

    return ToolOverlayExtraction(agents=records)
