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

from pydantic_forms.types import strEnum

__all__ = [
    "CapabilityName",
    "EdgeConfidence",
    "EdgeType",
    "NodeKind",
    "SourceId",
    "ToolPolicySource",
    "WarningCode",
    "strEnum",
]


class NodeKind(strEnum):
    AGENT = "agent"
    EXTERNAL = "external"


class EdgeType(strEnum):
    REPORTS_TO = "reports_to"
    DELEGATES_TO = "delegates_to"
    RECEIVES_FROM = "receives_from"
    CAN_MESSAGE = "can_message"


class EdgeConfidence(strEnum):
    HIGH = "high"
    MEDIUM = "medium"


class CapabilityName(strEnum):
    DELEGATE = "delegate"
    MESSAGE = "message"
    EXEC = "exec"
    WRITE = "write"


class SourceId(strEnum):
    DB_AGENTS = "db_agents"
    CONFIG_DOCUMENT = "config_document"
    FREE_TEXT_DOCUMENTS = "free_text_documents"
    RUNTIME_AGENTS_LIST = "runtime_agents_list"
    LEGACY_TEMPLATE_POLICY = "legacy_template_policy"


class ToolPolicySource(strEnum):
    RUNTIME = "runtime"
    FALLBACK = "fallback"


class WarningCode(strEnum):
    SOURCE_UNAVAILABLE = "source_unavailable"
    PARSE_ERROR = "parse_error"
    INVALID_RELATION = "invalid_relation"
    SELF_LOOP_DROPPED = "self_loop_dropped"
    MESSAGING_TARGETS_AMBIGUOUS = "messaging_targets_ambiguous"
    RUNTIME_UNAVAILABLE_FALLBACK_USED = "runtime_unavailable_fallback_used"
