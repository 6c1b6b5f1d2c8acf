import json5

from agent_hierarchy.services.legacy_overlay import extract_legacy_tool_overlay
from agent_hierarchy.types import SourceId, WarningCode

LEGACY = """
// Legacy template policy
{
  tools: {agentToAgent: {enabled: true, allow: ["Manager", "ghost"]}},
  agents: {
    list: [
      {id: "manager", identity: {name: "Manager"}},
      {id: "build", tools: {allow: ["exec"], deny: ["write"]}},
      {name: "no id"},
    ],
  },
}
"""


def test_extract_legacy_tool_overlay():
    extraction = extract_legacy_tool_overlay(json5.loads(LEGACY))

    assert extraction.warnings == []
    assert extraction.messaging_enabled is True
    assert extraction.messaging_allow == ["Manager", "ghost"]
    assert [(record.id, record.message) for record in extraction.agents] == [
        ("manager", True),
        ("build", False),
        ("ghost", True),
    ]
    assert extraction.agents[0].label == "Manager"
    assert extraction.agents[1].allow == ["exec"]
    assert extraction.agents[1].deny == ["write"]


def test_extract_legacy_tool_overlay_messaging_disabled():
    data = {
        "tools": {"agentToAgent": {"enabled": False, "allow": ["manager"]}},
        "agents": {"list": [{"id": "manager"}]},
    }
    extraction = extract_legacy_tool_overlay(data)

    assert extraction.messaging_enabled is False
    assert [record.message for record in extraction.agents] == [False]
    assert extraction.warnings == []


def test_extract_legacy_tool_overlay_enabled_without_allow_list():
    extraction = extract_legacy_tool_overlay({"agents": {"list": [{"id": "manager"}]}})

    assert extraction.messaging_enabled is True
    assert [record.message for record in extraction.agents] == [False]
    assert [(w.code, w.source) for w in extraction.warnings] == [
        (WarningCode.MESSAGING_TARGETS_AMBIGUOUS, SourceId.LEGACY_TEMPLATE_POLICY)
    ]


def test_extract_legacy_tool_overlay_not_a_mapping():
    extraction = extract_legacy_tool_overlay("openclaw")

    assert extraction.agents == []
    assert extraction.messaging_enabled is False
    assert [w.code for w in extraction.warnings] == [WarningCode.PARSE_ERROR]
