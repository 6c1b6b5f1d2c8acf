from pathlib import Path
from textwrap import dedent

import pytest
from starlette.testclient import TestClient

from agent_hierarchy.app import HierarchyCore
from agent_hierarchy.schemas import (
    ConfigSourceStatus,
    FallbackSourceStatus,
    PersistedAgent,
    RuntimeSourceStatus,
    SourceStatus,
)
from agent_hierarchy.services.agent_store import StaticAgentStore
from agent_hierarchy.settings import AppSettings

MISSING_CLI = ["agent-hierarchy-test-missing-cli"]

CONFIG_DOCUMENT = """
agents:
  ceo:
    name: Chief Executive
    role: executive
    delegates_to: [manager]
    permissions:
      can_delegate: true
  manager:
    name: Manager
    reports_to: ceo
    delegates_to: [build, review]
    permissions:
      can_delegate: true
      can_send_messages: true
  build:
    reports_to: manager
    receives_from: [manager]
    permissions:
      can_execute_code: true
      can_modify_files: true
"""

LEGACY_CONFIG = """
// Template policy used while the runtime CLI is unavailable
{
  tools: {agentToAgent: {enabled: true, allow: ["manager"]}},
  agents: {
    list: [
      {id: "manager", identity: {name: "Manager"}, tools: {allow: ["message"]}},
      {id: "build", tools: {allow: ["exec", "write"], exec: {security: "allowlist"}}},
    ],
  },
}
"""


@pytest.fixture
def source_status():
    return SourceStatus(
        config=ConfigSourceStatus(available=True, path="/workspace/clawcontrol.config.yaml"),
        runtime=RuntimeSourceStatus(available=True, command="config.agents.list.json"),
        fallback=FallbackSourceStatus(path="/workspace/openclaw.json5"),
    )


@pytest.fixture
def persisted_agents():
    return [
        PersistedAgent(id="db-1", runtime_agent_id="manager", slug="mgr", display_name="The Manager", role="lead"),
        PersistedAgent(id="db-2", slug="build", name="Builder", station="forge", status="idle"),
    ]


@pytest.fixture
def test_settings():
    return AppSettings(RUNTIME_CLI=MISSING_CLI, WORKSPACE_ENV_VARS=["AGENT_HIERARCHY_TEST_WORKSPACE"])


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "clawcontrol.config.yaml").write_text(dedent(CONFIG_DOCUMENT))
    agents_dir = tmp_path / "agents" / "review"
    agents_dir.mkdir(parents=True)
    (agents_dir / "SOUL.md").write_text(
        dedent(
            """
            # Review - quality gate

            You report to the manager.
            You receive work from Build.
            """
        )
    )
    return tmp_path


@pytest.fixture
def legacy_workspace(workspace: Path) -> Path:
    (workspace / "openclaw.json5").write_text(dedent(LEGACY_CONFIG))
    return workspace


@pytest.fixture
def test_client(test_settings, persisted_agents, workspace, monkeypatch):
    monkeypatch.setenv("AGENT_HIERARCHY_TEST_WORKSPACE", str(workspace))
    app = HierarchyCore(base_settings=test_settings, agent_store=StaticAgentStore(persisted_agents))
    return TestClient(app)
