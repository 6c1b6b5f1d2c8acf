import sys

import pytest

from agent_hierarchy.schemas import Capabilities
from agent_hierarchy.services.hierarchy_sources import (
    collect_free_text_documents,
    get_agent_hierarchy_data,
    resolve_hierarchy_source_paths,
    run_runtime_command,
)
from agent_hierarchy.settings import AppSettings
from agent_hierarchy.types import EdgeType, SourceId, ToolPolicySource, WarningCode
from agent_hierarchy.utils.errors import RuntimeCommandError

ENV_VAR = "AGENT_HIERARCHY_TEST_WORKSPACE"


async def missing_cli(settings):
    raise RuntimeCommandError("Runtime CLI not found: openclaw", missing_cli=True)


async def failing_cli(settings):
    raise RuntimeCommandError("gateway not running", exit_code=1)


async def runtime_snapshot(settings):
    return [{"id": "build", "tools": {"allow": ["write"], "deny": ["exec"]}}]


class BrokenAgentStore:
    async def list_agents(self):
        raise ConnectionError("database unavailable")


class StubAgentStore:
    def __init__(self, agents):
        self.agents = agents

    async def list_agents(self):
        return self.agents


def edge_tuples(graph):
    return [(edge.type, edge.from_key, edge.to_key) for edge in graph.edges]


def test_resolve_paths_from_environment(workspace, test_settings, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp("elsewhere")
    paths = resolve_hierarchy_source_paths(cwd=elsewhere, env={ENV_VAR: str(workspace)}, settings=test_settings)

    assert paths.workspace_root == workspace.resolve()
    assert paths.config_path == workspace.resolve() / "clawcontrol.config.yaml"
    assert paths.legacy_path == workspace.resolve() / "openclaw" / "openclaw.json5"
    assert paths.documents_root == workspace.resolve()


def test_resolve_paths_in_project_directory(tmp_path, test_settings):
    project = tmp_path / "projects" / "ClawControl"
    (project / "agents").mkdir(parents=True)
    (project / "clawcontrol.config.yaml").write_text("agents: {}\n")
    (tmp_path / "openclaw.json").write_text("{}\n")

    paths = resolve_hierarchy_source_paths(cwd=tmp_path, env={ENV_VAR: str(tmp_path)}, settings=test_settings)

    assert paths.workspace_root == tmp_path.resolve()
    assert paths.config_path == project.resolve() / "clawcontrol.config.yaml"
    assert paths.legacy_path == tmp_path.resolve() / "openclaw.json"
    assert paths.documents_root == project.resolve()


def test_resolve_paths_from_working_directory(workspace, test_settings):
    cwd = workspace / "agents" / "review"
    paths = resolve_hierarchy_source_paths(cwd=cwd, env={}, settings=test_settings)

    assert paths.workspace_root == cwd.resolve()
    assert paths.config_path == workspace.resolve() / "clawcontrol.config.yaml"
    assert paths.documents_root == workspace.resolve()


def test_collect_free_text_documents(tmp_path):
    settings = AppSettings(AGENT_DOCUMENTS_MAX_BYTES=64)
    agents = tmp_path / "agents"
    (agents / "b").mkdir(parents=True)
    (agents / "b" / "SOUL.md").write_text("Reports to A.")
    (agents / "a.md").write_text("Reports to the CEO.")
    (agents / "empty.md").write_text("  \n")
    (agents / "huge.md").write_text("x" * 65)
    (agents / "notes.txt").write_text("Reports to A.")

    documents = collect_free_text_documents(tmp_path, settings)

    assert [document.path for document in documents] == [str(agents / "a.md"), str(agents / "b" / "SOUL.md")]
    assert documents[0].content == "Reports to the CEO."
    assert collect_free_text_documents(None, settings) == []


async def test_run_runtime_command_missing_cli(test_settings):
    with pytest.raises(RuntimeCommandError) as exc_info:
        await run_runtime_command(test_settings)

    assert exc_info.value.missing_cli


async def test_run_runtime_command_parses_json():
    settings = AppSettings(RUNTIME_CLI=[sys.executable, "-c", 'print(\'[{"id": "build"}]\')'])

    assert await run_runtime_command(settings) == [{"id": "build"}]


async def test_run_runtime_command_failures():
    settings = AppSettings(RUNTIME_CLI=[sys.executable, "-c", "import sys; sys.exit(3)"])
    with pytest.raises(RuntimeCommandError) as exc_info:
        await run_runtime_command(settings)
    assert exc_info.value.exit_code == 3
    assert not exc_info.value.missing_cli

    settings = AppSettings(RUNTIME_CLI=[sys.executable, "-c", "print('not json')"])
    with pytest.raises(RuntimeCommandError, match="valid JSON"):
        await run_runtime_command(settings)


async def test_get_agent_hierarchy_data(workspace, test_settings, persisted_agents):
    graph = await get_agent_hierarchy_data(
        agent_store=StubAgentStore(persisted_agents),
        env={ENV_VAR: str(workspace)},
        runtime_runner=missing_cli,
        settings=test_settings,
    )

    assert [node.id for node in graph.nodes] == ["build", "ceo", "manager", "review"]
    assert edge_tuples(graph) == [
        (EdgeType.REPORTS_TO, "build", "manager"),
        (EdgeType.RECEIVES_FROM, "build", "review"),
        (EdgeType.DELEGATES_TO, "ceo", "manager"),
        (EdgeType.CAN_MESSAGE, "manager", "build"),
        (EdgeType.DELEGATES_TO, "manager", "build"),
        (EdgeType.RECEIVES_FROM, "manager", "build"),
        (EdgeType.REPORTS_TO, "manager", "ceo"),
        (EdgeType.CAN_MESSAGE, "manager", "review"),
        (EdgeType.DELEGATES_TO, "manager", "review"),
        (EdgeType.REPORTS_TO, "review", "manager"),
    ]
    review_edges = [edge for edge in graph.edges if edge.from_key == "review"]
    assert [edge.source for edge in review_edges] == [SourceId.FREE_TEXT_DOCUMENTS]

    nodes = {node.id: node for node in graph.nodes}
    assert nodes["manager"].label == "The Manager"
    assert nodes["manager"].db_agent_id == "db-1"
    assert nodes["build"].capabilities == Capabilities(exec=True, write=True)
    assert nodes["review"].display_id == "Review"

    sources = graph.meta.sources
    assert sources.config.available
    assert sources.documents.available
    assert sources.documents.count == 1
    assert sources.db.available
    assert sources.db.count == 2
    assert not sources.runtime.available
    assert sources.runtime.command == "config.agents.list.json"
    assert sources.runtime.error == "Runtime CLI not found: openclaw"
    assert not sources.fallback.available
    assert not sources.fallback.used
    assert sources.fallback.error.startswith("No such file or directory")
    assert graph.meta.warnings == []


async def test_get_agent_hierarchy_data_uses_legacy_when_cli_missing(legacy_workspace, test_settings):
    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(legacy_workspace)}, runtime_runner=missing_cli, settings=test_settings
    )

    sources = graph.meta.sources
    assert sources.fallback.available
    assert sources.fallback.used
    assert sources.fallback.path == str(legacy_workspace.resolve() / "openclaw.json5")
    assert graph.meta.warnings == []

    nodes = {node.id: node for node in graph.nodes}
    assert nodes["manager"].capabilities == Capabilities(delegate=True, message=True)
    assert nodes["manager"].tool_policy.source == ToolPolicySource.FALLBACK
    assert nodes["build"].capabilities == Capabilities(exec=True, write=True)
    assert nodes["build"].tool_policy.exec_security == "allowlist"


async def test_get_agent_hierarchy_data_runtime_failure(legacy_workspace, test_settings):
    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(legacy_workspace)}, runtime_runner=failing_cli, settings=test_settings
    )

    assert graph.meta.sources.runtime.error == "gateway not running"
    assert graph.meta.sources.fallback.used
    assert [(w.code, w.source) for w in graph.meta.warnings] == [
        (WarningCode.RUNTIME_UNAVAILABLE_FALLBACK_USED, SourceId.LEGACY_TEMPLATE_POLICY),
        (WarningCode.SOURCE_UNAVAILABLE, SourceId.RUNTIME_AGENTS_LIST),
    ]


async def test_get_agent_hierarchy_data_runtime_available(legacy_workspace, test_settings):
    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(legacy_workspace)}, runtime_runner=runtime_snapshot, settings=test_settings
    )

    sources = graph.meta.sources
    assert sources.runtime.available
    assert sources.runtime.error is None
    assert not sources.fallback.used
    assert sources.fallback.error is None

    nodes = {node.id: node for node in graph.nodes}
    assert nodes["build"].capabilities == Capabilities(write=True, exec=False)
    assert nodes["build"].tool_policy.source == ToolPolicySource.RUNTIME
    assert nodes["manager"].tool_policy is None
    assert graph.meta.warnings == []


async def test_get_agent_hierarchy_data_source_failures(tmp_path, test_settings):
    (tmp_path / "clawcontrol.config.yaml").write_text("agents: [unclosed\n")

    graph = await get_agent_hierarchy_data(
        agent_store=BrokenAgentStore(),
        env={ENV_VAR: str(tmp_path)},
        runtime_runner=missing_cli,
        settings=test_settings,
    )

    sources = graph.meta.sources
    assert not sources.db.available
    assert not sources.config.available
    assert sources.config.error.startswith("Parse error")
    assert not sources.documents.available
    assert graph.nodes == []
    assert [(w.code, w.source) for w in graph.meta.warnings] == [
        (WarningCode.SOURCE_UNAVAILABLE, SourceId.CONFIG_DOCUMENT),
        (WarningCode.SOURCE_UNAVAILABLE, SourceId.DB_AGENTS),
    ]


async def test_get_agent_hierarchy_data_relationship_precedence(workspace):
    (workspace / "agents" / "manager.md").write_text("Name: Manager\nReports to the Board.\n")
    settings = AppSettings(
        RUNTIME_CLI=["agent-hierarchy-test-missing-cli"],
        WORKSPACE_ENV_VARS=[ENV_VAR],
        RELATIONSHIP_PRECEDENCE=["free_text_documents", "config_document"],
    )

    graph = await get_agent_hierarchy_data(env={ENV_VAR: str(workspace)}, runtime_runner=missing_cli, settings=settings)

    assert (EdgeType.REPORTS_TO, "manager", "board") in edge_tuples(graph)
    assert (EdgeType.REPORTS_TO, "manager", "ceo") not in edge_tuples(graph)


async def test_get_agent_hierarchy_data_without_store(workspace, test_settings):
    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(workspace)}, runtime_runner=missing_cli, settings=test_settings
    )

    assert graph.meta.sources.db.available
    assert graph.meta.sources.db.count == 0
    assert all(node.db_agent_id is None for node in graph.nodes)


async def test_get_agent_hierarchy_data_undecodable_config(tmp_path, test_settings):
    (tmp_path / "clawcontrol.config.yaml").write_bytes(b"\xff\xfe agents")

    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(tmp_path)}, runtime_runner=missing_cli, settings=test_settings
    )

    sources = graph.meta.sources
    assert not sources.config.available
    assert sources.config.error.startswith("Unreadable text")
    assert [(w.code, w.source) for w in graph.meta.warnings] == [
        (WarningCode.SOURCE_UNAVAILABLE, SourceId.CONFIG_DOCUMENT),
    ]


async def test_get_agent_hierarchy_data_legacy_json5(tmp_path, test_settings):
    (tmp_path / "openclaw.json5").write_text(
        "// messaging is switched off\n"
        '{tools:{agentToAgent:{enabled:false,allow:["manager"]}},'
        'agents:{list:[{id:"manager",tools:{allow:["message"]}}]}}\n'
    )

    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(tmp_path)}, runtime_runner=missing_cli, settings=test_settings
    )

    assert graph.meta.sources.fallback.used
    assert graph.meta.warnings == []
    manager = {node.id: node for node in graph.nodes}["manager"]
    assert manager.capabilities == Capabilities()
    assert manager.tool_policy.allow == ["message"]
    assert manager.tool_policy.source == ToolPolicySource.FALLBACK


async def test_get_agent_hierarchy_data_malformed_legacy(tmp_path, test_settings):
    (tmp_path / "openclaw.json5").write_text("{agents: {list: [}")

    graph = await get_agent_hierarchy_data(
        env={ENV_VAR: str(tmp_path)}, runtime_runner=missing_cli, settings=test_settings
    )

    sources = graph.meta.sources
    assert not sources.fallback.available
    assert sources.fallback.error.startswith("Parse error")
    assert [(w.code, w.source) for w in graph.meta.warnings] == [
        (WarningCode.SOURCE_UNAVAILABLE, SourceId.LEGACY_TEMPLATE_POLICY),
    ]
