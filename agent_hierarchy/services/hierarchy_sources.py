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
"""Fetch every hierarchy source and build the graph.

This is the impure edge of the hierarchy core: it locates the workspace, reads files, runs the runtime CLI and asks
the agent store for persisted agents. Every failure is recorded in the source status and, when an operator should
know about it, as a warning. Nothing here fails the request.
"""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import json5
import structlog
import yaml
from more_itertools import first, unique_everseen

from agent_hierarchy.schemas import (
    ConfigSourceStatus,
    FallbackSourceStatus,
    FreeTextDocument,
    HierarchyGraph,
    HierarchyWarning,
    LegacyOverlayExtraction,
    PersistedAgent,
    RelationshipExtraction,
    RuntimeSourceStatus,
    SourceStatus,
    ToolOverlayExtraction,
)
from agent_hierarchy.services.agent_store import AgentStore, StaticAgentStore
from agent_hierarchy.services.config_document import extract_config_document_hierarchy
from agent_hierarchy.services.free_text import extract_free_text_hierarchy
from agent_hierarchy.services.graph_builder import build_agent_hierarchy_graph
from agent_hierarchy.services.legacy_overlay import extract_legacy_tool_overlay
from agent_hierarchy.services.runtime_overlay import extract_runtime_tool_overlay
from agent_hierarchy.settings import AppSettings, app_settings
from agent_hierarchy.types import SourceId, WarningCode
from agent_hierarchy.utils.errors import (
    RuntimeCommandError,
    is_missing_file_error,
    source_error_message,
)
from agent_hierarchy.utils.identifiers import compact_string

logger = structlog.get_logger(__name__)

RuntimeRunner = Callable[[AppSettings], Awaitable[Any]]

MISSING_CLI_EXIT_CODE = 127


@dataclass(frozen=True)
class HierarchySourcePaths:
    workspace_root: Path
    config_path: Path
    legacy_path: Path
    documents_root: Path | None


def _candidate_roots(cwd: Path, env: Mapping[str, str], settings: AppSettings) -> list[Path]:
    env_values = (compact_string(env.get(name)) for name in settings.WORKSPACE_ENV_VARS)
    env_roots = [Path(value) for value in env_values if value]
    project_roots = [root / project for root in env_roots for project in settings.WORKSPACE_PROJECT_DIRS]
    cwd_roots = [cwd, *list(cwd.parents)[: settings.WORKSPACE_PARENT_DEPTH]]
    return list(unique_everseen(path.resolve() for path in (*env_roots, *project_roots, *cwd_roots)))


def _first_existing(candidates: Iterable[Path]) -> Path | None:
    return first((path for path in candidates if path.is_file()), None)


def resolve_hierarchy_source_paths(
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    settings: AppSettings = app_settings,
) -> HierarchySourcePaths:
    """Locate the workspace and the hierarchy source files in it.

    Workspace candidates are, in order: the directories named by `WORKSPACE_ENV_VARS`, their project sub-directories,
    then the working directory and its parents. The first candidate is the workspace root; source files are looked up
    in all candidates and default to a path below the workspace root when none exists.

    Args:
        cwd: directory to start from, defaults to the process working directory.
        env: environment to read the workspace variables from, defaults to `os.environ`.
        settings: the application settings.

    Returns:
        The resolved paths. Paths may point at files that do not exist.

    """
    cwd = cwd or Path.cwd()
    candidates = _candidate_roots(cwd, os.environ if env is None else env, settings)
    workspace_root = candidates[0]

    config_path = _first_existing(
        root / name for root in candidates for name in settings.CONFIG_DOCUMENT_NAMES
    ) or workspace_root / first(settings.CONFIG_DOCUMENT_NAMES, "clawcontrol.config.yaml")
    legacy_path = _first_existing(
        root / name for root in candidates for name in settings.LEGACY_CONFIG_NAMES
    ) or workspace_root / first(settings.LEGACY_CONFIG_NAMES, "openclaw.json5")

    document_roots = [config_path.parent] if config_path.is_file() else []
    documents_root = first((root for root in (*document_roots, *candidates) if (root / "agents").is_dir()), None)

    return HierarchySourcePaths(
        workspace_root=workspace_root,
        config_path=config_path,
        legacy_path=legacy_path,
        documents_root=documents_root,
    )


def read_structured_file(path: Path) -> Any:
    """Parse a YAML (or JSON) file."""
    with open(path, encoding="utf-8") as stream:
        return yaml.safe_load(stream)


def read_legacy_config(path: Path) -> Any:
    """Parse the legacy JSON5 configuration, comments and unquoted keys included."""
    with open(path, encoding="utf-8") as stream:
        return json5.load(stream)


def collect_free_text_documents(root: Path | None, settings: AppSettings = app_settings) -> list[FreeTextDocument]:
    """Read the agent identity and role documents below `root`, sorted by path.

    Unreadable, oversized and empty documents are left out.
    """
    if root is None:
        return []

    documents = []
    for path in sorted(root.glob(settings.AGENT_DOCUMENTS_GLOB)):
        try:
            if not path.is_file() or path.stat().st_size > settings.AGENT_DOCUMENTS_MAX_BYTES:
                continue
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable agent document", path=str(path), error=str(exc))
            continue
        if content.strip():
            documents.append(FreeTextDocument(path=str(path), content=content))
    return documents


async def run_runtime_command(settings: AppSettings = app_settings) -> Any:
    """Run the runtime CLI and return its parsed JSON output.

    Raises:
        RuntimeCommandError: the CLI is missing, fails, times out or prints something that is not JSON.

    """
    if not settings.RUNTIME_CLI:
        raise RuntimeCommandError("Runtime CLI not configured", missing_cli=True)

    try:
        process = await asyncio.create_subprocess_exec(
            *settings.RUNTIME_CLI,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise RuntimeCommandError(f"Runtime CLI not found: {settings.RUNTIME_CLI[0]}", missing_cli=True) from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=settings.RUNTIME_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise RuntimeCommandError(f"Runtime command timed out after {settings.RUNTIME_TIMEOUT_SECONDS}s") from exc

    if process.returncode:
        message = stderr.decode(errors="replace").strip() or f"Runtime command exited with {process.returncode}"
        raise RuntimeCommandError(
            message,
            missing_cli=process.returncode == MISSING_CLI_EXIT_CODE,
            exit_code=process.returncode,
        )

    try:
        return json.loads(stdout)
    except ValueError as exc:
        raise RuntimeCommandError("Runtime command did not return valid JSON") from exc


def _unavailable(source: SourceId, message: str) -> HierarchyWarning:
    return HierarchyWarning(code=WarningCode.SOURCE_UNAVAILABLE, source=source, message=message)


async def get_agent_hierarchy_data(
    agent_store: AgentStore | None = None,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    runtime_runner: RuntimeRunner = run_runtime_command,
    settings: AppSettings = app_settings,
) -> HierarchyGraph:
    """Collect every hierarchy source and build the graph.

    The legacy configuration is only read when the runtime source is unavailable. Missing optional files and a
    missing runtime CLI are normal on fresh installs and are not reported as warnings; they still show in the source
    status.
    """
    paths = resolve_hierarchy_source_paths(cwd=cwd, env=env, settings=settings)
    status = SourceStatus(
        config=ConfigSourceStatus(path=str(paths.config_path)),
        runtime=RuntimeSourceStatus(command=settings.RUNTIME_COMMAND_ID),
        fallback=FallbackSourceStatus(path=str(paths.legacy_path)),
    )
    warnings: list[HierarchyWarning] = []

    persisted_agents: list[PersistedAgent] = []
    try:
        persisted_agents = await (agent_store or StaticAgentStore()).list_agents()
    except Exception as exc:  # noqa: BLE001
        message = source_error_message(exc)
        logger.warning("Failed to load persisted agents", error=message)
        warnings.append(_unavailable(SourceId.DB_AGENTS, f"Failed to load persisted agents: {message}"))
    else:
        status.db.available = True
        status.db.count = len(persisted_agents)

    config_document: RelationshipExtraction | None = None
    try:
        config_document = extract_config_document_hierarchy(read_structured_file(paths.config_path))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        status.config.error = source_error_message(exc)
        if not is_missing_file_error(exc):
            logger.warning("Configuration document unavailable", path=str(paths.config_path), error=status.config.error)
            warnings.append(
                _unavailable(SourceId.CONFIG_DOCUMENT, f"Configuration document unavailable: {status.config.error}")
            )
    else:
        status.config.available = True

    documents = collect_free_text_documents(paths.documents_root, settings)
    free_text = extract_free_text_hierarchy(documents)
    status.documents.available = bool(documents)
    status.documents.count = len(documents)

    runtime: ToolOverlayExtraction | None = None
    runtime_missing_cli = False
    try:
        runtime = extract_runtime_tool_overlay(await runtime_runner(settings))
    except RuntimeCommandError as exc:
        status.runtime.error = exc.message
        runtime_missing_cli = exc.missing_cli
        if runtime_missing_cli:
            logger.info("Runtime CLI not available", error=exc.message)
        else:
            logger.warning("Runtime source unavailable", error=exc.message)
            warnings.append(_unavailable(SourceId.RUNTIME_AGENTS_LIST, f"Runtime source unavailable: {exc.message}"))
    else:
        status.runtime.available = True

    legacy: LegacyOverlayExtraction | None = None
    if runtime is None:
        try:
            legacy = extract_legacy_tool_overlay(read_legacy_config(paths.legacy_path))
        except (OSError, ValueError, yaml.YAMLError) as exc:
            status.fallback.error = source_error_message(exc)
            if not is_missing_file_error(exc):
                logger.warning(
                    "Legacy configuration unavailable", path=str(paths.legacy_path), error=status.fallback.error
                )
                warnings.append(
                    _unavailable(
                        SourceId.LEGACY_TEMPLATE_POLICY, f"Legacy configuration unavailable: {status.fallback.error}"
                    )
                )
        else:
            status.fallback.available = True
            status.fallback.used = True
            if not runtime_missing_cli:
                warnings.append(
                    HierarchyWarning(
                        code=WarningCode.RUNTIME_UNAVAILABLE_FALLBACK_USED,
                        source=SourceId.LEGACY_TEMPLATE_POLICY,
                        message="Runtime source unavailable, using legacy configuration",
                    )
                )

    return build_agent_hierarchy_graph(
        source_status=status,
        persisted_agents=persisted_agents,
        config_document=config_document,
        free_text=free_text,
        runtime=runtime,
        legacy=legacy,
        initial_warnings=warnings,
        relationship_precedence=[SourceId(source) for source in settings.RELATIONSHIP_PRECEDENCE],
    )


__all__ = [
    "HierarchySourcePaths",
    "collect_free_text_documents",
    "get_agent_hierarchy_data",
    "read_legacy_config",
    "read_structured_file",
    "resolve_hierarchy_source_paths",
    "run_runtime_command",
]
