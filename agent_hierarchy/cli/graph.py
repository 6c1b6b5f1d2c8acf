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

import asyncio
from pathlib import Path
from typing import Any

import typer

from agent_hierarchy.services.agent_store import StaticAgentStore
from agent_hierarchy.services.hierarchy_api import build_agent_hierarchy_api_payload
from agent_hierarchy.services.hierarchy_sources import (
    get_agent_hierarchy_data,
    resolve_hierarchy_source_paths,
    run_runtime_command,
)
from agent_hierarchy.settings import AppSettings, app_settings
from agent_hierarchy.utils.errors import RuntimeCommandError, SourceUnavailableError

app: typer.Typer = typer.Typer()


async def _skip_runtime(settings: AppSettings) -> Any:
    raise RuntimeCommandError("Runtime source skipped", missing_cli=True)


def _workspace_env(workspace: Path | None) -> dict[str, str] | None:
    # An explicit workspace wins over the workspace environment variables
    return {} if workspace else None


@app.command(name="build")
def build(
    workspace: Path = typer.Option(None, "--workspace", "-w", help="Workspace directory to read the sources from"),
    agents_file: Path = typer.Option(None, "--agents-file", help="YAML or JSON list of persisted agents"),
    skip_runtime: bool = typer.Option(False, "--skip-runtime", help="Do not call the runtime CLI"),
    indent: int = typer.Option(2, "--indent", help="JSON indentation, 0 for compact output"),
) -> None:
    """Build the agent hierarchy graph and print the API payload as JSON."""
    try:
        agent_store = StaticAgentStore.from_file(agents_file) if agents_file else None
    except SourceUnavailableError as exc:
        typer.echo(f"Could not read agents file: {exc}", err=True)
        raise typer.Exit(code=1)

    payload = asyncio.run(
        build_agent_hierarchy_api_payload(
            lambda: get_agent_hierarchy_data(
                agent_store=agent_store,
                cwd=workspace.resolve() if workspace else None,
                env=_workspace_env(workspace),
                runtime_runner=_skip_runtime if skip_runtime else run_runtime_command,
            )
        )
    )
    typer.echo(payload.model_dump_json(by_alias=True, indent=indent or None))


@app.command(name="paths")
def paths(
    workspace: Path = typer.Option(None, "--workspace", "-w", help="Workspace directory to resolve the sources in"),
) -> None:
    """Show where each hierarchy source is read from."""
    resolved = resolve_hierarchy_source_paths(
        cwd=workspace.resolve() if workspace else None, env=_workspace_env(workspace), settings=app_settings
    )
    for name in ("workspace_root", "config_path", "legacy_path", "documents_root"):
        value = getattr(resolved, name)
        exists = value is not None and value.exists()
        typer.echo(f"{name}: {value or '-'}{'' if exists else ' (missing)'}")
