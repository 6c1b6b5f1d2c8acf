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

import typer

from agent_hierarchy.cli import graph
from agent_hierarchy.log_config import initialise_cli_logging

app = typer.Typer()
app.add_typer(graph.app, name="graph", help="Build and inspect the agent hierarchy graph")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages to stderr"),
) -> None:
    """Agent hierarchy command line interface."""
    initialise_cli_logging(verbose)


if __name__ == "__main__":
    app()
