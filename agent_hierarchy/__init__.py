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

"""Agent hierarchy core: reconcile agent relationship sources into one graph."""

__version__ = "1.0.0"


from structlog import get_logger

logger = get_logger(__name__)

from agent_hierarchy.settings import app_settings
from agent_hierarchy.services.graph_builder import build_agent_hierarchy_graph
from agent_hierarchy.services.hierarchy_api import build_agent_hierarchy_api_payload

__all__ = [
    "app_settings",
    "build_agent_hierarchy_graph",
    "build_agent_hierarchy_api_payload",
]
