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

from collections.abc import Awaitable, Callable

from agent_hierarchy.schemas import AgentHierarchyPayload, HierarchyGraph

GraphProducer = Callable[[], Awaitable[HierarchyGraph]]


async def build_agent_hierarchy_api_payload(produce_graph: GraphProducer) -> AgentHierarchyPayload:
    """Wrap the graph produced by `produce_graph` in the API response envelope.

    Callers own caching, retries and timeouts of the producer; this only pins the `{"data": graph}` shape.
    """
    graph = await produce_graph()
    return AgentHierarchyPayload(data=graph)
