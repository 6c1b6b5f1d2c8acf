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

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    TESTING: bool = True
    ENVIRONMENT: str = "local"
    SERVICE_NAME: str = "agent-hierarchy"
    LOG_LEVEL: str = "DEBUG"
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_METHODS: list[str] = ["GET", "OPTIONS", "HEAD"]
    CORS_ALLOW_HEADERS: list[str] = ["If-None-Match", "Authorization", "Content-Type"]

    # Environment variables that may point at the managed workspace, checked in order
    WORKSPACE_ENV_VARS: list[str] = ["OPENCLAW_WORKSPACE", "CLAWCONTROL_WORKSPACE_ROOT", "WORKSPACE_ROOT"]
    WORKSPACE_PROJECT_DIRS: list[str] = ["projects/ClawControl", "projects/clawcontrol"]
    WORKSPACE_PARENT_DEPTH: int = 5
    CONFIG_DOCUMENT_NAMES: list[str] = ["clawcontrol.config.yaml", "config/clawcontrol.config.yaml"]
    LEGACY_CONFIG_NAMES: list[str] = [
        "openclaw/openclaw.json5",
        "openclaw/openclaw.json",
        "openclaw.json5",
        "openclaw.json",
        ".openclaw/openclaw.json5",
        ".openclaw/openclaw.json",
    ]
    AGENT_DOCUMENTS_GLOB: str = "agents/**/*.md"
    AGENT_DOCUMENTS_MAX_BYTES: int = 256 * 1024

    RUNTIME_CLI: list[str] = ["openclaw", "config", "get", "agents.list", "--json"]
    RUNTIME_COMMAND_ID: str = "config.agents.list.json"
    RUNTIME_TIMEOUT_SECONDS: float = 30.0

    # Which relationship source fills a field first when both declare it
    RELATIONSHIP_PRECEDENCE: list[str] = ["config_document", "free_text_documents"]


app_settings = AppSettings()
