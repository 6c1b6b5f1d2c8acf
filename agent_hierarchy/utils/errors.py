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

from functools import singledispatch
from typing import Any

import structlog
import yaml

from agent_hierarchy.types import SourceId

logger = structlog.get_logger(__name__)


class SourceUnavailableError(Exception):
    """A whole hierarchy source could not be read.

    Raised by the source collectors and caught by the hierarchy pipeline, which records it in the source status
    instead of failing the request.
    """

    source: SourceId
    message: str
    details: Any

    def __init__(self, source: SourceId, message: str, details: Any = None) -> None:
        super().__init__(source, message, details)
        self.source = source
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class RuntimeCommandError(SourceUnavailableError):
    """The runtime CLI did not produce a usable agents list."""

    missing_cli: bool
    exit_code: int | None

    def __init__(self, message: str, missing_cli: bool = False, exit_code: int | None = None) -> None:
        super().__init__(SourceId.RUNTIME_AGENTS_LIST, message, {"exit_code": exit_code})
        self.missing_cli = missing_cli
        self.exit_code = exit_code


def is_missing_file_error(err: BaseException) -> bool:
    if isinstance(err, FileNotFoundError):
        return True
    return isinstance(err, SourceUnavailableError) and isinstance(err.details, FileNotFoundError)


@singledispatch
def source_error_message(err: Any) -> str:
    """Return an operator facing message for a failed source read.

    Args:
        err: the exception raised while reading or parsing a source.

    Returns:
        A single line message, suitable for a warning or the source status.

    """
    raise NotImplementedError(f"Unsupported source error type: {type(err)}")


@source_error_message.register
def _(err: SourceUnavailableError) -> str:
    return err.message


@source_error_message.register
def _(err: FileNotFoundError) -> str:
    return f"No such file or directory: {err.filename}"


@source_error_message.register
def _(err: yaml.YAMLError) -> str:
    mark = getattr(err, "problem_mark", None)
    if mark is not None:
        return f"Parse error at line {mark.line + 1}, column {mark.column + 1}: {getattr(err, 'problem', err)}"
    return f"Parse error: {err}"


@source_error_message.register
def _(err: UnicodeDecodeError) -> str:
    return f"Unreadable text at byte {err.start}: {err.reason}"


@source_error_message.register
def _(err: ValueError) -> str:
    return f"Parse error: {err}"


@source_error_message.register
def _(err: Exception) -> str:
    return f"{type(err).__name__}: {err}"
