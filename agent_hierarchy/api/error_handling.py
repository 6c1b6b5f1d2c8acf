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

from http import HTTPStatus
from typing import NoReturn

import structlog
from fastapi.exceptions import HTTPException

logger = structlog.get_logger(__name__)


class ProblemDetailException(HTTPException):
    """HTTP error rendered as an RFC 7807 problem detail."""

    def __init__(
        self,
        status_code: int,
        detail: str | None = None,
        title: str | None = None,
        type: str | None = None,
        headers: dict | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.title = title or HTTPStatus(status_code).phrase
        self.type = type


def raise_status(status: int, detail: str | None = None, headers: dict | None = None) -> NoReturn:
    status = HTTPStatus(status)
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("Request failed", status=status.value, detail=detail)
    raise ProblemDetailException(status_code=status.value, detail=detail or status.description, headers=headers)
