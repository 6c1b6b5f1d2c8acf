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
"""Helpers to coerce loosely typed source data into identifiers and string lists."""

from collections.abc import Iterable, Mapping
from typing import Any

from more_itertools import unique_everseen


def normalize_identifier(value: str | None) -> str:
    """Return the comparison key of an agent or actor identifier.

    >>> normalize_identifier("  AGENT_B ")
    'agent_b'
    >>> normalize_identifier(None)
    ''

    """
    return (value or "").strip().lower()


def compact_string(value: Any) -> str | None:
    """Return the stripped string, or None for non-strings and blank strings.

    >>> compact_string("  worker ")
    'worker'
    >>> compact_string("   ") is None
    True
    >>> compact_string(42) is None
    True

    """
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def to_string_list(value: Any) -> list[str]:
    """Coerce a string or a list of strings to a list of non-blank strings.

    Scalars other than strings and blank entries are dropped.

    >>> to_string_list(["a", " b ", "", 3])
    ['a', 'b']
    >>> to_string_list("worker")
    ['worker']
    >>> to_string_list(None)
    []

    """
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list | tuple):
        return []
    return [item for item in map(compact_string, value) if item]


def as_mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def unique_identifiers(values: Iterable[str]) -> list[str]:
    """Deduplicate identifiers case-insensitively, keeping the first spelling.

    >>> unique_identifiers(["agent_b", "AGENT_B", "worker"])
    ['agent_b', 'worker']

    """
    return list(unique_everseen((value for value in values if normalize_identifier(value)), key=normalize_identifier))
