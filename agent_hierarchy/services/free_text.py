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
"""Best-effort extraction of agent relationships from identity and role documents.

The documents are prose written for humans (and for the agents themselves), so extraction is heuristic: a fixed,
ordered set of line rules looks for a name and for "reports to", "delegate ... to" and "receive ... from" phrases.
A document that matches nothing contributes nothing. This extractor never warns and never raises.
"""

import re
from collections.abc import Iterable
from pathlib import PurePath

import structlog
from more_itertools import first

from agent_hierarchy.schemas import AgentRelationshipRecord, FreeTextDocument, RelationshipExtraction
from agent_hierarchy.utils.identifiers import normalize_identifier, unique_identifiers

logger = structlog.get_logger(__name__)

GENERIC_DOCUMENT_NAMES = frozenset({"soul", "identity", "role", "agent", "agents", "readme", "index"})
STOPWORDS = frozenset(
    {"a", "an", "and", "the", "to", "of", "or", "you", "your", "me", "my", "our", "agent", "agents", "tasks", "task"}
)
EMPTY_TARGETS = frozenset({"none", "nobody", "no", "na", "null", "nil"})

LIST_MARKER = re.compile(r"^\s*(?:[-*+>]|\d+[.)])\s+")
MARKUP = re.compile(r"[*`]+")
PARENTHETICAL = re.compile(r"\([^)]*\)|\[[^\]]*\]")
QUALIFIER = re.compile(r"\b(?:only|directly|exclusively|primarily|usually)\b", re.IGNORECASE)
SENTENCE_END = re.compile(r"\.(?:\s|$)")
LIST_SEPARATOR = re.compile(r"\s*(?:,|;|/|&|\band\b|\bor\b)\s*", re.IGNORECASE)
TOKEN = re.compile(r"[A-Za-z0-9][\w-]*")
FILE_NAME = re.compile(r"\.\w{1,5}$")
HEADING_SEPARATOR = re.compile(r"\s+[-–—|:]\s+|:\s+")

NAME_LINE = re.compile(r"^name\s*:\s*(?P<value>.+)$", re.IGNORECASE)
HEADING_LINE = re.compile(r"^#{1,6}\s+(?P<value>.+)$")
REPORTS_TO = re.compile(r"\breport(?:s|ing)?\s+(?:directly\s+)?to\b\s*:?\s*(?P<value>.+)", re.IGNORECASE)
DELEGATES_TO = re.compile(r"\bdelegat(?:e|es|ing)\b(?:\s+[\w-]+){0,3}?\s+to\b\s*:?\s*(?P<value>.+)", re.IGNORECASE)
RECEIVES_FROM = re.compile(r"\breceiv(?:e|es|ing)\b(?:\s+[\w-]+){0,3}?\s+from\b\s*:?\s*(?P<value>.+)", re.IGNORECASE)


def _clean(fragment: str) -> str:
    fragment = PARENTHETICAL.sub(" ", MARKUP.sub("", fragment))
    return first(SENTENCE_END.split(fragment, maxsplit=1), "").strip()


def pick_name(fragment: str) -> str | None:
    """Return the most name-like token of a phrase fragment.

    >>> pick_name("the ClawcontrolManager agent")
    'ClawcontrolManager'
    >>> pick_name("manager")
    'manager'
    >>> pick_name("none") is None
    True

    """
    tokens = [token for token in TOKEN.findall(QUALIFIER.sub(" ", fragment)) if token.lower() not in STOPWORDS]
    name = first((token for token in tokens if token[0].isupper()), first(tokens, None))
    if name is None or name.lower() in EMPTY_TARGETS:
        return None
    return name


def pick_names(fragment: str) -> list[str]:
    """Split a list phrase and return one name per entry.

    >>> pick_names("**Reviewer**, Tester and the Deployer only")
    ['Reviewer', 'Tester', 'Deployer']

    """
    return [name for name in map(pick_name, LIST_SEPARATOR.split(_clean(fragment))) if name]


def _identifier_from_heading(heading: str) -> str | None:
    lead = HEADING_SEPARATOR.split(MARKUP.sub("", heading).strip(), maxsplit=1)[0].strip()
    if not lead or FILE_NAME.search(lead):
        return None
    return pick_name(lead)


def _identifier_from_path(path: str) -> str | None:
    document = PurePath(path)
    if document.stem.lower() not in GENERIC_DOCUMENT_NAMES:
        return pick_name(document.stem)
    if document.parent.name:
        return pick_name(document.parent.name)
    return None


def _document_lines(content: str) -> Iterable[str]:
    for line in content.splitlines():
        stripped = LIST_MARKER.sub("", line).strip()
        if stripped:
            yield stripped


def extract_document(document: FreeTextDocument) -> AgentRelationshipRecord | None:
    """Extract the relationship record claimed by a single document, if any."""
    name: str | None = None
    heading: str | None = None
    reports_to: str | None = None
    delegates_to: list[str] = []
    receives_from: list[str] = []

    for line in _document_lines(document.content):
        plain = MARKUP.sub("", line)
        if name is None and (match := NAME_LINE.match(plain)):
            name = pick_name(_clean(match["value"]))
            continue
        if heading is None and (match := HEADING_LINE.match(line)):
            heading = match["value"]
            continue
        if reports_to is None and (match := REPORTS_TO.search(line)):
            reports_to = pick_name(_clean(match["value"]))
        if match := DELEGATES_TO.search(line):
            delegates_to.extend(pick_names(match["value"]))
        if match := RECEIVES_FROM.search(line):
            receives_from.extend(pick_names(match["value"]))

    if not (reports_to or delegates_to or receives_from):
        return None

    agent_id = name or (heading and _identifier_from_heading(heading)) or _identifier_from_path(document.path)
    if not agent_id:
        logger.debug("Document has relationships but no agent name", path=document.path)
        return None

    return AgentRelationshipRecord(
        id=agent_id,
        reports_to=reports_to,
        delegates_to=unique_identifiers(delegates_to),
        receives_from=unique_identifiers(receives_from),
    )


def _merge(existing: AgentRelationshipRecord, record: AgentRelationshipRecord) -> AgentRelationshipRecord:
    return existing.model_copy(
        update={
            "reports_to": existing.reports_to or record.reports_to,
            "delegates_to": unique_identifiers([*existing.delegates_to, *record.delegates_to]),
            "receives_from": unique_identifiers([*existing.receives_from, *record.receives_from]),
        }
    )


def extract_free_text_hierarchy(documents: Iterable[FreeTextDocument]) -> RelationshipExtraction:
    """Extract relationship records from identity and role documents.

    Documents are processed in the given order. Records claimed by several documents for the same agent (compared
    case-insensitively) are merged: relationship lists are unioned and the first non-empty `reports_to` wins.

    Args:
        documents: the documents offered by the workspace reader.

    Returns:
        The merged records, in order of first appearance. Never carries warnings.

    """
    records: dict[str, AgentRelationshipRecord] = {}
    for document in documents:
        record = extract_document(document)
        if record is None:
            continue
        key = normalize_identifier(record.id)
        records[key] = _merge(records[key], record) if key in records else record

    return RelationshipExtraction(agents=list(records.values()))
