"""Classify remote discussions once per run.

Downstream reconciliation only looks at the resulting DiscussionType and the
parsed identifier; it never re-inspects authors or note flags itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from mrdecor_core.matcher import SUMMARY_MARKER, ProjectIssueIdentifier, matches, parse_issue_identifier
from mrdecor_core.models import RemoteDiscussion, RemoteNote

logger = logging.getLogger(__name__)

STALE_ISSUE_NOTE = (
    "This issue no longer exists in SonarQube, "
    "but due to other comments being present in this discussion, "
    "the discussion is not being being closed automatically. "
    "Please manually resolve this discussion once the other comments have been reviewed."
)

OUTDATED_SUMMARY_NOTE = (
    "This summary note is outdated, "
    "but due to other comments being present in this discussion, "
    "the discussion is not being being removed. "
    "Please manually resolve this discussion once the other comments have been reviewed."
)

_RESOLVED_KEYWORD = "resolved"


class DiscussionType(Enum):
    UNRELATED = "unrelated"
    SINGLETON_IDENTIFIABLE = "singleton-identifiable"
    SINGLETON_UNIDENTIFIABLE = "singleton-unidentifiable"
    MIXED = "mixed"
    SUMMARY = "summary"


@dataclass(frozen=True)
class ClassifiedDiscussion:
    discussion: RemoteDiscussion
    type: DiscussionType
    identifier: ProjectIssueIdentifier | None = None
    # Already resolved remotely, or already acknowledged by a closing note from us.
    closed: bool = False

    @property
    def first_note(self) -> RemoteNote:
        return self.discussion.notes[0]

    @property
    def is_machine_owned(self) -> bool:
        return self.type is not DiscussionType.UNRELATED


def replies(discussion: RemoteDiscussion) -> list[RemoteNote]:
    """Notes after the first one, excluding system-generated notes."""
    return [n for n in discussion.notes[1:] if not n.system]


def has_machine_note(discussion: RemoteDiscussion, machine_username: str, text: str) -> bool:
    return any(n.author.username == machine_username and n.body.strip() == text for n in discussion.notes[1:])


def _acknowledged(discussion: RemoteDiscussion, machine_username: str) -> bool:
    for note in discussion.notes[1:]:
        if note.author.username != machine_username:
            continue
        body = note.body.strip()
        if body == STALE_ISSUE_NOTE or body.lower() == _RESOLVED_KEYWORD:
            return True
    return False


def classify_discussion(
    discussion: RemoteDiscussion,
    machine_username: str,
    project_key: str | None = None,
) -> ClassifiedDiscussion:
    if not discussion.notes:
        return ClassifiedDiscussion(discussion, DiscussionType.UNRELATED)

    first = discussion.notes[0]
    if first.author.username != machine_username:
        return ClassifiedDiscussion(discussion, DiscussionType.UNRELATED)

    if matches(first.body, SUMMARY_MARKER, project_key):
        return ClassifiedDiscussion(discussion, DiscussionType.SUMMARY, closed=discussion.resolved)

    if not first.resolvable:
        return ClassifiedDiscussion(discussion, DiscussionType.UNRELATED)

    identifier = parse_issue_identifier(first.body)
    closed = discussion.resolved or _acknowledged(discussion, machine_username)

    if replies(discussion):
        kind = DiscussionType.MIXED
    elif identifier is not None:
        kind = DiscussionType.SINGLETON_IDENTIFIABLE
    else:
        kind = DiscussionType.SINGLETON_UNIDENTIFIABLE

    return ClassifiedDiscussion(discussion, kind, identifier, closed)


def classify_discussions(
    discussions: list[RemoteDiscussion],
    machine_username: str,
    project_key: str | None = None,
) -> list[ClassifiedDiscussion]:
    classified = []
    for discussion in discussions:
        result = classify_discussion(discussion, machine_username, project_key)
        logger.debug(
            "Discussion %s classified as %s (closed=%s, identifier=%s)",
            discussion.id,
            result.type.value,
            result.closed,
            result.identifier,
        )
        classified.append(result)
    return classified
