"""Data models shared by the reconciliation engine and the platform clients.

Remote objects (merge request, discussions, notes) are snapshots taken at the
start of a run. The engine never mutates them and never assumes they remain
valid after it has issued a write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class IssueStatus(str, Enum):
    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    REOPENED = "REOPENED"
    FIXED = "FIXED"
    ACCEPTED = "ACCEPTED"
    FALSE_POSITIVE = "FALSE_POSITIVE"


CLOSED_ISSUE_STATUSES = frozenset({IssueStatus.FIXED, IssueStatus.ACCEPTED, IssueStatus.FALSE_POSITIVE})


class QualityGateStatus(str, Enum):
    OK = "OK"
    ERROR = "ERROR"


class PipelineState(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class DiffRefs:
    """The three commits bounding the merge request diff."""

    base_sha: str
    start_sha: str
    head_sha: str


@dataclass(frozen=True)
class MergeRequestRef:
    iid: int
    source_project_id: int
    target_project_id: int
    diff_refs: DiffRefs
    web_url: str


@dataclass(frozen=True)
class RemoteUser:
    username: str
    id: int | None = None


@dataclass(frozen=True)
class RemoteNote:
    """One message inside a discussion, in creation order."""

    id: int
    author: RemoteUser
    body: str
    resolvable: bool = False
    system: bool = False
    resolved: bool = False


@dataclass(frozen=True)
class RemoteDiscussion:
    id: str
    notes: tuple[RemoteNote, ...] = ()

    @property
    def resolved(self) -> bool:
        # GitLab marks every resolvable note of a resolved thread; the first note
        # is the one that owns the thread.
        return bool(self.notes) and self.notes[0].resolvable and self.notes[0].resolved


@dataclass(frozen=True)
class GeneralNote:
    """A note bound only to the merge request."""

    body: str


@dataclass(frozen=True)
class LineNote:
    """A note anchored to a line of the merge request diff."""

    body: str
    base_sha: str
    start_sha: str
    head_sha: str
    old_path: str
    new_path: str
    new_line: int


OutboundNote = Union[GeneralNote, LineNote]


@dataclass(frozen=True)
class PipelineStatus:
    name: str
    description: str
    state: PipelineState
    target_url: str
    coverage: float | None = None
    pipeline_id: int | None = None


@dataclass
class ReportedIssue:
    """A finding produced by the analysis. Read-only to the engine."""

    key: str
    status: IssueStatus = IssueStatus.OPEN
    line: int | None = None
    path: str | None = None
    severity: str = "MAJOR"
    type: str = "CODE_SMELL"
    message: str = ""
    rule: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_ISSUE_STATUSES


@dataclass
class AnalysisResult:
    project_key: str
    pull_request_id: str
    commit_sha: str
    quality_gate: QualityGateStatus
    server_url: str
    issues: list[ReportedIssue] = field(default_factory=list)
    new_coverage: float | None = None

    @property
    def passed(self) -> bool:
        return self.quality_gate == QualityGateStatus.OK

    def open_issues(self) -> list[ReportedIssue]:
        return [i for i in self.issues if i.is_open]


@dataclass
class DecorationResult:
    """What a decoration run did, returned to the CLI for reporting."""

    merge_request_url: str
    created_discussions: int = 0
    resolved_discussions: int = 0
    noted_discussions: int = 0
    summary_action: str = ""  # "created" | "edited"
