"""Merge request decoration: reconcile analysis output with existing discussions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace

from mrdecor_core.client.base import BaseClient, TransportError
from mrdecor_core.discussions import (
    OUTDATED_SUMMARY_NOTE,
    STALE_ISSUE_NOTE,
    ClassifiedDiscussion,
    DiscussionType,
    classify_discussions,
    has_machine_note,
    replies,
)
from mrdecor_core.models import (
    AnalysisResult,
    DecorationResult,
    GeneralNote,
    LineNote,
    MergeRequestRef,
    PipelineState,
    PipelineStatus,
    ReportedIssue,
)
from mrdecor_core.report import dashboard_url, format_issue_note, format_summary
from mrdecor_core.scm import BaseScm

logger = logging.getLogger(__name__)

STATUS_NAME = "SonarQube"
STATUS_DESCRIPTION = "SonarQube Status"


class DecorationError(RuntimeError):
    """The run was aborted. Writes issued before the failure stay applied."""


@contextmanager
def _step(message: str):
    try:
        yield
    except TransportError as e:
        raise DecorationError(message) from e


class _Run:
    """State for a single decoration run against one merge request snapshot."""

    def __init__(
        self,
        client: BaseClient,
        scm: BaseScm,
        analysis: AnalysisResult,
        merge_request: MergeRequestRef,
        machine_username: str,
        commits: set[str],
        discussions: list[ClassifiedDiscussion],
        config: dict,
    ):
        self.client = client
        self.scm = scm
        self.analysis = analysis
        self.mr = merge_request
        self.machine_username = machine_username
        self.commits = commits
        self.discussions = discussions
        self.config = config
        self.project_id = merge_request.target_project_id
        self.result = DecorationResult(merge_request_url=_merge_request_url(merge_request, config))

    # ------------------------------------------------------------------ #
    # Issue discussions                                                    #
    # ------------------------------------------------------------------ #

    def _owned_by_project(self, classified: ClassifiedDiscussion) -> bool:
        return classified.identifier is not None and classified.identifier.project_key == self.analysis.project_key

    def represented_issue_keys(self) -> set[str]:
        """Issue keys that already have a live (not closed) discussion."""
        keys = set()
        for c in self.discussions:
            if c.type not in (DiscussionType.SINGLETON_IDENTIFIABLE, DiscussionType.MIXED):
                continue
            if c.closed or not self._owned_by_project(c):
                continue
            keys.add(c.identifier.issue_key)
        return keys

    def create_issue_discussions(self) -> None:
        represented = self.represented_issue_keys()
        for issue in self.analysis.open_issues():
            if issue.line is None or not issue.path:
                logger.debug("Issue %s has no line or path, summary only", issue.key)
                continue
            if issue.key in represented:
                logger.debug("Issue %s already has a discussion", issue.key)
                continue
            self._create_issue_discussion(issue)

    def _create_issue_discussion(self, issue: ReportedIssue) -> None:
        revision = self.scm.changeset_for_line(issue.path, issue.line)
        if revision is None:
            logger.debug("No changeset for %s:%d (issue %s), skipping", issue.path, issue.line, issue.key)
            return
        if revision not in self.commits:
            logger.debug("Issue %s was introduced outside the merge request (%s), skipping", issue.key, revision[:7])
            return

        refs = self.mr.diff_refs
        note = LineNote(
            body=format_issue_note(issue, self.analysis),
            base_sha=refs.base_sha,
            start_sha=refs.start_sha,
            head_sha=refs.head_sha,
            old_path=issue.path,
            new_path=issue.path,
            new_line=issue.line,
        )
        with _step("Could not submit commit comment to Gitlab"):
            self.client.create_discussion(self.project_id, self.mr.iid, note)
        self.result.created_discussions += 1

    def close_stale_discussions(self) -> None:
        live_keys = {i.key for i in self.analysis.open_issues()}
        for c in self.discussions:
            if c.type not in (DiscussionType.SINGLETON_IDENTIFIABLE, DiscussionType.MIXED):
                continue
            if c.closed or not self._owned_by_project(c):
                continue
            if c.identifier.issue_key in live_keys:
                continue

            if c.type is DiscussionType.MIXED:
                logger.debug("Issue %s is gone but discussion %s has replies", c.identifier.issue_key, c.discussion.id)
                with _step("Could not add note to Merge Request discussion"):
                    self.client.add_note_to_discussion(self.project_id, self.mr.iid, c.discussion.id, STALE_ISSUE_NOTE)
                self.result.noted_discussions += 1
            else:
                logger.debug("Issue %s is gone, resolving discussion %s", c.identifier.issue_key, c.discussion.id)
                with _step("Could not resolve Merge Request discussion"):
                    self.client.resolve_discussion(self.project_id, self.mr.iid, c.discussion.id)
                self.result.resolved_discussions += 1

    # ------------------------------------------------------------------ #
    # Summary                                                              #
    # ------------------------------------------------------------------ #

    def reconcile_summary(self) -> None:
        summaries = [c for c in self.discussions if c.type is DiscussionType.SUMMARY]
        body = format_summary(self.analysis)

        # Summaries already flagged outdated by an earlier run stay as they are.
        live = [
            c for c in summaries if not has_machine_note(c.discussion, self.machine_username, OUTDATED_SUMMARY_NOTE)
        ]

        if self.config.get("summary_note_edit") and live:
            current, outdated = live[-1], live[:-1]
            for c in outdated:
                self._retire_summary(c)
            logger.debug("Editing summary note in discussion %s", current.discussion.id)
            with _step("Could not edit summary note"):
                self.client.edit_note(self.project_id, self.mr.iid, current.discussion.id, current.first_note.id, body)
            discussion_id = current.discussion.id
            self.result.summary_action = "edited"
        else:
            for c in summaries:
                self._retire_summary(c)
            logger.debug("Creating summary discussion")
            with _step("Could not submit summary comment to Gitlab"):
                created = self.client.create_discussion(self.project_id, self.mr.iid, GeneralNote(body))
            discussion_id = created.id
            self.result.summary_action = "created"

        if self.analysis.passed:
            with _step("Could not resolve Merge Request discussion"):
                self.client.resolve_discussion(self.project_id, self.mr.iid, discussion_id)

    def _retire_summary(self, c: ClassifiedDiscussion) -> None:
        if not replies(c.discussion):
            logger.debug("Deleting outdated summary note %s", c.first_note.id)
            with _step("Could not delete outdated summary note"):
                self.client.delete_note(self.project_id, self.mr.iid, c.discussion.id, c.first_note.id)
            return
        if has_machine_note(c.discussion, self.machine_username, OUTDATED_SUMMARY_NOTE):
            return
        logger.debug("Summary discussion %s has replies, marking it outdated", c.discussion.id)
        with _step("Could not add note to Merge Request discussion"):
            self.client.add_note_to_discussion(self.project_id, self.mr.iid, c.discussion.id, OUTDATED_SUMMARY_NOTE)

    # ------------------------------------------------------------------ #
    # Build status                                                         #
    # ------------------------------------------------------------------ #

    def push_status(self) -> None:
        analysis = self.analysis
        status = PipelineStatus(
            name=STATUS_NAME,
            description=STATUS_DESCRIPTION,
            state=PipelineState.SUCCESS if analysis.passed else PipelineState.FAILED,
            target_url=dashboard_url(analysis.server_url, analysis.project_key, analysis.pull_request_id),
            coverage=analysis.new_coverage,
            pipeline_id=self.config.get("pipeline_id"),
        )
        with _step("Could not update pipeline status in Gitlab"):
            self.client.push_build_status(self.mr.source_project_id, analysis.commit_sha, status)


def _merge_request_url(merge_request: MergeRequestRef, config: dict) -> str:
    project_url = config.get("project_url")
    if project_url:
        return f"{project_url.rstrip('/')}/merge_requests/{merge_request.iid}"
    return merge_request.web_url


def _parse_iid(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise DecorationError("Could not parse Merge Request ID") from e


def decorate_merge_request(
    client: BaseClient,
    scm: BaseScm,
    analysis: AnalysisResult,
    project_path: str,
    config: dict,
    merge_request_id: str | int | None = None,
) -> DecorationResult:
    """Bring the merge request's discussions in line with ``analysis``.

    The merge request, its commits, the machine identity and every discussion
    are read once up front. Writes are then issued one by one; the first failure
    raises DecorationError and nothing is rolled back.
    """
    iid = _parse_iid(merge_request_id if merge_request_id is not None else analysis.pull_request_id)

    with _step("Could not retrieve Merge Request details"):
        merge_request = client.get_merge_request(project_path, iid)
    with _step("Could not retrieve current user details"):
        user = client.get_current_user()
    with _step("Could not retrieve commit details for Merge Request"):
        commits = set(client.get_commits(merge_request.target_project_id, merge_request.iid))
    with _step("Could not retrieve Merge Request discussions"):
        raw = client.get_discussions(merge_request.target_project_id, merge_request.iid)

    if config.get("server_url"):
        analysis = replace(analysis, server_url=config["server_url"])

    discussions = classify_discussions(raw, user.username, analysis.project_key)
    run = _Run(client, scm, analysis, merge_request, user.username, commits, discussions, config)

    summary_first = bool(config.get("summary_note_first"))
    if summary_first:
        run.reconcile_summary()
    run.create_issue_discussions()
    run.close_stale_discussions()
    if not summary_first:
        run.reconcile_summary()
    run.push_status()

    logger.debug(
        "Decorated %s: %d created, %d resolved, %d noted, summary %s",
        run.result.merge_request_url,
        run.result.created_discussions,
        run.result.resolved_discussions,
        run.result.noted_discussions,
        run.result.summary_action,
    )
    return run.result
