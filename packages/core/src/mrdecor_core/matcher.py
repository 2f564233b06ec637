"""Recognise which issue (or the summary) a machine-authored note belongs to.

No state is kept between runs: the link embedded in the note body is the only
record of which discussion was opened for which issue. Issue notes carry
``[View in SonarQube](...?issues=<issue key>&id=<project key>)``; the summary
note links to the project dashboard (``.../dashboard?id=<project key>&pullRequest=<id>``).

``matches`` is the yes/no predicate. The classifier also needs the key itself,
so it calls ``parse_issue_identifier`` once per discussion and the engine
compares those keys against the report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

VIEW_LINK_LABEL = "View in SonarQube"

_VIEW_LINK_RE = re.compile(r"\[" + re.escape(VIEW_LINK_LABEL) + r"\]\(([^)\s]+)\)")

SUMMARY_MARKER = object()


@dataclass(frozen=True)
class ProjectIssueIdentifier:
    project_key: str | None
    issue_key: str


def _view_links(body: str | None) -> list[str]:
    return _VIEW_LINK_RE.findall(body or "")


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlparse(url).query)


def parse_issue_identifier(body: str | None) -> ProjectIssueIdentifier | None:
    """Return the issue identifier embedded in a note body, or None if there is none.

    None means the note cannot be matched to *any* issue, which is different
    from matching some other issue.
    """
    for url in _view_links(body):
        params = _query(url)
        issues = params.get("issues")
        if issues and issues[0]:
            project = params.get("id")
            return ProjectIssueIdentifier(project_key=project[0] if project else None, issue_key=issues[0])
    return None


def is_summary_note(body: str | None, project_key: str | None = None) -> bool:
    """Return True if the body carries the dashboard link of the summary note."""
    for url in _view_links(body):
        parsed = urlparse(url)
        if not parsed.path.rstrip("/").endswith("/dashboard"):
            continue
        project = parse_qs(parsed.query).get("id")
        if not project:
            continue
        if project_key is None or project[0] == project_key:
            return True
    return False


def matches(body: str | None, target, project_key: str | None = None) -> bool:
    """Decide whether a note body belongs to ``target``.

    ``target`` is an issue key, or ``SUMMARY_MARKER`` to test for the summary note.
    """
    if target is SUMMARY_MARKER:
        return is_summary_note(body, project_key)
    identifier = parse_issue_identifier(body)
    if identifier is None:
        return False
    if project_key is not None and identifier.project_key != project_key:
        return False
    return identifier.issue_key == target
