"""Markdown bodies for the summary note and per-issue notes.

The ``[View in SonarQube](...)`` link at the end of every body is what
mrdecor_core.matcher reads back on the next run, so its URL shape must not
change: issue links carry ``issues=<key>&id=<project>``, the summary links to
``/dashboard?id=<project>&pullRequest=<id>``.
"""

from __future__ import annotations

from urllib.parse import urlencode

from mrdecor_core.matcher import VIEW_LINK_LABEL
from mrdecor_core.models import AnalysisResult, ReportedIssue

_SEVERITIES = ("BLOCKER", "CRITICAL", "MAJOR", "MINOR", "INFO")
_TYPES = ("BUG", "VULNERABILITY", "CODE_SMELL", "SECURITY_HOTSPOT")
_TYPE_LABELS = {
    "BUG": "Bug",
    "VULNERABILITY": "Vulnerability",
    "CODE_SMELL": "Code Smell",
    "SECURITY_HOTSPOT": "Security Hotspot",
}


def dashboard_url(server_url: str, project_key: str, pull_request_id: str) -> str:
    query = urlencode({"id": project_key, "pullRequest": pull_request_id})
    return f"{server_url.rstrip('/')}/dashboard?{query}"


def issue_url(server_url: str, project_key: str, pull_request_id: str, issue_key: str) -> str:
    query = urlencode({"id": project_key, "pullRequest": pull_request_id, "issues": issue_key, "open": issue_key})
    return f"{server_url.rstrip('/')}/project/issues?{query}"


def _view_link(url: str) -> str:
    return f"[{VIEW_LINK_LABEL}]({url})"


def format_issue_note(issue: ReportedIssue, analysis: AnalysisResult) -> str:
    """Build the body of the discussion opened for a single issue."""
    type_label = _TYPE_LABELS.get(issue.type, issue.type.replace("_", " ").title())
    lines = [f"**[{issue.severity.upper()}]** {type_label}", ""]
    if issue.message:
        lines.append(issue.message)
        lines.append("")
    if issue.rule:
        lines.append(f"_Rule: `{issue.rule}`_")
        lines.append("")
    lines.append(_view_link(issue_url(analysis.server_url, analysis.project_key, analysis.pull_request_id, issue.key)))
    return "\n".join(lines)


def format_summary(analysis: AnalysisResult) -> str:
    """Build the top-level summary note body for the merge request."""
    open_issues = analysis.open_issues()

    counts: dict[str, dict[str, int]] = {t: {s: 0 for s in _SEVERITIES} for t in _TYPES}
    for issue in open_issues:
        row = counts.setdefault(issue.type, {s: 0 for s in _SEVERITIES})
        severity = issue.severity.upper()
        row[severity] = row.get(severity, 0) + 1

    lines = ["## Analysis summary\n"]

    if analysis.passed:
        lines.append("> **Quality Gate passed**\n")
    else:
        lines.append("> **Quality Gate failed**\n")

    stats = f"**{len(open_issues)}** issue(s)"
    anchored = sum(1 for i in open_issues if i.line is not None and i.path)
    if anchored:
        stats += f" · **{anchored}** on changed lines"
    if analysis.new_coverage is not None:
        stats += f" · coverage on new code **{analysis.new_coverage:.1f}%**"
    lines.append(stats + "\n")

    rows = [(t, c) for t, c in counts.items() if sum(c.values())]
    if rows:
        lines.append("| Type | Blocker | Critical | Major | Minor | Info | Total |")
        lines.append("|------|:-------:|:--------:|:-----:|:-----:|:----:|:-----:|")
        for issue_type, c in rows:
            label = _TYPE_LABELS.get(issue_type, issue_type.replace("_", " ").title())
            cells = " | ".join(str(c.get(s, 0) or "—") for s in _SEVERITIES)
            lines.append(f"| {label} | {cells} | {sum(c.values())} |")

    # Issues that cannot be anchored to a line only ever appear here.
    unanchored = [i for i in open_issues if i.line is None]
    if unanchored:
        lines.append("\n**Issues without a line number:**")
        for issue in unanchored:
            where = f"`{issue.path}`: " if issue.path else ""
            lines.append(f"- {where}{issue.message or issue.key} ({issue.severity.lower()})")

    lines.append("")
    lines.append(_view_link(dashboard_url(analysis.server_url, analysis.project_key, analysis.pull_request_id)))
    return "\n".join(lines)
