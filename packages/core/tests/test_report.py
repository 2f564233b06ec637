"""Tests for the Markdown note bodies."""

from mrdecor_core.matcher import ProjectIssueIdentifier, is_summary_note, parse_issue_identifier
from mrdecor_core.models import AnalysisResult, IssueStatus, QualityGateStatus, ReportedIssue
from mrdecor_core.report import dashboard_url, format_issue_note, format_summary, issue_url


def _analysis(issues=(), gate=QualityGateStatus.OK, coverage=None):
    return AnalysisResult(
        project_key="proj",
        pull_request_id="5",
        commit_sha="abc",
        quality_gate=gate,
        server_url="https://sonar.example.com/",
        issues=list(issues),
        new_coverage=coverage,
    )


def test_dashboard_url():
    assert dashboard_url("https://sonar.example.com/", "proj", "5") == (
        "https://sonar.example.com/dashboard?id=proj&pullRequest=5"
    )


def test_issue_url_escapes_values():
    url = issue_url("https://sonar.example.com", "my proj", "5", "AX1")
    assert url == "https://sonar.example.com/project/issues?id=my+proj&pullRequest=5&issues=AX1&open=AX1"


class TestFormatIssueNote:
    def test_body_is_recognised_as_the_issue(self):
        issue = ReportedIssue(key="AX1", line=3, path="a.py", severity="CRITICAL", type="BUG", message="Boom")
        body = format_issue_note(issue, _analysis())
        assert body.startswith("**[CRITICAL]** Bug")
        assert "Boom" in body
        assert parse_issue_identifier(body) == ProjectIssueIdentifier("proj", "AX1")

    def test_rule_included_when_present(self):
        issue = ReportedIssue(key="AX1", rule="py:S1234")
        assert "`py:S1234`" in format_issue_note(issue, _analysis())

    def test_unknown_type_title_cased(self):
        issue = ReportedIssue(key="AX1", type="NEW_KIND")
        assert "**[MAJOR]** New Kind" in format_issue_note(issue, _analysis())


class TestFormatSummary:
    def test_passed_summary(self):
        body = format_summary(_analysis())
        assert "Quality Gate passed" in body
        assert "**0** issue(s)" in body
        assert is_summary_note(body, "proj")

    def test_failed_summary(self):
        assert "Quality Gate failed" in format_summary(_analysis(gate=QualityGateStatus.ERROR))

    def test_counts_only_open_issues(self):
        issues = [
            ReportedIssue(key="A", type="BUG", severity="MAJOR", line=1, path="a.py"),
            ReportedIssue(key="B", type="BUG", severity="MINOR", status=IssueStatus.FIXED),
            ReportedIssue(key="C", type="VULNERABILITY", severity="BLOCKER"),
        ]
        body = format_summary(_analysis(issues))
        assert "**2** issue(s)" in body
        assert "**1** on changed lines" in body
        assert "| Bug | — | — | 1 | — | — | 1 |" in body
        assert "| Vulnerability | 1 | — | — | — | — | 1 |" in body
        assert "Code Smell" not in body

    def test_issues_without_line_listed(self):
        issues = [ReportedIssue(key="C", path="setup.cfg", message="Missing license", severity="INFO")]
        body = format_summary(_analysis(issues))
        assert "**Issues without a line number:**" in body
        assert "- `setup.cfg`: Missing license (info)" in body

    def test_coverage_shown(self):
        assert "coverage on new code **81.5%**" in format_summary(_analysis(coverage=81.5))

    def test_summary_is_not_an_issue_note(self):
        assert parse_issue_identifier(format_summary(_analysis())) is None
