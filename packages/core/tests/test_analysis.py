"""Tests for loading the analysis report."""

import json

import pytest

from mrdecor_core.analysis import analysis_from_dict, load_analysis
from mrdecor_core.models import IssueStatus, QualityGateStatus


def _report(**overrides):
    data = {
        "project_key": "proj",
        "pull_request_id": 5,
        "commit_sha": "abc",
        "quality_gate": "OK",
        "server_url": "https://sonar.example.com",
        "issues": [
            {"key": "AX1", "status": "OPEN", "line": 42, "path": "src/app.py", "severity": "major", "type": "BUG"},
            {"key": "AX2", "status": "FIXED"},
        ],
    }
    data.update(overrides)
    return data


def test_load_analysis(tmp_path):
    path = tmp_path / "report.json"
    path.write_text(json.dumps(_report(new_coverage="81.5")))

    result = load_analysis(str(path))

    assert result.project_key == "proj"
    assert result.pull_request_id == "5"
    assert result.quality_gate is QualityGateStatus.OK
    assert result.passed
    assert result.new_coverage == 81.5
    first, second = result.issues
    assert first.line == 42
    assert first.severity == "MAJOR"
    assert second.status is IssueStatus.FIXED
    assert second.line is None
    assert second.path is None
    assert [i.key for i in result.open_issues()] == ["AX1"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_analysis(str(tmp_path / "missing.json"))


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "report.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_analysis(str(path))


def test_missing_project_key_raises():
    with pytest.raises(ValueError, match="project_key"):
        analysis_from_dict(_report(project_key=None))


def test_non_object_raises():
    with pytest.raises(ValueError):
        analysis_from_dict([])


def test_unknown_quality_gate_raises():
    with pytest.raises(ValueError, match="quality_gate"):
        analysis_from_dict(_report(quality_gate="WARN"))


def test_unknown_issue_status_raises():
    with pytest.raises(ValueError, match="AX9"):
        analysis_from_dict(_report(issues=[{"key": "AX9", "status": "DELETED"}]))


def test_issue_without_key_raises():
    with pytest.raises(ValueError):
        analysis_from_dict(_report(issues=[{"line": 3}]))


def test_non_numeric_line_raises():
    with pytest.raises(ValueError, match="line"):
        analysis_from_dict(_report(issues=[{"key": "AX1", "line": "abc"}]))


def test_error_gate_is_not_passed():
    assert not analysis_from_dict(_report(quality_gate="error")).passed


def test_defaults_for_missing_issue_fields():
    result = analysis_from_dict(_report(issues=[{"key": "AX1"}]))
    issue = result.issues[0]
    assert issue.status is IssueStatus.OPEN
    assert issue.severity == "MAJOR"
    assert issue.type == "CODE_SMELL"
    assert issue.message == ""
