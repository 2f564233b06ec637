"""Load an analysis report (JSON) into an AnalysisResult."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from mrdecor_core.models import AnalysisResult, IssueStatus, QualityGateStatus, ReportedIssue

logger = logging.getLogger(__name__)


def _optional_int(value, field_name: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {field_name}: {value!r}") from e


def _issue_from_dict(data: dict) -> ReportedIssue:
    if not isinstance(data, dict) or not data.get("key"):
        raise ValueError(f"Issue entry without a key: {data!r}")
    try:
        status = IssueStatus(str(data.get("status", "OPEN")).upper())
    except ValueError as e:
        raise ValueError(f"Unknown status for issue {data['key']}: {data.get('status')!r}") from e
    return ReportedIssue(
        key=str(data["key"]),
        status=status,
        line=_optional_int(data.get("line"), "line"),
        path=data.get("path") or None,
        severity=str(data.get("severity") or "MAJOR").upper(),
        type=str(data.get("type") or "CODE_SMELL").upper(),
        message=data.get("message") or "",
        rule=data.get("rule"),
    )


def analysis_from_dict(data: dict) -> AnalysisResult:
    if not isinstance(data, dict):
        raise ValueError("Analysis report must be a JSON object.")
    if not data.get("project_key"):
        raise ValueError("Analysis report is missing 'project_key'.")

    try:
        gate = QualityGateStatus(str(data.get("quality_gate", "ERROR")).upper())
    except ValueError as e:
        raise ValueError(f"Unknown quality_gate: {data.get('quality_gate')!r}") from e

    coverage = data.get("new_coverage")
    if coverage is not None:
        try:
            coverage = float(coverage)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid new_coverage: {coverage!r}") from e

    issues = [_issue_from_dict(i) for i in data.get("issues") or []]

    return AnalysisResult(
        project_key=str(data["project_key"]),
        pull_request_id=str(data.get("pull_request_id") or ""),
        commit_sha=str(data.get("commit_sha") or ""),
        quality_gate=gate,
        server_url=str(data.get("server_url") or ""),
        issues=issues,
        new_coverage=coverage,
    )


def load_analysis(path: str) -> AnalysisResult:
    """Read the report at ``path``.

    Raises FileNotFoundError if the file does not exist and ValueError if it is
    not valid JSON or lacks required fields.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Analysis report not found: {path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Analysis report is not valid JSON: {e}") from e
    result = analysis_from_dict(data)
    logger.debug("Loaded %d issue(s) for %s from %s", len(result.issues), result.project_key, path)
    return result
