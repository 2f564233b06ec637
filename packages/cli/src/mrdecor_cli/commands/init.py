"""init command — interactive setup wizard.

Writes .mrdecor.yml and, optionally, a GitLab CI job template so merge
requests are decorated on every pipeline.
"""

from __future__ import annotations

import importlib.metadata
import subprocess
from pathlib import Path
from urllib.parse import urlparse

import click
import yaml
from rich.console import Console

console = Console()

_CI_TEMPLATE = """\
mrdecor:
  stage: {stage}
  image: python:3.12
  rules:
    - if: $CI_PIPELINE_SOURCE == "merge_request_event"
  variables:
    GITLAB_TOKEN: $MRDECOR_GITLAB_TOKEN
  script:
    - pip install "mrdecor=={version}"
    - >
      mrdecor decorate
      --project "$CI_PROJECT_PATH"
      --mr "$CI_MERGE_REQUEST_IID"
      --report {report}
      --pipeline-id "$CI_PIPELINE_ID"
"""


@click.command("init")
@click.option("--project", default=None, help="GitLab project path (group/name). Auto-detected from git remote.")
def init_cmd(project: str | None):
    """Set up mrdecor for a repository.

    Creates .mrdecor.yml and optionally generates .gitlab/ci/mrdecor.yml.
    """
    console.print("\n[bold cyan]mrdecor init[/bold cyan] — setup wizard\n")

    detected_url = None
    if project is None:
        detected = _detect_project_from_git()
        if detected:
            detected_url, project = detected
            console.print(f"[dim]Detected project: {project} on {detected_url}[/dim]")
        else:
            project = click.prompt("GitLab project (group/name)")

    gitlab_url = click.prompt("GitLab URL", default=detected_url or "https://gitlab.com")
    summary_first = click.confirm("Post the summary note before issue discussions?", default=False)
    summary_edit = click.confirm("Edit the existing summary note instead of replacing it?", default=False)

    config: dict = {
        "gitlab_url": gitlab_url,
        "summary_note_first": summary_first,
        "summary_note_edit": summary_edit,
    }
    _write_config(config)
    console.print("[green]Created .mrdecor.yml[/green]")

    setup_ci = click.confirm("\nGenerate .gitlab/ci/mrdecor.yml for GitLab CI?", default=True)
    if setup_ci:
        report = click.prompt("Path of the analysis report in CI", default="analysis-report.json")
        stage = click.prompt("CI stage", default="test")
        _write_ci_template(report, stage)
        console.print("[green]Created .gitlab/ci/mrdecor.yml[/green]")
        console.print(
            "\n[yellow]Include it from .gitlab-ci.yml and add a masked [bold]MRDECOR_GITLAB_TOKEN[/bold] "
            "CI/CD variable with api scope (Settings → CI/CD → Variables).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Decorate a merge request with: [bold]mrdecor decorate --project {project} --report <json>[/bold]")


def _detect_project_from_git() -> tuple[str, str] | None:
    """Return (instance URL, project path) parsed from the origin remote, or None."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return parse_remote_url(result.stdout.strip())


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """Split a git remote into (instance URL, project path).

    https://gitlab.example.com/group/sub/repo.git  →  ("https://gitlab.example.com", "group/sub/repo")
    git@gitlab.example.com:group/repo.git          →  ("https://gitlab.example.com", "group/repo")
    """
    if "://" in url:
        parsed = urlparse(url)
        host = parsed.hostname
        path = parsed.path
    elif "@" in url and ":" in url:
        host, path = url.split("@", 1)[1].split(":", 1)
    else:
        return None
    path = path.strip("/").removesuffix(".git")
    if not host or "/" not in path:
        return None
    return f"https://{host}", path


def _write_config(config: dict) -> None:
    """Write or update .mrdecor.yml, preserving any existing keys."""
    path = Path(".mrdecor.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    try:
        return importlib.metadata.version("mrdecor")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def _write_ci_template(report: str, stage: str) -> None:
    ci_dir = Path(".gitlab/ci")
    ci_dir.mkdir(parents=True, exist_ok=True)
    (ci_dir / "mrdecor.yml").write_text(_CI_TEMPLATE.format(report=report, stage=stage, version=_get_version()))
