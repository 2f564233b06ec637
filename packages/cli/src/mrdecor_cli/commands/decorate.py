"""decorate command — push an analysis report onto a merge request."""

from __future__ import annotations

import click
from rich.console import Console

from mrdecor_core.analysis import load_analysis
from mrdecor_core.config import apply_overrides, parse_pipeline_id
from mrdecor_core.decorator import DecorationError, decorate_merge_request
from mrdecor_core.scm import GitBlameScm

console = Console()


def _error_message(error: Exception) -> str:
    cause = error.__cause__
    return f"{error}: {cause}" if cause else str(error)


@click.command("decorate")
@click.option("--project", "project_path", required=True, help="GitLab project path (group/name) or numeric id.")
@click.option("--report", "report_path", required=True, help="Path to the analysis report (JSON).")
@click.option(
    "--mr",
    "merge_request_id",
    default=None,
    help="Merge request IID. Defaults to pull_request_id from the report.",
)
@click.option(
    "--summary-note-first/--no-summary-note-first",
    default=None,
    help="Post the summary before the issue discussions. Overrides config file.",
)
@click.option(
    "--summary-note-edit/--no-summary-note-edit",
    default=None,
    help="Edit the existing summary note instead of replacing it. Overrides config file.",
)
@click.option("--pipeline-id", default=None, help="Pipeline id attached to the commit status.")
@click.option(
    "--repo-root",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False),
    help="Checkout used for git blame.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the operations without sending them to GitLab.",
)
@click.pass_context
def decorate_cmd(
    ctx,
    project_path: str,
    report_path: str,
    merge_request_id: str | None,
    summary_note_first: bool | None,
    summary_note_edit: bool | None,
    pipeline_id: str | None,
    repo_root: str,
    shadow: bool,
):
    """Reconcile an analysis report with a merge request's discussions.

    New issues get a line discussion, issues that are gone have their
    discussion resolved (or flagged, if people replied), and the summary note
    and commit status are refreshed.

    \b
    Required environment variables:
      GITLAB_TOKEN         GitLab token with api scope (or use glab CLI)
    """
    config = apply_overrides(
        ctx.obj["config"],
        {
            "summary_note_first": summary_note_first,
            "summary_note_edit": summary_note_edit,
            "pipeline_id": parse_pipeline_id(pipeline_id) if pipeline_id is not None else None,
        },
    )

    try:
        analysis = load_analysis(report_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    client = ctx.obj["build_client"](shadow)
    try:
        result = decorate_merge_request(
            client,
            GitBlameScm(repo_root),
            analysis,
            project_path,
            config,
            merge_request_id=merge_request_id,
        )
    except DecorationError as e:
        raise click.ClickException(_error_message(e))
    finally:
        client.close()

    if shadow:
        client.print_operations()
        console.print(f"[bold]Shadow run complete for {result.merge_request_url}[/bold]")
        return

    console.print(f"\n[green]Decorated {result.merge_request_url}[/green]")
    console.print(
        f"  {result.created_discussions} created · {result.resolved_discussions} resolved · "
        f"{result.noted_discussions} flagged · summary {result.summary_action}"
    )
