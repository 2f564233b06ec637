"""discussions command — show how a merge request's discussions are classified."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mrdecor_core.client.base import TransportError
from mrdecor_core.discussions import DiscussionType, classify_discussions

console = Console()

_TYPE_STYLE = {
    DiscussionType.UNRELATED: "dim",
    DiscussionType.SINGLETON_IDENTIFIABLE: "green",
    DiscussionType.SINGLETON_UNIDENTIFIABLE: "yellow",
    DiscussionType.MIXED: "magenta",
    DiscussionType.SUMMARY: "cyan",
}


@click.command("discussions")
@click.option("--project", "project_path", required=True, help="GitLab project path (group/name) or numeric id.")
@click.option("--mr", "merge_request_id", type=int, required=True, help="Merge request IID.")
@click.option("--project-key", default=None, help="Analysis project key used to recognise summary notes.")
@click.option("--all", "show_all", is_flag=True, help="Include discussions not started by the machine account.")
@click.pass_context
def discussions_cmd(ctx, project_path: str, merge_request_id: int, project_key: str | None, show_all: bool):
    """List the merge request's discussions as the decorator sees them.

    Read-only: nothing is written to GitLab.
    """
    client = ctx.obj["build_client"]()
    try:
        mr = client.get_merge_request(project_path, merge_request_id)
        user = client.get_current_user()
        raw = client.get_discussions(mr.target_project_id, mr.iid)
    except TransportError as e:
        raise click.ClickException(str(e))
    finally:
        client.close()

    classified = classify_discussions(raw, user.username, project_key)
    if not show_all:
        classified = [c for c in classified if c.is_machine_owned]

    if not classified:
        console.print(f"[yellow]No discussions by {user.username} found.[/yellow]")
        return

    table = Table(title=f"Discussions — {mr.web_url}", show_header=True, header_style="bold cyan")
    table.add_column("Discussion", width=10)
    table.add_column("Type", width=26)
    table.add_column("Issue", max_width=30)
    table.add_column("Notes", justify="right", width=6)
    table.add_column("Closed", width=7)

    for c in classified:
        style = _TYPE_STYLE.get(c.type, "white")
        issue = ""
        if c.identifier is not None:
            issue = c.identifier.issue_key
            if c.identifier.project_key and c.identifier.project_key != project_key:
                issue = f"{c.identifier.project_key}:{issue}"
        table.add_row(
            c.discussion.id[:8],
            f"[{style}]{c.type.value}[/{style}]",
            issue,
            str(len(c.discussion.notes)),
            "yes" if c.closed else "",
        )

    console.print(table)
