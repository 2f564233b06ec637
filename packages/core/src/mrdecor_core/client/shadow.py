"""Shadow client: reads go to the real platform, writes are only printed.

Backs ``mrdecor decorate --shadow``. The engine runs exactly as it would for
real, so the printed operations are the ones a live run would issue against
the same snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

from mrdecor_core.client.base import BaseClient
from mrdecor_core.models import LineNote, OutboundNote, PipelineStatus, RemoteDiscussion

console = Console()


@dataclass
class ShadowOperation:
    action: str
    discussion_id: str | None = None
    detail: dict = field(default_factory=dict)


class ShadowClient(BaseClient):
    def __init__(self, inner: BaseClient):
        self._inner = inner
        self.operations: list[ShadowOperation] = []

    def get_merge_request(self, project_path, iid):
        return self._inner.get_merge_request(project_path, iid)

    def get_current_user(self):
        return self._inner.get_current_user()

    def get_commits(self, project_id, iid):
        return self._inner.get_commits(project_id, iid)

    def get_discussions(self, project_id, iid):
        return self._inner.get_discussions(project_id, iid)

    def _record(self, action: str, discussion_id: str | None = None, **detail) -> None:
        self.operations.append(ShadowOperation(action, discussion_id, detail))

    def create_discussion(self, project_id: int, iid: int, note: OutboundNote) -> RemoteDiscussion:
        discussion_id = f"shadow-{len(self.operations) + 1}"
        if isinstance(note, LineNote):
            self._record("create", discussion_id, path=note.new_path, line=note.new_line, body=note.body)
        else:
            self._record("create", discussion_id, body=note.body)
        return RemoteDiscussion(id=discussion_id)

    def add_note_to_discussion(self, project_id, iid, discussion_id, text):
        self._record("add-note", discussion_id, body=text)

    def edit_note(self, project_id, iid, discussion_id, note_id, text):
        self._record("edit", discussion_id, note_id=note_id, body=text)

    def delete_note(self, project_id, iid, discussion_id, note_id):
        self._record("delete", discussion_id, note_id=note_id)

    def resolve_discussion(self, project_id, iid, discussion_id):
        self._record("resolve", discussion_id)

    def push_build_status(self, project_id: int, revision: str, status: PipelineStatus) -> None:
        self._record("status", revision=revision, state=status.state.value, url=status.target_url)

    def close(self) -> None:
        self._inner.close()

    def print_operations(self) -> None:
        """Print the recorded writes to the terminal."""
        _color = {"create": "green", "resolve": "cyan", "add-note": "yellow", "edit": "blue", "delete": "red"}
        if not self.operations:
            console.print("[yellow]Shadow mode: no changes would be made.[/yellow]")
            return
        console.print(f"\n[bold]Shadow run — {len(self.operations)} operation(s) (not sent)[/bold]\n")
        for op in self.operations:
            color = _color.get(op.action, "white")
            target = f" [dim]{op.discussion_id}[/dim]" if op.discussion_id else ""
            console.print(f"[{color}]{op.action.upper()}[/{color}]{target}")
            if "path" in op.detail:
                path = escape(op.detail["path"])
                console.print(f"  [bold cyan]{path}[/bold cyan]  line [bold]{op.detail['line']}[/bold]")
            if "revision" in op.detail:
                console.print(f"  {op.detail['state']} @ {op.detail['revision'][:7]}  {op.detail['url']}")
            body = op.detail.get("body", "").strip()
            if body:
                console.print(f"  {escape(body.splitlines()[0])}")
            console.print()
