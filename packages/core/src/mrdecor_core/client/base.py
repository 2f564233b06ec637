"""Abstract review-platform client.

The reconciliation engine depends on BaseClient, not on a concrete platform,
so the GitLab REST client and the shadow (dry-run) client are interchangeable.

Every method raises TransportError when the remote call cannot complete.
There are no retries at this layer or above it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mrdecor_core.models import (
        MergeRequestRef,
        OutboundNote,
        PipelineStatus,
        RemoteDiscussion,
        RemoteUser,
    )


class TransportError(Exception):
    """A call to the review platform failed."""


class BaseClient(ABC):
    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_merge_request(self, project_path: str, iid: int) -> MergeRequestRef:
        """Fetch the merge request snapshot for a project path and IID."""

    @abstractmethod
    def get_current_user(self) -> RemoteUser:
        """Return the identity the client authenticates as."""

    @abstractmethod
    def get_commits(self, project_id: int, iid: int) -> list[str]:
        """Return the SHAs of every commit in the merge request."""

    @abstractmethod
    def get_discussions(self, project_id: int, iid: int) -> list[RemoteDiscussion]:
        """Return every discussion on the merge request, notes in creation order."""

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def create_discussion(self, project_id: int, iid: int, note: OutboundNote) -> RemoteDiscussion:
        """Start a new discussion with ``note`` as its first note."""

    @abstractmethod
    def add_note_to_discussion(self, project_id: int, iid: int, discussion_id: str, text: str) -> None:
        """Append a reply to an existing discussion."""

    @abstractmethod
    def edit_note(self, project_id: int, iid: int, discussion_id: str, note_id: int, text: str) -> None:
        """Replace the body of a note."""

    @abstractmethod
    def delete_note(self, project_id: int, iid: int, discussion_id: str, note_id: int) -> None:
        """Delete a note."""

    @abstractmethod
    def resolve_discussion(self, project_id: int, iid: int, discussion_id: str) -> None:
        """Mark a discussion as resolved."""

    @abstractmethod
    def push_build_status(self, project_id: int, revision: str, status: PipelineStatus) -> None:
        """Publish a commit/pipeline status for ``revision``."""

    def close(self) -> None:
        """Release any resources held by the client (HTTP sessions).

        Default is a no-op so callers can always call close() safely.
        """
