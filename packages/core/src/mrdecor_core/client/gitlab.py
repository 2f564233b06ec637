"""GitLab REST v4 client.

One requests.Session per client, authenticated with a ``PRIVATE-TOKEN`` header.
No retries and no backoff: any network error, non-2xx response or undecodable
body surfaces as TransportError and the caller decides what it means.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import requests

from mrdecor_core.client.base import BaseClient, TransportError
from mrdecor_core.models import (
    DiffRefs,
    LineNote,
    MergeRequestRef,
    OutboundNote,
    PipelineStatus,
    RemoteDiscussion,
    RemoteNote,
    RemoteUser,
)

logger = logging.getLogger(__name__)

_PER_PAGE = 100


def _user_from_api(data: dict | None) -> RemoteUser:
    data = data or {}
    return RemoteUser(username=data.get("username", ""), id=data.get("id"))


def _note_from_api(data: dict) -> RemoteNote:
    return RemoteNote(
        id=data["id"],
        author=_user_from_api(data.get("author")),
        body=data.get("body") or "",
        resolvable=bool(data.get("resolvable", False)),
        system=bool(data.get("system", False)),
        resolved=bool(data.get("resolved", False)),
    )


def _discussion_from_api(data: dict) -> RemoteDiscussion:
    return RemoteDiscussion(id=data["id"], notes=tuple(_note_from_api(n) for n in data.get("notes") or []))


def _merge_request_from_api(data: dict) -> MergeRequestRef:
    refs = data.get("diff_refs") or {}
    return MergeRequestRef(
        iid=data["iid"],
        source_project_id=data["source_project_id"],
        target_project_id=data["target_project_id"],
        diff_refs=DiffRefs(
            base_sha=refs.get("base_sha", ""),
            start_sha=refs.get("start_sha", ""),
            head_sha=refs.get("head_sha", ""),
        ),
        web_url=data.get("web_url", ""),
    )


def _note_payload(note: OutboundNote) -> dict:
    payload: dict = {"body": note.body}
    if isinstance(note, LineNote):
        payload.update(
            {
                "position[position_type]": "text",
                "position[base_sha]": note.base_sha,
                "position[start_sha]": note.start_sha,
                "position[head_sha]": note.head_sha,
                "position[old_path]": note.old_path,
                "position[new_path]": note.new_path,
                "position[new_line]": note.new_line,
            }
        )
    return payload


class GitlabClient(BaseClient):
    def __init__(self, base_url: str, token: str, timeout: float = 30):
        self._api_url = base_url.rstrip("/") + "/api/v4"
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"PRIVATE-TOKEN": token, "Accept": "application/json"})

    # ------------------------------------------------------------------ #
    # HTTP plumbing                                                        #
    # ------------------------------------------------------------------ #

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._api_url + path
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        return response

    def _json(self, method: str, path: str, **kwargs):
        response = self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned a non-JSON body") from e

    def _paginate(self, path: str) -> list:
        items: list = []
        page = "1"
        while page:
            response = self._request("GET", path, params={"per_page": _PER_PAGE, "page": page})
            try:
                items.extend(response.json())
            except ValueError as e:
                raise TransportError(f"GET {path} returned a non-JSON body") from e
            page = response.headers.get("X-Next-Page", "").strip()
        return items

    @staticmethod
    def _mr_path(project_id: int, iid: int) -> str:
        return f"/projects/{project_id}/merge_requests/{iid}"

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def get_merge_request(self, project_path: str, iid: int) -> MergeRequestRef:
        data = self._json("GET", f"/projects/{quote(project_path, safe='')}/merge_requests/{iid}")
        try:
            return _merge_request_from_api(data)
        except (KeyError, TypeError) as e:
            raise TransportError(f"Unexpected merge request payload: {e}") from e

    def get_current_user(self) -> RemoteUser:
        return _user_from_api(self._json("GET", "/user"))

    def get_commits(self, project_id: int, iid: int) -> list[str]:
        raw = self._paginate(self._mr_path(project_id, iid) + "/commits")
        try:
            return [c["id"] for c in raw]
        except (KeyError, TypeError) as e:
            raise TransportError(f"Unexpected commit payload: {e}") from e

    def get_discussions(self, project_id: int, iid: int) -> list[RemoteDiscussion]:
        raw = self._paginate(self._mr_path(project_id, iid) + "/discussions")
        try:
            return [_discussion_from_api(d) for d in raw]
        except (KeyError, TypeError) as e:
            raise TransportError(f"Unexpected discussion payload: {e}") from e

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def create_discussion(self, project_id: int, iid: int, note: OutboundNote) -> RemoteDiscussion:
        data = self._json("POST", self._mr_path(project_id, iid) + "/discussions", data=_note_payload(note))
        try:
            return _discussion_from_api(data)
        except (KeyError, TypeError) as e:
            raise TransportError(f"Unexpected discussion payload: {e}") from e

    def add_note_to_discussion(self, project_id: int, iid: int, discussion_id: str, text: str) -> None:
        self._request(
            "POST",
            f"{self._mr_path(project_id, iid)}/discussions/{discussion_id}/notes",
            data={"body": text},
        )

    def edit_note(self, project_id: int, iid: int, discussion_id: str, note_id: int, text: str) -> None:
        self._request(
            "PUT",
            f"{self._mr_path(project_id, iid)}/discussions/{discussion_id}/notes/{note_id}",
            data={"body": text},
        )

    def delete_note(self, project_id: int, iid: int, discussion_id: str, note_id: int) -> None:
        self._request("DELETE", f"{self._mr_path(project_id, iid)}/discussions/{discussion_id}/notes/{note_id}")

    def resolve_discussion(self, project_id: int, iid: int, discussion_id: str) -> None:
        self._request(
            "PUT",
            f"{self._mr_path(project_id, iid)}/discussions/{discussion_id}",
            params={"resolved": "true"},
        )

    def push_build_status(self, project_id: int, revision: str, status: PipelineStatus) -> None:
        payload: dict = {
            "state": status.state.value,
            "name": status.name,
            "description": status.description,
            "target_url": status.target_url,
        }
        if status.coverage is not None:
            payload["coverage"] = status.coverage
        if status.pipeline_id is not None:
            payload["pipeline_id"] = status.pipeline_id
        self._request("POST", f"/projects/{project_id}/statuses/{revision}", data=payload)

    def close(self) -> None:
        self._session.close()
