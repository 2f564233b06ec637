"""Tests for git blame based changeset lookup."""

import subprocess
from unittest.mock import MagicMock

from mrdecor_core.scm import GitBlameScm

SHA = "a" * 40

PORCELAIN = (
    f"{SHA} 12 12 1\n"
    "author Alice\n"
    "author-mail <alice@example.com>\n"
    "summary Add feature\n"
    "filename src/app.py\n"
    "\tprint('hello')\n"
)


def _completed(stdout="", returncode=0, stderr=""):
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


def test_returns_blamed_sha(mocker):
    run = mocker.patch("mrdecor_core.scm.subprocess.run", return_value=_completed(PORCELAIN))

    assert GitBlameScm("/repo").changeset_for_line("src/app.py", 12) == SHA

    args, kwargs = run.call_args
    assert args[0] == ["git", "blame", "--porcelain", "-L", "12,12", "--", "src/app.py"]
    assert kwargs["cwd"] == "/repo"
    assert kwargs["timeout"] == 30


def test_uncommitted_line_returns_none(mocker):
    mocker.patch("mrdecor_core.scm.subprocess.run", return_value=_completed(PORCELAIN.replace(SHA, "0" * 40)))
    assert GitBlameScm().changeset_for_line("src/app.py", 12) is None


def test_nonzero_exit_returns_none(mocker):
    mocker.patch(
        "mrdecor_core.scm.subprocess.run",
        return_value=_completed(returncode=128, stderr="fatal: file has only 3 lines"),
    )
    assert GitBlameScm().changeset_for_line("src/app.py", 999) is None


def test_empty_output_returns_none(mocker):
    mocker.patch("mrdecor_core.scm.subprocess.run", return_value=_completed(""))
    assert GitBlameScm().changeset_for_line("src/app.py", 1) is None


def test_git_missing_returns_none(mocker):
    mocker.patch("mrdecor_core.scm.subprocess.run", side_effect=FileNotFoundError("git"))
    assert GitBlameScm().changeset_for_line("src/app.py", 1) is None


def test_timeout_returns_none(mocker):
    mocker.patch("mrdecor_core.scm.subprocess.run", side_effect=subprocess.TimeoutExpired("git", 30))
    assert GitBlameScm().changeset_for_line("src/app.py", 1) is None


def test_unreadable_repo_root_returns_none(mocker):
    mocker.patch("mrdecor_core.scm.subprocess.run", side_effect=PermissionError(13, "Permission denied", "/repo"))
    assert GitBlameScm("/repo").changeset_for_line("src/app.py", 1) is None
