"""Tests for discussion classification."""

from mrdecor_core.discussions import (
    OUTDATED_SUMMARY_NOTE,
    STALE_ISSUE_NOTE,
    DiscussionType,
    classify_discussion,
    classify_discussions,
    has_machine_note,
    replies,
)
from mrdecor_core.matcher import ProjectIssueIdentifier
from mrdecor_core.models import RemoteDiscussion, RemoteNote, RemoteUser

BOT = RemoteUser("sonar-bot", 1)
HUMAN = RemoteUser("alice", 2)

ISSUE_LINK = "[View in SonarQube](https://sonar.example.com/project/issues?id=proj&pullRequest=5&issues=AX1&open=AX1)"
SUMMARY_LINK = "[View in SonarQube](https://sonar.example.com/dashboard?id=proj&pullRequest=5)"


def note(id=1, author=BOT, body=ISSUE_LINK, resolvable=True, system=False, resolved=False):
    return RemoteNote(id=id, author=author, body=body, resolvable=resolvable, system=system, resolved=resolved)


def discussion(*notes, id="d1"):
    return RemoteDiscussion(id=id, notes=tuple(notes))


def classify(d, project_key="proj"):
    return classify_discussion(d, "sonar-bot", project_key)


class TestClassifyDiscussion:
    def test_empty_discussion_is_unrelated(self):
        assert classify(discussion()).type is DiscussionType.UNRELATED

    def test_foreign_first_note_is_unrelated(self):
        result = classify(discussion(note(author=HUMAN), note(id=2)))
        assert result.type is DiscussionType.UNRELATED
        assert not result.is_machine_owned

    def test_non_resolvable_machine_note_is_unrelated(self):
        assert classify(discussion(note(resolvable=False))).type is DiscussionType.UNRELATED

    def test_singleton_identifiable(self):
        result = classify(discussion(note()))
        assert result.type is DiscussionType.SINGLETON_IDENTIFIABLE
        assert result.identifier == ProjectIssueIdentifier("proj", "AX1")
        assert result.closed is False

    def test_singleton_unidentifiable(self):
        result = classify(discussion(note(body="Post with no issue ID")))
        assert result.type is DiscussionType.SINGLETON_UNIDENTIFIABLE
        assert result.identifier is None

    def test_human_reply_makes_mixed(self):
        result = classify(discussion(note(), note(id=2, author=HUMAN, body="won't fix", resolvable=False)))
        assert result.type is DiscussionType.MIXED
        assert result.identifier.issue_key == "AX1"

    def test_machine_reply_makes_mixed(self):
        result = classify(discussion(note(), note(id=2, body="another comment")))
        assert result.type is DiscussionType.MIXED

    def test_system_note_is_not_a_reply(self):
        result = classify(discussion(note(), note(id=2, author=HUMAN, body="changed this line", system=True)))
        assert result.type is DiscussionType.SINGLETON_IDENTIFIABLE

    def test_summary_regardless_of_note_count(self):
        result = classify(discussion(note(body=SUMMARY_LINK, resolvable=False), note(id=2, author=HUMAN, body="ok")))
        assert result.type is DiscussionType.SUMMARY

    def test_summary_for_other_project_is_not_summary(self):
        result = classify(discussion(note(body=SUMMARY_LINK, resolvable=False)), project_key="other")
        assert result.type is DiscussionType.UNRELATED

    def test_resolved_discussion_is_closed(self):
        assert classify(discussion(note(resolved=True))).closed is True

    def test_stale_note_marks_closed(self):
        d = discussion(note(), note(id=2, author=HUMAN, body="hm"), note(id=3, body=STALE_ISSUE_NOTE))
        result = classify(d)
        assert result.type is DiscussionType.MIXED
        assert result.closed is True

    def test_resolved_keyword_marks_closed(self):
        result = classify(discussion(note(), note(id=2, body="Resolved")))
        assert result.closed is True

    def test_resolved_keyword_from_human_does_not_close(self):
        result = classify(discussion(note(), note(id=2, author=HUMAN, body="resolved")))
        assert result.closed is False


def test_replies_skips_first_and_system_notes():
    d = discussion(note(), note(id=2, system=True), note(id=3, author=HUMAN))
    assert [n.id for n in replies(d)] == [3]


def test_has_machine_note():
    d = discussion(note(), note(id=2, author=HUMAN, body=OUTDATED_SUMMARY_NOTE), note(id=3, body=STALE_ISSUE_NOTE))
    assert has_machine_note(d, "sonar-bot", STALE_ISSUE_NOTE)
    assert not has_machine_note(d, "sonar-bot", OUTDATED_SUMMARY_NOTE)


def test_classify_discussions_preserves_order():
    ds = [discussion(note(body="x"), id="a"), discussion(note(author=HUMAN), id="b"), discussion(note(), id="c")]
    result = classify_discussions(ds, "sonar-bot", "proj")
    assert [c.discussion.id for c in result] == ["a", "b", "c"]
    assert [c.type for c in result] == [
        DiscussionType.SINGLETON_UNIDENTIFIABLE,
        DiscussionType.UNRELATED,
        DiscussionType.SINGLETON_IDENTIFIABLE,
    ]
