"""Tests for text cleanup and chat-message construction."""

from __future__ import annotations

from splice.transforms.text import ChatMessage, clean_text, infer_role, messages_from_conversation
from tests.helpers.factories import make_item


class TestCleanText:
    def test_strips_tco_mentions_hashtags(self):
        text = "Hello @friend check https://t.co/abc123 #python"
        assert clean_text(text) == "Hello check"

    def test_domain_style_mentions(self):
        assert clean_text("hi @user.bsky.social and @berduck.deepfates.com") == "hi and"

    def test_expands_urls_from_entities(self):
        entities = {"urls": [{"url": "https://t.co/xyz", "expanded_url": "https://example.com/page"}]}
        assert clean_text("see https://t.co/xyz", entities) == "see https://example.com/page"

    def test_preserves_paragraphs_and_caps_blank_lines(self):
        text = "first  line\r\n\r\n\r\n\r\nsecond\t\tline  "
        assert clean_text(text) == "first line\n\nsecond line"

    def test_none_is_empty(self):
        assert clean_text(None) == ""


class TestInferRole:
    def test_archive_tweet_is_assistant(self):
        assert infer_role(make_item("1", raw={"full_text": "hi"})) == "assistant"

    def test_bluesky_post_is_assistant(self):
        assert infer_role(make_item("1", source="bluesky:post")) == "assistant"

    def test_other_is_user(self):
        assert infer_role(make_item("1", source="bluesky:fetched")) == "user"


class TestMessagesFromConversation:
    def test_merges_consecutive_roles_and_trims_to_assistant(self):
        items = [
            make_item("1", source="bluesky:fetched", text="question?"),
            make_item("2", source="bluesky:post", text="answer one"),
            make_item("3", source="bluesky:post", text="answer two"),
            make_item("4", source="bluesky:fetched", text="follow-up"),
        ]
        assert messages_from_conversation(items) == [
            ChatMessage(role="user", content="question?"),
            ChatMessage(role="assistant", content="answer one\n\nanswer two"),
        ]

    def test_empty_after_cleaning_skipped(self):
        items = [
            make_item("1", source="bluesky:post", text="@only #tags"),
            make_item("2", source="bluesky:post", text="real text"),
        ]
        assert messages_from_conversation(items) == [ChatMessage(role="assistant", content="real text")]

    def test_no_assistant_turn_returns_empty(self):
        items = [make_item("1", source="bluesky:fetched", text="hello")]
        assert messages_from_conversation(items) == []

    def test_system_message_prepended(self):
        items = [
            make_item("1", source="bluesky:fetched", text="question?"),
            make_item("2", source="bluesky:post", text="answer"),
        ]
        messages = messages_from_conversation(items, system_message="Be yourself")
        assert [m.role for m in messages] == ["system", "user", "assistant"]
        assert messages[0].content == "Be yourself"

    def test_system_message_not_added_to_empty_result(self):
        items = [make_item("1", source="bluesky:fetched", text="hello")]
        assert messages_from_conversation(items, system_message="Be yourself") == []

    def test_uses_raw_entities(self):
        raw = {"full_text": "x", "entities": {"urls": [{"url": "https://t.co/a", "expanded_url": "https://e.com"}]}}
        items = [make_item("1", text="link https://t.co/a", raw=raw)]
        assert messages_from_conversation(items)[0].to_dict() == {"role": "assistant", "content": "link https://e.com"}
