"""Tests for the in-memory chat log."""

from contrato.integrations.chat import ChatLog


class TestChatLog:
    """Publishing roll reports."""

    async def test_publish_keeps_order(self):
        chat = ChatLog()
        await chat.publish("a", "<p>1</p>")
        await chat.publish("b", "<p>2</p>")

        assert [m.content for m in chat.messages] == ["<p>1</p>", "<p>2</p>"]
        assert chat.messages[0].posted_at is not None

    async def test_oldest_dropped_past_limit(self):
        chat = ChatLog(max_messages=2)
        for i in range(3):
            await chat.publish("a", str(i))

        assert [m.content for m in chat.messages] == ["1", "2"]
