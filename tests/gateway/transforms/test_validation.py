"""Tests for inbound request validation."""

from gemini_gateway.gateway.transforms.validation import (
    ChatCompletionRequest,
    parse_chat_request,
    parse_embedding_request,
)


class TestParseChatRequest:
    """Tests for parse_chat_request."""

    def test_valid_request(self):
        request, errors = parse_chat_request(
            {"model": "gpt-4o", "messages": [{"role": "user", "content": "Hi"}], "stream": True}
        )

        assert errors == []
        assert request is not None
        assert request.stream is True

    def test_missing_model(self):
        request, errors = parse_chat_request({"messages": [{"role": "user", "content": "Hi"}]})

        assert request is None
        assert any("model" in e for e in errors)

    def test_empty_messages(self):
        request, errors = parse_chat_request({"model": "gpt-4o", "messages": []})

        assert request is None
        assert any("empty" in e for e in errors)

    def test_unknown_role(self):
        request, errors = parse_chat_request({"model": "gpt-4o", "messages": [{"role": "tool", "content": "x"}]})

        assert request is None
        assert errors

    def test_unknown_fields_ignored(self):
        """Newer OpenAI parameters do not fail validation."""
        request, errors = parse_chat_request(
            {
                "model": "gpt-4o",
                "messages": [{"role": "user", "content": "Hi"}],
                "parallel_tool_calls": False,
                "logit_bias": {},
            }
        )

        assert errors == []
        assert request is not None

    def test_not_an_object(self):
        request, errors = parse_chat_request(["not", "an", "object"])

        assert request is None
        assert errors

    def test_include_usage(self):
        request = ChatCompletionRequest(
            model="m",
            messages=[{"role": "user", "content": "Hi"}],
            stream=True,
            stream_options={"include_usage": True},
        )

        assert request.include_usage is True


class TestParseEmbeddingRequest:
    """Tests for parse_embedding_request."""

    def test_string_input(self):
        request, errors = parse_embedding_request({"model": "text-embedding-3-small", "input": "hello"})

        assert errors == []
        assert request.inputs == ["hello"]

    def test_list_input(self):
        request, _ = parse_embedding_request({"model": "text-embedding-3-small", "input": ["a", "b"]})

        assert request.inputs == ["a", "b"]

    def test_empty_list_rejected(self):
        request, errors = parse_embedding_request({"model": "text-embedding-3-small", "input": []})

        assert request is None
        assert errors

    def test_base64_encoding_rejected(self):
        request, errors = parse_embedding_request(
            {"model": "text-embedding-3-small", "input": "a", "encoding_format": "base64"}
        )

        assert request is None
        assert any("encoding_format" in e for e in errors)
