"""Tests for OpenAI → Gemini request translation."""

import pytest

from gemini_gateway.gateway.errors import InvalidRequest, UnsupportedContent
from gemini_gateway.gateway.transforms.request import (
    build_embed_requests,
    build_generate_request,
    build_generation_config,
    merge_turns,
    translate_chat,
    translate_embedding,
)
from gemini_gateway.gateway.transforms.types import Content, Part
from gemini_gateway.gateway.transforms.validation import ChatCompletionRequest, EmbeddingRequest


def chat(messages, **kwargs):
    return ChatCompletionRequest(model="gpt-4o", messages=messages, **kwargs)


class TestTranslateChat:
    """Tests for translate_chat."""

    def test_one_content_per_message_in_order(self):
        """Roles map system→system, user→user, assistant→model."""
        request = chat(
            [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello"},
                {"role": "user", "content": "Bye"},
            ]
        )

        contents = translate_chat(request)

        assert [c.role for c in contents] == ["system", "user", "model", "user"]
        assert [c.text for c in contents] == ["Be brief.", "Hi", "Hello", "Bye"]

    def test_multipart_text(self):
        """Text parts keep their order."""
        request = chat(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "first"},
                        {"type": "text", "text": "second"},
                    ],
                }
            ]
        )

        (content,) = translate_chat(request)

        assert [p.text for p in content.parts] == ["first", "second"]

    def test_data_url_image_is_inlined(self):
        """A base64 data URL becomes inline data with its mime type."""
        request = chat(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "What is this?"},
                        {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}},
                    ],
                }
            ]
        )

        (content,) = translate_chat(request)

        image = content.parts[1]
        assert image.type == "inline_data"
        assert image.mime_type == "image/png"
        assert image.data == "iVBORw0KGgo="
        assert image.to_dict() == {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}

    def test_remote_image_is_file_reference(self):
        """An https image URL becomes a file reference."""
        request = chat(
            [
                {
                    "role": "user",
                    "content": [{"type": "image_url", "image_url": {"url": "https://example.com/cat.jpg"}}],
                }
            ]
        )

        (content,) = translate_chat(request)

        assert content.parts[0].to_dict() == {
            "fileData": {"mimeType": "image/jpeg", "fileUri": "https://example.com/cat.jpg"}
        }

    def test_unknown_part_type_names_message(self):
        """Unsupported part types report the offending message index."""
        request = chat(
            [
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
                {"role": "user", "content": [{"type": "input_audio", "input_audio": {"data": "..."}}]},
            ]
        )

        with pytest.raises(UnsupportedContent) as exc_info:
            translate_chat(request)

        assert exc_info.value.message_index == 2
        assert "messages[2]" in exc_info.value.message

    def test_unsupported_image_scheme(self):
        """ftp and other schemes cannot be passed to Gemini."""
        request = chat(
            [{"role": "user", "content": [{"type": "image_url", "image_url": {"url": "ftp://host/a.png"}}]}]
        )

        with pytest.raises(UnsupportedContent):
            translate_chat(request)

    def test_empty_content_rejected(self):
        """A message with empty content is invalid."""
        with pytest.raises(InvalidRequest, match="messages\\[0\\]"):
            translate_chat(chat([{"role": "user", "content": ""}]))

    def test_system_after_turn_rejected(self):
        """System messages must precede the conversation."""
        request = chat(
            [
                {"role": "user", "content": "Hi"},
                {"role": "system", "content": "Be brief."},
            ]
        )

        with pytest.raises(InvalidRequest, match="system"):
            translate_chat(request)

    def test_system_only_rejected(self):
        """A conversation needs at least one user or assistant message."""
        with pytest.raises(InvalidRequest):
            translate_chat(chat([{"role": "system", "content": "Be brief."}]))


class TestMergeTurns:
    """Tests for merge_turns."""

    def test_adjacent_same_role_merged(self):
        """Consecutive turns of one role become one turn, parts in order."""
        contents = [
            Content(role="user", parts=(Part.from_text("a"),)),
            Content(role="user", parts=(Part.from_text("b"),)),
            Content(role="model", parts=(Part.from_text("c"),)),
            Content(role="user", parts=(Part.from_text("d"),)),
        ]

        merged = merge_turns(contents)

        assert [c.role for c in merged] == ["user", "model", "user"]
        assert [p.text for p in merged[0].parts] == ["a", "b"]

    def test_alternating_unchanged(self):
        """Alternating turns pass through untouched."""
        contents = [
            Content(role="user", parts=(Part.from_text("a"),)),
            Content(role="model", parts=(Part.from_text("b"),)),
        ]

        assert merge_turns(contents) == contents


class TestBuildGenerateRequest:
    """Tests for the generateContent body."""

    def test_system_becomes_system_instruction(self):
        """System text is lifted out of the turns."""
        request = chat(
            [
                {"role": "system", "content": "Be brief."},
                {"role": "system", "content": "Use English."},
                {"role": "user", "content": "Hi"},
            ]
        )

        body = build_generate_request(request).to_dict()

        assert body["systemInstruction"] == {"parts": [{"text": "Be brief."}, {"text": "Use English."}]}
        assert body["contents"] == [{"role": "user", "parts": [{"text": "Hi"}]}]

    def test_no_system_instruction_without_system_messages(self):
        body = build_generate_request(chat([{"role": "user", "content": "Hi"}])).to_dict()

        assert "systemInstruction" not in body

    def test_safety_settings_present(self):
        """Every standard harm category is set to BLOCK_NONE."""
        body = build_generate_request(chat([{"role": "user", "content": "Hi"}])).to_dict()

        assert len(body["safetySettings"]) == 4
        assert all(s["threshold"] == "BLOCK_NONE" for s in body["safetySettings"])

    def test_generation_config_mapping(self):
        """Sampling parameters are mapped by name."""
        request = chat(
            [{"role": "user", "content": "Hi"}],
            temperature=0.2,
            top_p=0.9,
            max_tokens=64,
            stop="END",
            n=2,
            response_format={"type": "json_object"},
        )

        body = build_generate_request(request).to_dict()

        assert body["generationConfig"] == {
            "temperature": 0.2,
            "topP": 0.9,
            "maxOutputTokens": 64,
            "stopSequences": ["END"],
            "candidateCount": 2,
            "responseMimeType": "application/json",
        }

    def test_unset_parameters_omitted(self):
        """Without sampling parameters there is no generationConfig."""
        body = build_generate_request(chat([{"role": "user", "content": "Hi"}])).to_dict()

        assert "generationConfig" not in body

    def test_max_completion_tokens_wins(self):
        config = build_generation_config(
            chat([{"role": "user", "content": "Hi"}], max_tokens=10, max_completion_tokens=20)
        )

        assert config.max_output_tokens == 20

    def test_stop_list(self):
        config = build_generation_config(chat([{"role": "user", "content": "Hi"}], stop=["a", "b"]))

        assert config.stop_sequences == ("a", "b")


class TestTranslateEmbedding:
    """Tests for embedding request translation."""

    def test_single_string_input(self):
        contents = translate_embedding(EmbeddingRequest(model="text-embedding-3-small", input="hello"))

        assert len(contents) == 1
        assert contents[0].text == "hello"

    def test_one_content_per_input(self):
        """N inputs become N contents, in order."""
        request = EmbeddingRequest(model="text-embedding-3-small", input=["a", "b", "c"])

        contents = translate_embedding(request)

        assert [c.text for c in contents] == ["a", "b", "c"]

    def test_embed_requests_carry_model_and_dimensions(self):
        """Dimensions are forwarded to models that accept them."""
        request = EmbeddingRequest(model="text-embedding-3-small", input=["a"], dimensions=256)

        (entry,) = build_embed_requests(request, "text-embedding-004")

        assert entry.to_dict() == {
            "model": "models/text-embedding-004",
            "content": {"parts": [{"text": "a"}]},
            "outputDimensionality": 256,
        }

    def test_dimensions_dropped_for_other_models(self):
        """Models without dimension support never see the hint."""
        request = EmbeddingRequest(model="embedding-001", input=["a"], dimensions=256)

        (entry,) = build_embed_requests(request, "embedding-001")

        assert "outputDimensionality" not in entry.to_dict()
