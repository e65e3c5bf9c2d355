"""Wire structures on both sides of the gateway.

Gemini structures mirror the Gemini REST API (v1beta) and serialize to its
camelCase JSON. OpenAI structures are the outbound completion, chunk and
embedding objects. Each type converts field by field; a field that is not
listed here is not forwarded.
"""

from dataclasses import dataclass
from typing import Any, Literal

GeminiRole = Literal["system", "user", "model"]

# Harm categories accepted by every Gemini text model
HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


# =============================================================================
# Gemini request side
# =============================================================================


@dataclass(frozen=True)
class Part:
    """One part of a Gemini content: text, inline bytes or a file reference."""

    type: Literal["text", "inline_data", "file_data"]
    text: str | None = None
    mime_type: str | None = None
    data: str | None = None  # base64, for inline_data
    file_uri: str | None = None  # for file_data

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(type="text", text=text)

    def to_dict(self) -> dict[str, Any]:
        if self.type == "inline_data":
            return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}
        if self.type == "file_data":
            return {"fileData": {"mimeType": self.mime_type, "fileUri": self.file_uri}}
        return {"text": self.text or ""}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Part":
        if "inlineData" in data:
            blob = data["inlineData"]
            return cls(type="inline_data", mime_type=blob.get("mimeType"), data=blob.get("data"))
        if "fileData" in data:
            ref = data["fileData"]
            return cls(type="file_data", mime_type=ref.get("mimeType"), file_uri=ref.get("fileUri"))
        # functionCall / executableCode parts carry no text for an OpenAI client
        return cls(type="text", text=data.get("text", ""))


@dataclass(frozen=True)
class Content:
    """Provider-native equivalent of one chat message."""

    role: GeminiRole
    parts: tuple[Part, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part.to_dict() for part in self.parts]}

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text or "" for part in self.parts if part.type == "text")


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters. Unset fields are omitted on the wire."""

    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    stop_sequences: tuple[str, ...] | None = None
    candidate_count: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    response_mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        fields = {
            "temperature": self.temperature,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
            "stopSequences": list(self.stop_sequences) if self.stop_sequences else None,
            "candidateCount": self.candidate_count,
            "presencePenalty": self.presence_penalty,
            "frequencyPenalty": self.frequency_penalty,
            "seed": self.seed,
            "responseMimeType": self.response_mime_type,
        }
        return {key: value for key, value in fields.items() if value is not None}


@dataclass(frozen=True)
class SafetySetting:
    """Block threshold for one harm category."""

    category: str
    threshold: str = "BLOCK_NONE"

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category, "threshold": self.threshold}


@dataclass(frozen=True)
class GenerateContentRequest:
    """Body of generateContent / streamGenerateContent."""

    contents: tuple[Content, ...]
    system_instruction: Content | None = None
    generation_config: GenerationConfig | None = None
    safety_settings: tuple[SafetySetting, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": [c.to_dict() for c in self.contents]}
        if self.system_instruction:
            body["systemInstruction"] = {
                "parts": [part.to_dict() for part in self.system_instruction.parts]
            }
        if self.generation_config:
            config = self.generation_config.to_dict()
            if config:
                body["generationConfig"] = config
        if self.safety_settings:
            body["safetySettings"] = [s.to_dict() for s in self.safety_settings]
        return body


@dataclass(frozen=True)
class EmbedContentRequest:
    """One entry of a batchEmbedContents call."""

    model: str
    content: Content
    output_dimensionality: int | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": f"models/{self.model}",
            "content": {"parts": [part.to_dict() for part in self.content.parts]},
        }
        if self.output_dimensionality is not None:
            body["outputDimensionality"] = self.output_dimensionality
        return body


# =============================================================================
# Gemini response side
# =============================================================================


@dataclass(frozen=True)
class UsageMetadata:
    """Token accounting reported by Gemini."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UsageMetadata":
        return cls(
            prompt_token_count=data.get("promptTokenCount", 0),
            candidates_token_count=data.get("candidatesTokenCount", 0),
            total_token_count=data.get("totalTokenCount", 0),
        )


@dataclass(frozen=True)
class Candidate:
    """One generated alternative."""

    index: int
    content: Content | None = None
    finish_reason: str | None = None

    @property
    def text(self) -> str:
        return self.content.text if self.content else ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int) -> "Candidate":
        content = None
        raw_content = data.get("content")
        if raw_content:
            content = Content(
                role=raw_content.get("role", "model"),
                parts=tuple(Part.from_dict(p) for p in raw_content.get("parts", [])),
            )
        return cls(
            index=data.get("index", position),
            content=content,
            finish_reason=data.get("finishReason"),
        )


@dataclass(frozen=True)
class GenerateContentResponse:
    """A full response, or one partial item of a stream."""

    candidates: tuple[Candidate, ...] = ()
    usage_metadata: UsageMetadata | None = None
    block_reason: str | None = None  # promptFeedback.blockReason

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerateContentResponse":
        usage = data.get("usageMetadata")
        feedback = data.get("promptFeedback") or {}
        return cls(
            candidates=tuple(
                Candidate.from_dict(c, position) for position, c in enumerate(data.get("candidates", []))
            ),
            usage_metadata=UsageMetadata.from_dict(usage) if usage else None,
            block_reason=feedback.get("blockReason"),
        )


# =============================================================================
# OpenAI side
# =============================================================================


@dataclass(frozen=True)
class Usage:
    """OpenAI token usage."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class Choice:
    """A complete choice of a non-streamed completion."""

    index: int
    content: str
    finish_reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "message": {"role": "assistant", "content": self.content},
            "logprobs": None,
            "finish_reason": self.finish_reason,
        }


@dataclass(frozen=True)
class CompletionResponse:
    """OpenAI ``chat.completion`` object."""

    id: str
    created: int
    model: str
    choices: tuple[Choice, ...]
    usage: Usage

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": "chat.completion",
            "created": self.created,
            "model": self.model,
            "choices": [choice.to_dict() for choice in self.choices],
            "usage": self.usage.to_dict(),
        }


@dataclass(frozen=True)
class ChunkChoice:
    """A choice of a streamed chunk, carrying only the new text."""

    index: int
    content: str
    role: str | None = None
    finish_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        delta: dict[str, Any] = {}
        if self.role:
            delta["role"] = self.role
        delta["content"] = self.content
        return {
            "index": self.index,
            "delta": delta,
            "logprobs": None,
            "finish_reason": self.finish_reason,
        }


@dataclass(frozen=True)
class CompletionChunk:
    """OpenAI ``chat.completion.chunk`` object."""

    id: str
    created: int
    model: str
    choices: tuple[ChunkChoice, ...]
    usage: Usage | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [choice.to_dict() for choice in self.choices],
        }
        if self.usage:
            result["usage"] = self.usage.to_dict()
        return result


@dataclass(frozen=True)
class EmbeddingResponse:
    """OpenAI embedding list."""

    model: str
    embeddings: tuple[tuple[float, ...], ...]
    usage: Usage

    def to_dict(self) -> dict[str, Any]:
        return {
            "object": "list",
            "data": [
                {"object": "embedding", "index": i, "embedding": list(values)}
                for i, values in enumerate(self.embeddings)
            ],
            "model": self.model,
            "usage": {
                "prompt_tokens": self.usage.prompt_tokens,
                "total_tokens": self.usage.total_tokens,
            },
        }
