"""Model name mapping between OpenAI and Gemini identifiers.

The alias table is built once when the gateway starts and is read-only
afterwards, so a single ``ModelMapper`` is shared by all requests.

Resolution order:
1. Exact alias (defaults plus configured extras)
2. Family prefix (``gpt-3.5*``, ``gpt-4o-mini*``, ``gpt-4*``, ``text-embedding-*``)
3. Pass-through: unknown names go to Gemini unchanged and Gemini decides
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

Capability = Literal["chat", "embedding"]

GEMINI_1_PRO = "gemini-1.0-pro-latest"
GEMINI_1_5_FLASH = "gemini-1.5-flash-latest"
GEMINI_1_5_PRO = "gemini-1.5-pro-latest"
TEXT_EMBEDDING_004 = "text-embedding-004"

# "latest fast" and "latest large" targets
FAST_MODEL = GEMINI_1_5_FLASH
LARGE_MODEL = GEMINI_1_5_PRO

DEFAULT_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "gpt-3.5-turbo": FAST_MODEL,
        "gpt-4o-mini": FAST_MODEL,
        "gpt-4": LARGE_MODEL,
        "gpt-4-turbo": LARGE_MODEL,
        "gpt-4o": LARGE_MODEL,
        "gpt-4-vision-preview": LARGE_MODEL,
        "text-embedding-ada-002": TEXT_EMBEDDING_004,
        "text-embedding-3-small": TEXT_EMBEDDING_004,
        "text-embedding-3-large": TEXT_EMBEDDING_004,
    }
)

# Checked in order; the first matching prefix wins
FAMILY_PREFIXES: tuple[tuple[str, str], ...] = (
    ("gpt-3.5", FAST_MODEL),
    ("gpt-4o-mini", FAST_MODEL),
    ("gpt-4", LARGE_MODEL),
    ("text-embedding-3", TEXT_EMBEDDING_004),
    ("text-embedding-ada", TEXT_EMBEDDING_004),
)

# Embedding models that accept outputDimensionality
DIMENSION_AWARE_MODELS = frozenset({TEXT_EMBEDDING_004, "text-embedding-005", "gemini-embedding-001"})

MODEL_CREATED_AT = 1686935002
MODEL_OWNER = "google"

CATALOG_MODELS = (GEMINI_1_PRO, GEMINI_1_5_FLASH, GEMINI_1_5_PRO, TEXT_EMBEDDING_004)


def capability_of(upstream_model: str) -> Capability:
    """Classify a Gemini model id as chat or embedding capable."""
    return "embedding" if "embedding" in upstream_model else "chat"


def supports_dimensions(upstream_model: str) -> bool:
    """Whether the embedding model accepts an output dimension hint."""
    return upstream_model in DIMENSION_AWARE_MODELS


@dataclass(frozen=True)
class ModelRoute:
    """Where a requested model goes upstream."""

    requested: str
    upstream: str
    capability: Capability


@dataclass(frozen=True)
class ModelMapper:
    """Resolves OpenAI model names to Gemini model ids.

    Example:
        >>> mapper = ModelMapper.build({"my-alias": "gemini-1.5-pro-002"})
        >>> mapper.resolve("gpt-3.5-turbo").upstream
        'gemini-1.5-flash-latest'
    """

    aliases: Mapping[str, str] = field(default_factory=lambda: DEFAULT_ALIASES)
    enabled: bool = True

    @classmethod
    def build(
        cls,
        extra_aliases: Mapping[str, str] | None = None,
        enabled: bool = True,
    ) -> "ModelMapper":
        """Create a mapper with configured aliases layered over the defaults."""
        table = dict(DEFAULT_ALIASES)
        if extra_aliases:
            table.update(extra_aliases)
        return cls(aliases=MappingProxyType(table), enabled=enabled)

    def resolve(self, name: str) -> ModelRoute:
        """Map a requested model name to its upstream route."""
        upstream = self._lookup(name) if self.enabled else name
        # Gemini accepts both "models/x" and "x"; the client only ever sees "x"
        upstream = upstream.removeprefix("models/")
        return ModelRoute(requested=name, upstream=upstream, capability=capability_of(upstream))

    def _lookup(self, name: str) -> str:
        if name in self.aliases:
            return self.aliases[name]
        for prefix, target in FAMILY_PREFIXES:
            if name.startswith(prefix):
                return target
        return name

    def catalog(self) -> list[dict[str, Any]]:
        """Static model listing served by ``GET /v1/models``."""
        ids = list(CATALOG_MODELS)
        if self.enabled:
            ids.extend(alias for alias in self.aliases if alias not in ids)
        return [model_card(model_id) for model_id in ids]


def model_card(model_id: str) -> dict[str, Any]:
    """OpenAI ``model`` object for an id."""
    return {
        "id": model_id,
        "object": "model",
        "created": MODEL_CREATED_AT,
        "owned_by": MODEL_OWNER,
    }
