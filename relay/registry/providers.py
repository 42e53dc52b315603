"""
Provider Registry

This module defines the text-generation providers behind the fallback chain,
in the order they are tried:
- EdenAI: flat-text chat endpoint that fans out to a sub-provider (openai)
- Gemini: Google generateContent with nested contents/parts
- OpenRouter: OpenAI-compatible chat completions over several models

Each provider entry includes:
- Provider ID and display name
- Fixed priority (lower is tried first)
- Endpoint and authentication scheme (for /providers and logging)
- Default model list used to expand the provider into candidates
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from relay.config import Settings, get_settings


class ProviderId(str, Enum):
    """Supported text-generation providers."""

    EDENAI = "edenai"
    GEMINI = "gemini"
    OPENROUTER = "openrouter"


class AuthScheme(str, Enum):
    """How a provider expects its credential."""

    BEARER = "bearer"  # Authorization: Bearer <key>
    QUERY_KEY = "query_key"  # ?key=<key>


class ProviderMetadata(BaseModel):
    """Static description of one provider group in the fallback chain."""

    provider_id: ProviderId = Field(..., description="Unique provider identifier")

    display_name: str = Field(..., description="Human-readable provider name")

    priority: int = Field(
        ...,
        ge=0,
        description="Position of the provider group in the chain (0 first)",
    )

    endpoint: str = Field(..., description="Base URL of the generation endpoint")

    auth_scheme: AuthScheme = Field(..., description="Credential placement")

    models: list[str] = Field(
        default_factory=list,
        description="Models tried in order within this provider group",
    )

    accepts_preferred_model: bool = Field(
        default=False,
        description="Whether a caller's preferred model is placed first in this group",
    )


@dataclass(frozen=True)
class Candidate:
    """One (provider, model) pair eligible for an attempt in a dispatch."""

    provider_id: ProviderId
    model: str | None
    priority: int


@dataclass(frozen=True)
class ProviderCredentials:
    """
    Credentials for the text-generation providers.

    Built once from Settings and handed to the dispatcher so adapters never
    read the environment themselves. A value of None means the provider
    is not configured.
    """

    edenai: str | None = None
    gemini: str | None = None
    openrouter: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderCredentials":
        def _value(secret):
            if secret is None:
                return None
            return secret.get_secret_value().strip() or None

        return cls(
            edenai=_value(settings.edenai_api_key),
            gemini=_value(settings.gemini_api_key),
            openrouter=_value(settings.openrouter_api_key),
        )

    def get(self, provider_id: ProviderId) -> str | None:
        return getattr(self, provider_id.value)

    def is_configured(self, provider_id: ProviderId) -> bool:
        return bool(self.get(provider_id))

    def __repr__(self) -> str:
        flags = ", ".join(
            f"{p.value}={'set' if self.is_configured(p) else 'unset'}"
            for p in ProviderId
        )
        return f"ProviderCredentials({flags})"


class ProviderRegistry:
    """
    Central registry of provider metadata, ordered by priority.

    Model lists come from Settings so operators can swap Gemini or
    OpenRouter models without code changes.
    """

    def __init__(self, settings: Settings) -> None:
        self._providers: dict[ProviderId, ProviderMetadata] = {}
        self._initialize_providers(settings)

    def _initialize_providers(self, settings: Settings) -> None:
        self._register(
            ProviderMetadata(
                provider_id=ProviderId.EDENAI,
                display_name="EdenAI",
                priority=0,
                endpoint="https://api.edenai.run/v2/text/chat",
                auth_scheme=AuthScheme.BEARER,
                models=[settings.edenai_chat_provider],
            )
        )

        self._register(
            ProviderMetadata(
                provider_id=ProviderId.GEMINI,
                display_name="Gemini",
                priority=1,
                endpoint="https://generativelanguage.googleapis.com/v1beta/models",
                auth_scheme=AuthScheme.QUERY_KEY,
                models=[settings.gemini_model],
            )
        )

        self._register(
            ProviderMetadata(
                provider_id=ProviderId.OPENROUTER,
                display_name="OpenRouter",
                priority=2,
                endpoint="https://openrouter.ai/api/v1",
                auth_scheme=AuthScheme.BEARER,
                models=[settings.openrouter_default_model, *settings.openrouter_backup_models],
                accepts_preferred_model=True,
            )
        )

    def _register(self, provider: ProviderMetadata) -> None:
        self._providers[provider.provider_id] = provider

    def get_provider(self, provider_id: ProviderId) -> ProviderMetadata | None:
        return self._providers.get(provider_id)

    def list_providers(self) -> list[ProviderMetadata]:
        """
        Return all providers in chain order.

        Returns:
            List of ProviderMetadata sorted by priority
        """
        return sorted(self._providers.values(), key=lambda p: p.priority)

    def models_for(
        self, provider: ProviderMetadata, preferred_model: str | None = None
    ) -> list[str | None]:
        """
        Return the ordered model sub-list for one provider group.

        A preferred model replaces the group's first (default) model; the
        backups follow. A blank hint counts as no hint. Repeated names
        are collapsed to their first occurrence so one model is never
        attempted twice.

        Args:
            provider: Provider group being expanded
            preferred_model: Caller's model hint, if any

        Returns:
            Ordered list of model names (a single None for model-less groups)
        """
        models = list(provider.models)
        preferred_model = (preferred_model or "").strip() or None
        if provider.accepts_preferred_model and preferred_model:
            models = [preferred_model, *models[1:]]

        ordered: list[str | None] = []
        for model in models:
            if model not in ordered:
                ordered.append(model)
        return ordered or [None]

    def build_candidates(
        self,
        credentials: ProviderCredentials,
        preferred_model: str | None = None,
    ) -> list[Candidate]:
        """
        Build the ordered fallback chain for one dispatch.

        Provider groups without a credential are skipped entirely. The
        result depends only on the arguments, so equal inputs always
        produce the same order.

        Args:
            credentials: Which providers are configured
            preferred_model: Caller's model hint for the OpenRouter group

        Returns:
            Candidates in the order they must be attempted
        """
        candidates: list[Candidate] = []
        for provider in self.list_providers():
            if not credentials.is_configured(provider.provider_id):
                continue
            for model in self.models_for(provider, preferred_model):
                candidates.append(
                    Candidate(
                        provider_id=provider.provider_id,
                        model=model,
                        priority=len(candidates),
                    )
                )
        return candidates


_registry_instance: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """
    Get the global provider registry instance.

    Uses lazy initialization to create the registry only when needed.

    Returns:
        The singleton ProviderRegistry instance
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = ProviderRegistry(get_settings())
    return _registry_instance
