"""
Registry module: Provider chain configuration and metadata.

This module contains:
- providers.py: provider metadata, credentials and candidate construction

Public API:
- ProviderId: Enum of text-generation providers
- AuthScheme: Enum of credential placements
- ProviderMetadata: Pydantic model for provider configuration
- Candidate: One (provider, model) pair in the fallback chain
- ProviderCredentials: Explicit credential struct passed to the dispatcher
- ProviderRegistry: Central registry class
- get_provider_registry: Singleton accessor function
"""

from relay.registry.providers import (
    AuthScheme,
    Candidate,
    ProviderCredentials,
    ProviderId,
    ProviderMetadata,
    ProviderRegistry,
    get_provider_registry,
)

__all__ = [
    "ProviderId",
    "AuthScheme",
    "ProviderMetadata",
    "Candidate",
    "ProviderCredentials",
    "ProviderRegistry",
    "get_provider_registry",
]
