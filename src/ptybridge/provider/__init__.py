"""Native pty provider discovery: classify, load, resolve."""

from ptybridge.provider.environment import EnvironmentFacts, classify, current_facts
from ptybridge.provider.loader import (
    LoadResult,
    LoadStatus,
    NativeCapability,
    load_provider,
)
from ptybridge.provider.registry import DEFAULT_PROVIDERS, ProviderDescriptor
from ptybridge.provider.resolver import (
    ProviderResolver,
    Resolution,
    ResolverState,
    default_resolver,
    get_pty,
    spawn_pty,
)

__all__ = [
    "EnvironmentFacts",
    "classify",
    "current_facts",
    "LoadResult",
    "LoadStatus",
    "NativeCapability",
    "load_provider",
    "DEFAULT_PROVIDERS",
    "ProviderDescriptor",
    "ProviderResolver",
    "Resolution",
    "ResolverState",
    "default_resolver",
    "get_pty",
    "spawn_pty",
]
