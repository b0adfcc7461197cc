"""Adapter synthesis, adapter type caching and the proxy base class."""

from .proxy import ActLikeProxy, SupportsActLike, is_proxy, unwrap
from .synthesizer import InterfaceMember, ProxyTypeSynthesizer, TypeSynthesizer, collect_members
from .type_cache import AdapterKey, AdapterTypeCache

__all__ = [
    "ActLikeProxy",
    "AdapterKey",
    "AdapterTypeCache",
    "InterfaceMember",
    "ProxyTypeSynthesizer",
    "SupportsActLike",
    "TypeSynthesizer",
    "collect_members",
    "is_proxy",
    "unwrap",
]
