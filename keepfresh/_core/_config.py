from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from keepfresh._exceptions import ConfigurationError

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH")

__all__ = ("CacheConfig",)


@dataclass(frozen=True)
class CacheConfig:
    """
    Configuration options for HTTP cache behavior.

    A config is built once and then only read, so a single instance can be
    shared by every engine and thread in the process.

    Attributes:
    ----------
    shared : bool
        Determines whether the cache operates as a shared cache or private cache.

        RFC 9111 Section 3.5: Authenticated Responses
        https://www.rfc-editor.org/rfc/rfc9111.html#section-3.5

        - Shared cache (True): Acts as a proxy, CDN, or gateway cache serving multiple users.
          Uses s-maxage instead of max-age, and honours proxy-revalidate.

        - Private cache (False): Acts as a browser or user-agent cache for a single user.
          Ignores s-maxage and proxy-revalidate.

        Default: True (shared cache)

        Examples:
        --------
        >>> # Shared cache (proxy/CDN)
        >>> config = CacheConfig(shared=True)

        >>> # Private cache (browser)
        >>> config = CacheConfig(shared=False)

    heuristic_caching_enabled : bool
        When True, a response without explicit freshness information may be
        served while it is heuristically fresh.

        RFC 9111 Section 4.2.2: Calculating Heuristic Freshness
        https://www.rfc-editor.org/rfc/rfc9111.html#section-4.2.2

        Default: False

    heuristic_coefficient : float
        Fraction of the interval between Last-Modified and Date that is used
        as the heuristic freshness lifetime. Must lie in [0, 1].

        Default: 0.1 (the "typical setting" suggested by RFC 9111)

        Examples:
        --------
        >>> # Modified 10 days before it was served: fresh for 1 day
        >>> config = CacheConfig(heuristic_caching_enabled=True, heuristic_coefficient=0.1)

    heuristic_default_lifetime : int
        Heuristic freshness lifetime in seconds for responses that carry no
        Last-Modified header. Must not be negative.

        Default: 0 (such responses are never heuristically fresh)

    supported_methods : tuple[str, ...]
        HTTP methods the engine will try to answer from cache.

        Default: ("GET", "HEAD")
    """

    shared: bool = True
    """
    When True, the cache operates as a shared cache (proxy/CDN).
    When False, as a private cache (browser).
    """

    heuristic_caching_enabled: bool = False
    """When True, heuristic freshness is used for responses without explicit expiration."""

    heuristic_coefficient: float = 0.1
    """Fraction of (Date - Last-Modified) used as heuristic freshness lifetime."""

    heuristic_default_lifetime: int = 0
    """Heuristic freshness lifetime, in seconds, when Last-Modified is absent."""

    supported_methods: Tuple[str, ...] = field(default=("GET", "HEAD"))
    """HTTP methods that are allowed to be served from cache."""

    def __post_init__(self) -> None:
        if not 0.0 <= self.heuristic_coefficient <= 1.0:
            raise ConfigurationError(
                f"The heuristic coefficient must be between 0 and 1, got {self.heuristic_coefficient!r}."
            )

        if self.heuristic_default_lifetime < 0:
            raise ConfigurationError(
                f"The heuristic default lifetime cannot be negative, got {self.heuristic_default_lifetime!r}."
            )

        methods = []
        for method in self.supported_methods:
            if method.upper() not in HTTP_METHODS:
                raise ConfigurationError(
                    f"Keepfresh does not support the HTTP method `{method}`.\n"
                    f"Please use the methods from this list: {list(HTTP_METHODS)}"
                )
            methods.append(method.upper())
        object.__setattr__(self, "supported_methods", tuple(methods))
