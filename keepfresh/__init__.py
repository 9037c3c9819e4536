from keepfresh._core import (
    AnyState as AnyState,
    BaseStorage as BaseStorage,
    CacheConfig as CacheConfig,
    CacheControl as CacheControl,
    CachedResponseSuitabilityChecker as CachedResponseSuitabilityChecker,
    CacheEngine as CacheEngine,
    CacheEntry as CacheEntry,
    CacheMiss as CacheMiss,
    Directive as Directive,
    FromCache as FromCache,
    Headers as Headers,
    InMemoryStorage as InMemoryStorage,
    MissReason as MissReason,
    MustFetch as MustFetch,
    NeedRevalidation as NeedRevalidation,
    Request as Request,
    RequestProtocolError as RequestProtocolError,
    RequestRejected as RequestRejected,
    Response as Response,
    Revalidated as Revalidated,
    ServeFull as ServeFull,
    ServeNotModified as ServeNotModified,
    Suitability as Suitability,
    all_conditionals_match as all_conditionals_match,
    build_conditional_request as build_conditional_request,
    build_unconditional_request as build_unconditional_request,
    generate_full_response as generate_full_response,
    generate_key as generate_key,
    generate_not_modified_response as generate_not_modified_response,
    get_error_for_request as get_error_for_request,
    is_conditional as is_conditional,
    parse_cache_control as parse_cache_control,
    request_protocol_errors as request_protocol_errors,
    update_cache_entry as update_cache_entry,
    variant_selector as variant_selector,
)
from keepfresh._exceptions import (
    CacheError as CacheError,
    ConfigurationError as ConfigurationError,
    ValidationError as ValidationError,
)

__version__ = "0.1.0"

__all__ = (
    # Engine
    "AnyState",
    "CacheEngine",
    "CacheMiss",
    "FromCache",
    "NeedRevalidation",
    "RequestRejected",
    "Revalidated",
    "CacheConfig",
    # Suitability
    "CachedResponseSuitabilityChecker",
    "MissReason",
    "MustFetch",
    "ServeFull",
    "ServeNotModified",
    "Suitability",
    "is_conditional",
    "all_conditionals_match",
    "build_conditional_request",
    "build_unconditional_request",
    # Responses
    "generate_full_response",
    "generate_not_modified_response",
    "update_cache_entry",
    "RequestProtocolError",
    "get_error_for_request",
    "request_protocol_errors",
    # Models
    "CacheEntry",
    "Request",
    "Response",
    "Headers",
    "CacheControl",
    "Directive",
    "parse_cache_control",
    # Storages
    "BaseStorage",
    "InMemoryStorage",
    "generate_key",
    "variant_selector",
    # Exceptions
    "CacheError",
    "ConfigurationError",
    "ValidationError",
)
