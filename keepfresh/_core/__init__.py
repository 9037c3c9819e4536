from keepfresh._core._compliance import (
    RequestProtocolError as RequestProtocolError,
    get_error_for_request as get_error_for_request,
    request_protocol_errors as request_protocol_errors,
)
from keepfresh._core._conditional import (
    all_conditionals_match as all_conditionals_match,
    build_conditional_request as build_conditional_request,
    build_unconditional_request as build_unconditional_request,
    etag_matches as etag_matches,
    has_unsupported_conditional_headers as has_unsupported_conditional_headers,
    is_conditional as is_conditional,
    last_modified_matches as last_modified_matches,
)
from keepfresh._core._config import CacheConfig as CacheConfig
from keepfresh._core._engine import (
    AnyState as AnyState,
    CacheEngine as CacheEngine,
    CacheMiss as CacheMiss,
    FromCache as FromCache,
    NeedRevalidation as NeedRevalidation,
    RequestRejected as RequestRejected,
    Revalidated as Revalidated,
)
from keepfresh._core._generator import (
    generate_full_response as generate_full_response,
    generate_not_modified_response as generate_not_modified_response,
)
from keepfresh._core._headers import (
    CacheControl as CacheControl,
    Directive as Directive,
    Headers as Headers,
    parse_cache_control as parse_cache_control,
)
from keepfresh._core._storages import (
    BaseStorage as BaseStorage,
    InMemoryStorage as InMemoryStorage,
    generate_key as generate_key,
    variant_selector as variant_selector,
)
from keepfresh._core._suitability import (
    CachedResponseSuitabilityChecker as CachedResponseSuitabilityChecker,
    MissReason as MissReason,
    MustFetch as MustFetch,
    ServeFull as ServeFull,
    ServeNotModified as ServeNotModified,
    Suitability as Suitability,
)
from keepfresh._core._updater import update_cache_entry as update_cache_entry
from keepfresh._core.models import (
    CacheEntry as CacheEntry,
    Request as Request,
    Response as Response,
)

__all__ = (
    ## Engine
    "AnyState",
    "CacheEngine",
    "CacheMiss",
    "FromCache",
    "NeedRevalidation",
    "RequestRejected",
    "Revalidated",
    "CacheConfig",
    ## Suitability
    "CachedResponseSuitabilityChecker",
    "MissReason",
    "MustFetch",
    "ServeFull",
    "ServeNotModified",
    "Suitability",
    ## Conditional requests
    "all_conditionals_match",
    "build_conditional_request",
    "build_unconditional_request",
    "etag_matches",
    "has_unsupported_conditional_headers",
    "is_conditional",
    "last_modified_matches",
    ## Responses
    "generate_full_response",
    "generate_not_modified_response",
    "update_cache_entry",
    ## Protocol compliance
    "RequestProtocolError",
    "get_error_for_request",
    "request_protocol_errors",
    ## Models
    "CacheEntry",
    "Request",
    "Response",
    ## Headers
    "CacheControl",
    "Directive",
    "Headers",
    "parse_cache_control",
    ## Storages
    "BaseStorage",
    "InMemoryStorage",
    "generate_key",
    "variant_selector",
)
