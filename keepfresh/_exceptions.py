__all__ = ("CacheError", "ConfigurationError", "ValidationError")


class CacheError(Exception): ...


class ConfigurationError(CacheError): ...


class ValidationError(CacheError): ...
