from .errors import (
    AuthError,
    ConfigError,
    CreateError,
    DeleteError,
    FetchError,
    ListError,
    ParseError,
    RateLimited,
    ReconcileError,
    SendError,
)
from .helper.helper import (
    get_hmac,
    get_hmac_message,
    handle_error,
    parse_rfc3339,
    verify_message,
    verify_signature,
)

__all__ = [
    "AuthError",
    "ConfigError",
    "CreateError",
    "DeleteError",
    "FetchError",
    "ListError",
    "ParseError",
    "RateLimited",
    "ReconcileError",
    "SendError",
    "get_hmac",
    "get_hmac_message",
    "handle_error",
    "parse_rfc3339",
    "verify_message",
    "verify_signature",
]
