"""Lambda extensions exception hierarchy.

Architecture:
    LambdaExtensionsError (base)
    ├── PlatformError (502)
    │   ├── LambdaAPIError
    │   ├── UnexpectedStatusError
    │   ├── ResponseDecodeError
    │   └── RegistrationError
    ├── DecodeError (500)
    │   ├── MalformedArrayError
    │   ├── RecordDecodeError
    │   └── DecodeInterruptedError
    ├── UnexpectedMethodError (400)
    ├── RequestFramingError (400)
    │   └── LengthRequiredError (411)
    ├── ExtensionError (500)
    │   ├── ExtensionInitError
    │   ├── ExtensionLoopError
    │   ├── ExtensionShutdownError
    │   ├── ReceiverServerError
    │   └── EventProcessingError
    └── ContextError (503)
        ├── ContextCancelledError
        └── DeadlineExceededError (504)

Usage:
    from lambda_extensions.exceptions import LambdaAPIError

    try:
        client.report_exit_error("Extension.Exit", error)
    except LambdaAPIError as api_error:
        logger.error("platform rejected error report: %s", api_error.error_type)
"""

from lambda_extensions.exceptions.api_errors import (
    LambdaAPIError,
    PlatformError,
    RegistrationError,
    ResponseDecodeError,
    UnexpectedStatusError,
)
from lambda_extensions.exceptions.base import LambdaExtensionsError
from lambda_extensions.exceptions.decode_errors import (
    DecodeError,
    DecodeInterruptedError,
    LengthRequiredError,
    MalformedArrayError,
    RecordDecodeError,
    RequestFramingError,
    UnexpectedMethodError,
)
from lambda_extensions.exceptions.handlers import (
    create_error_body,
    get_http_status_for_error,
)
from lambda_extensions.exceptions.lifecycle_errors import (
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
    EventProcessingError,
    ExtensionError,
    ExtensionInitError,
    ExtensionLoopError,
    ExtensionShutdownError,
    ReceiverServerError,
)

__all__ = [
    "ContextCancelledError",
    "ContextError",
    "DeadlineExceededError",
    "DecodeError",
    "DecodeInterruptedError",
    "EventProcessingError",
    "ExtensionError",
    "ExtensionInitError",
    "ExtensionLoopError",
    "ExtensionShutdownError",
    "LambdaAPIError",
    "LambdaExtensionsError",
    "LengthRequiredError",
    "MalformedArrayError",
    "PlatformError",
    "ReceiverServerError",
    "RecordDecodeError",
    "RegistrationError",
    "RequestFramingError",
    "ResponseDecodeError",
    "UnexpectedMethodError",
    "UnexpectedStatusError",
    "create_error_body",
    "get_http_status_for_error",
]
