from authflow.config import AuthFlowSettings, configure_logging, load_settings
from authflow.context import (
    CancellationSource,
    CancellationToken,
    ConfigurationError,
    ConfigurationIssue,
    ContextOutcome,
    ExecutionRecord,
    OperationCancelledError,
    PermissionAuthority,
    UserContext,
)

__all__ = [
    "AuthFlowSettings",
    "CancellationSource",
    "CancellationToken",
    "ConfigurationError",
    "ConfigurationIssue",
    "ContextOutcome",
    "ExecutionRecord",
    "OperationCancelledError",
    "PermissionAuthority",
    "UserContext",
    "configure_logging",
    "load_settings",
]
