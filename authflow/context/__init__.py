"""
Permission-gated execution context.

Configure a UserContext once (required permission + outcome handlers), then execute it
against a PermissionAuthority with a cooperative CancellationToken.
"""

from authflow.context.authority import ExceptionHandler, OutcomeHandler, PermissionAuthority
from authflow.context.cancellation import CancellationSource, CancellationToken
from authflow.context.errors import ConfigurationError, ConfigurationIssue, OperationCancelledError
from authflow.context.models import ContextOutcome, ExecutionRecord
from authflow.context.user_context import UserContext

__all__ = [
    "CancellationSource",
    "CancellationToken",
    "ConfigurationError",
    "ConfigurationIssue",
    "ContextOutcome",
    "ExceptionHandler",
    "ExecutionRecord",
    "OperationCancelledError",
    "OutcomeHandler",
    "PermissionAuthority",
    "UserContext",
]
