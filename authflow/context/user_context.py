"""
UserContext: declare a required permission plus outcome handlers once, then execute.

Design goals:
- Fail fast on misconfiguration: every slot is one-shot, checked inline by its setter.
- Exactly one of granted/denied runs per execution; at most one of cancelled/exception.
- Cancellation is cooperative and explicit (a CancellationToken passed to execute).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, FrozenSet, Optional, Set, Tuple

from authflow.config import AuthFlowSettings, load_settings
from authflow.context.authority import ExceptionHandler, OutcomeHandler, PermissionAuthority
from authflow.context.cancellation import CancellationToken
from authflow.context.errors import ConfigurationError, ConfigurationIssue, OperationCancelledError
from authflow.context.models import ContextOutcome, ExecutionRecord
from authflow.utils.masking import mask_subject

logger = logging.getLogger(__name__)

SLOT_PERMISSION = "Required Permission"
SLOT_GRANTED = "On Permission Granted"
SLOT_DENIED = "On Permission Denied"
SLOT_CANCELLED = "On Operation Cancelled"
SLOT_EXCEPTION = "On Exception"

# Order matters: it is the order missing slots are reported in.
MANDATORY_SLOTS: Tuple[str, ...] = (SLOT_PERMISSION, SLOT_GRANTED, SLOT_DENIED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserContext:
    """
    Permission-gated operation for a single subject.

    Build it with `UserContext.create(...)`, configure it with the chained setters,
    then `await ctx.execute(token)` once.

    Example:
        record = await (
            UserContext.create(authority, user_id)
            .require_permission("READ")
            .on_permission_granted(show_report)
            .on_permission_denied(show_forbidden)
            .on_exception(report_failure)
            .execute(source.token)
        )

    `on_operation_cancelled` and `on_exception` are optional: when left unset, the
    cancellation (OperationCancelledError) or the original error is re-raised.
    """

    def __init__(
        self,
        authority: PermissionAuthority,
        subject_id: str,
        *,
        settings: Optional[AuthFlowSettings] = None,
    ) -> None:
        if authority is None:
            raise TypeError("authority cannot be None")
        if not isinstance(subject_id, str) or not subject_id.strip():
            raise ValueError("subject_id cannot be empty")

        self._authority = authority
        self._subject_id = subject_id
        self._settings = settings or load_settings()

        self._permission: Optional[str] = None
        self._on_granted: Optional[OutcomeHandler] = None
        self._on_denied: Optional[OutcomeHandler] = None
        self._on_cancelled: Optional[OutcomeHandler] = None
        self._on_exception: Optional[ExceptionHandler] = None
        self._configured: Set[str] = set()

    @classmethod
    def create(
        cls,
        authority: PermissionAuthority,
        subject_id: str,
        *,
        settings: Optional[AuthFlowSettings] = None,
    ) -> "UserContext":
        return cls(authority, subject_id, settings=settings)

    @property
    def subject_id(self) -> str:
        return self._subject_id

    @property
    def authority(self) -> PermissionAuthority:
        return self._authority

    @property
    def required_permission(self) -> Optional[str]:
        return self._permission

    @property
    def configured_slots(self) -> FrozenSet[str]:
        return frozenset(self._configured)

    def missing_slots(self) -> Tuple[str, ...]:
        return tuple(s for s in MANDATORY_SLOTS if s not in self._configured)

    # --- configuration -------------------------------------------------------

    def require_permission(self, permission_name: str) -> "UserContext":
        self._claim(SLOT_PERMISSION)
        if not isinstance(permission_name, str) or not permission_name.strip():
            raise ConfigurationError(
                "Required permission must be a non-empty string",
                issue=ConfigurationIssue.INVALID_VALUE,
                slots=(SLOT_PERMISSION,),
            )
        self._permission = permission_name
        self._mark(SLOT_PERMISSION)
        return self

    def on_permission_granted(self, handler: OutcomeHandler) -> "UserContext":
        self._claim(SLOT_GRANTED)
        self._on_granted = self._require_callable(SLOT_GRANTED, handler)
        self._mark(SLOT_GRANTED)
        return self

    def on_permission_denied(self, handler: OutcomeHandler) -> "UserContext":
        self._claim(SLOT_DENIED)
        self._on_denied = self._require_callable(SLOT_DENIED, handler)
        self._mark(SLOT_DENIED)
        return self

    def on_operation_cancelled(self, handler: Optional[OutcomeHandler]) -> "UserContext":
        # None is accepted: the slot counts as configured and cancellation re-raises.
        self._claim(SLOT_CANCELLED)
        if handler is not None:
            self._require_callable(SLOT_CANCELLED, handler)
        self._on_cancelled = handler
        self._mark(SLOT_CANCELLED)
        return self

    def on_exception(self, handler: Optional[ExceptionHandler]) -> "UserContext":
        self._claim(SLOT_EXCEPTION)
        if handler is not None:
            self._require_callable(SLOT_EXCEPTION, handler)
        self._on_exception = handler
        self._mark(SLOT_EXCEPTION)
        return self

    def _claim(self, slot: str) -> None:
        if slot in self._configured:
            raise ConfigurationError(
                f"{slot} has already been configured",
                issue=ConfigurationIssue.ALREADY_CONFIGURED,
                slots=(slot,),
            )

    def _mark(self, slot: str) -> None:
        self._configured.add(slot)
        logger.debug("UserContext configured: %s", slot)

    @staticmethod
    def _require_callable(slot: str, handler: Any) -> Any:
        if handler is None or not callable(handler):
            raise ConfigurationError(
                f"{slot} handler must be callable",
                issue=ConfigurationIssue.INVALID_VALUE,
                slots=(slot,),
            )
        return handler

    def _ensure_configured(self) -> None:
        missing = self.missing_slots()
        if missing:
            raise ConfigurationError(
                f"UserContext is missing the following configurations: {', '.join(missing)}.",
                issue=ConfigurationIssue.MISSING,
                slots=missing,
            )

    # --- execution -----------------------------------------------------------

    async def execute(self, token: Optional[CancellationToken] = None) -> ExecutionRecord:
        """
        Check the required permission and run the matching handler.

        Returns an ExecutionRecord when the call completes normally.

        Raises:
            ConfigurationError: a mandatory slot is unset (never routed to handlers).
            OperationCancelledError: cancellation observed and no cancelled handler.
            Exception: the original error from the authority or a granted/denied
                handler, when no exception handler is configured.
        """
        token = token if token is not None else CancellationToken.none()
        started_at = _utcnow()

        try:
            token.raise_if_cancellation_requested()
            self._ensure_configured()
            assert self._permission is not None
            assert self._on_granted is not None and self._on_denied is not None

            logger.debug("Verifying permission %s for subject %s", self._permission, self._log_subject())
            granted = bool(await self._authority.verify(self._subject_id, self._permission, token))
            logger.debug("Permission %s %s", self._permission, "granted" if granted else "denied")

            if granted:
                await self._on_granted(self._subject_id, token)
                outcome, slot = ContextOutcome.GRANTED, SLOT_GRANTED
            else:
                await self._on_denied(self._subject_id, token)
                outcome, slot = ContextOutcome.DENIED, SLOT_DENIED

            # A cancellation that became visible during dispatch wins over its result.
            token.raise_if_cancellation_requested()
        except ConfigurationError:
            raise
        except OperationCancelledError:
            if self._on_cancelled is None:
                logger.warning(
                    "UserContext cancelled with no cancellation handler (subject=%s, permission=%s)",
                    self._log_subject(),
                    self._permission,
                )
                raise
            await self._on_cancelled(self._subject_id, token)
            return self._finish(ContextOutcome.CANCELLED, SLOT_CANCELLED, started_at)
        except Exception as e:
            if self._on_exception is None:
                logger.warning(
                    "UserContext failed with no exception handler (subject=%s, permission=%s): %s",
                    self._log_subject(),
                    self._permission,
                    type(e).__name__,
                )
                raise
            await self._on_exception(e, self._subject_id, token)
            return self._finish(ContextOutcome.FAILED, SLOT_EXCEPTION, started_at, error=e)

        return self._finish(outcome, slot, started_at)

    def _finish(
        self,
        outcome: ContextOutcome,
        slot: str,
        started_at: datetime,
        *,
        error: Optional[BaseException] = None,
    ) -> ExecutionRecord:
        record = ExecutionRecord(
            subject_id=self._subject_id,
            permission=self._permission,
            outcome=outcome,
            handler=slot,
            error_type=type(error).__name__ if error is not None else None,
            started_at=started_at,
            finished_at=_utcnow(),
        )
        if self._settings.log_outcomes:
            logger.info(
                "UserContext outcome=%s subject=%s permission=%s duration_ms=%.1f",
                outcome.value,
                self._log_subject(),
                self._permission,
                record.duration_ms,
            )
        return record

    def _log_subject(self) -> str:
        if self._settings.mask_subjects:
            return mask_subject(self._subject_id)
        return self._subject_id

    def __repr__(self) -> str:
        return (
            f"UserContext(subject={self._log_subject()!r}, permission={self._permission!r}, "
            f"configured={sorted(self._configured)!r})"
        )
