"""
Execution Context.

Explicit per-operation value passed into every persistence call.
Carries tenant scoping, tracing identifiers and the diagnostics that
operations accumulate while they run.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4

from ..enums import MessageSeverity


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal message recorded during an operation."""

    code: str
    message: str
    severity: MessageSeverity = MessageSeverity.WARNING
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.code}: {self.message}"


@dataclass
class ExecutionContext:
    """
    Context for one logical operation (one request, one background task).

    Never shared between concurrent operations. Components never read
    tenant or correlation data from anywhere else.

    Usage:
        context = ExecutionContext(tenant_code=tenant_id, execution_user="api")
        async with uow:
            await repository.get_by_id(context, order_id)
        if context.has_diagnostics:
            logger.warning(context.diagnostics)
    """

    tenant_code: UUID
    correlation_id: UUID = field(default_factory=uuid4)
    execution_user: str = "system"
    execution_origin: str = "unknown"
    business_operation_code: str = "unknown"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    diagnostics: List[Diagnostic] = field(default_factory=list)
    exceptions: List[BaseException] = field(default_factory=list)

    def add_diagnostic(
        self,
        code: str,
        message: str,
        severity: MessageSeverity = MessageSeverity.WARNING,
    ) -> Diagnostic:
        """
        Record a diagnostic message.

        Args:
            code: Short machine-readable code (e.g. CONNECTION_ALREADY_OPEN)
            message: Human-readable description
            severity: Message severity

        Returns:
            The recorded Diagnostic
        """
        diagnostic = Diagnostic(code=code, message=message, severity=severity)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def add_exception(self, exc: BaseException) -> None:
        """Record an exception that was handled as an expected outcome."""
        self.exceptions.append(exc)

    @property
    def has_diagnostics(self) -> bool:
        return len(self.diagnostics) > 0

    @property
    def has_exceptions(self) -> bool:
        return len(self.exceptions) > 0

    def diagnostic_codes(self) -> List[str]:
        """Return the codes of all recorded diagnostics, in order."""
        return [d.code for d in self.diagnostics]

    def with_tenant(self, tenant_code: UUID) -> "ExecutionContext":
        """
        Create a fresh context for another tenant, keeping tracing fields.

        Diagnostics are not carried over.
        """
        return ExecutionContext(
            tenant_code=tenant_code,
            correlation_id=self.correlation_id,
            execution_user=self.execution_user,
            execution_origin=self.execution_origin,
            business_operation_code=self.business_operation_code,
        )
