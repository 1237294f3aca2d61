"""
Tests for execution context, pagination and lifecycle outcomes.
"""
import pytest

from persistkit.domain.enums import LifecycleOutcome, MessageSeverity
from persistkit.domain.value_objects import ExecutionContext, Pagination


class TestExecutionContext:
    """Test diagnostics accumulation."""

    def test_starts_without_diagnostics(self, context):
        assert not context.has_diagnostics
        assert not context.has_exceptions

    def test_add_diagnostic(self, context):
        diagnostic = context.add_diagnostic("SOMETHING", "Something happened")

        assert context.diagnostics == [diagnostic]
        assert diagnostic.severity is MessageSeverity.WARNING
        assert context.diagnostic_codes() == ["SOMETHING"]
        assert str(diagnostic) == "[warning] SOMETHING: Something happened"

    def test_add_exception(self, context):
        error = RuntimeError("boom")

        context.add_exception(error)

        assert context.has_exceptions
        assert context.exceptions == [error]

    def test_with_tenant_keeps_tracing(self, context, other_tenant_context):
        context.add_diagnostic("X", "x")

        switched = context.with_tenant(other_tenant_context.tenant_code)

        assert switched.tenant_code == other_tenant_context.tenant_code
        assert switched.correlation_id == context.correlation_id
        assert switched.execution_user == context.execution_user
        assert not switched.has_diagnostics

    def test_correlation_ids_are_unique(self, context):
        assert ExecutionContext(tenant_code=context.tenant_code).correlation_id != context.correlation_id


class TestLifecycleOutcome:
    """Test the boolean contract of lifecycle outcomes."""

    def test_only_success_is_truthy(self):
        assert LifecycleOutcome.SUCCESS
        assert not LifecycleOutcome.ALREADY_IN_STATE
        assert not LifecycleOutcome.CONFLICT


class TestPagination:
    """Test page arithmetic."""

    def test_defaults(self):
        page = Pagination()

        assert page.index == 0
        assert page.offset == 0
        assert page.page_size == 100

    def test_offset(self):
        assert Pagination(page=4, page_size=25).offset == 75

    def test_next_page(self):
        assert Pagination(page=2, page_size=10).next_page() == Pagination(page=3, page_size=10)

    def test_all_is_unbounded(self):
        assert Pagination.ALL.is_unbounded
        assert Pagination.ALL.offset == 0

        with pytest.raises(ValueError):
            Pagination.ALL.next_page()

    @pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (-1, None)])
    def test_rejects_invalid_values(self, page, page_size):
        with pytest.raises(ValueError):
            Pagination(page=page, page_size=page_size)
