import pytest
from structlog.testing import capture_logs

from datacore.core.exceptions import NotFoundError
from datacore.middleware.audit import AuditTrailInterceptor
from datacore.middleware.interceptors import (
    Interceptor,
    InterceptorChain,
    OperationContext,
    ServiceInterceptor,
)
from datacore.middleware.logging import LoggingInterceptor
from datacore.repositories.options import DeleteOptions, UpdateOptions

from .conftest import User


class Recorder(ServiceInterceptor):
    def __init__(self, name, events):
        self.name = name
        self.events = events

    async def before(self, ctx):
        self.events.append((self.name, "before", ctx.operation))

    async def after(self, ctx, result):
        self.events.append((self.name, "after", ctx.operation))

    async def on_error(self, ctx, error):
        self.events.append((self.name, "on_error", type(error).__name__))


class Exploding(Interceptor):
    async def on_error(self, ctx, error):
        raise RuntimeError("observer crashed")


def _ctx(operation="find_many", **arguments):
    return OperationContext(operation=operation, trace_id="t-1", entity_type="User", arguments=arguments)


@pytest.mark.asyncio
async def test_chain_runs_in_registration_order():
    events = []
    chain = InterceptorChain([Recorder("a", events)])
    chain.register(Recorder("b", events))
    ctx = _ctx()
    await chain.before(ctx)
    await chain.after(ctx, [])
    assert events == [
        ("a", "before", "find_many"),
        ("b", "before", "find_many"),
        ("a", "after", "find_many"),
        ("b", "after", "find_many"),
    ]
    assert len(chain) == 2


@pytest.mark.asyncio
async def test_failing_on_error_hook_does_not_stop_the_chain():
    events = []
    chain = InterceptorChain([Exploding(), Recorder("a", events)])
    with capture_logs() as logs:
        await chain.on_error(_ctx(), NotFoundError("User", "u1"))
    assert events == [("a", "on_error", "NotFoundError")]
    assert logs[0]["event"] == "interceptor_on_error_failed"
    assert logs[0]["interceptor"] == "Exploding"


@pytest.mark.asyncio
async def test_service_hooks_skip_plain_interceptors():
    chain = InterceptorChain([Interceptor()])
    await chain.validate(_ctx("create"))
    await chain.after_find(_ctx("find_by_id"), User(email="a@example.com"))


def test_operation_context_error_context():
    ctx = _ctx("update", id="u1")
    assert ctx.error_context() == {
        "trace_id": "t-1",
        "operation": "update",
        "entity_type": "User",
        "layer": "repository",
        "entity_id": "u1",
    }
    assert ctx.elapsed_ms() >= 0


@pytest.mark.asyncio
async def test_logging_interceptor_records_success_and_failure():
    interceptor = LoggingInterceptor()
    ctx = _ctx()
    with capture_logs() as logs:
        await interceptor.after(ctx, [User(email="a@example.com"), User(email="b@example.com")])
        await interceptor.on_error(ctx, NotFoundError("User", "u1"))
    ok, failed = logs
    assert ok["event"] == "data_operation"
    assert ok["result_size"] == 2
    assert ok["trace_id"] == "t-1"
    assert "duration_ms" in ok
    assert failed["event"] == "data_operation_failed"
    assert failed["error_code"] == "NOT_FOUND"
    assert failed["log_level"] == "warning"


@pytest.mark.asyncio
async def test_audit_interceptor_builds_trails():
    trails = []

    async def sink(trail):
        trails.append(trail)

    interceptor = AuditTrailInterceptor(sink)
    user = User(email="a@example.com")
    await interceptor.after(
        _ctx("update", id=user.id, data={"name": "Ann"}, options=UpdateOptions(actor="u-7")), user
    )
    await interceptor.after(_ctx("delete", id="u-gone", options=DeleteOptions()), None)
    await interceptor.after(_ctx("find_many"), [])

    update_trail, delete_trail = trails
    assert update_trail.operation == "UPDATE"
    assert update_trail.entity_id == user.id
    assert update_trail.changes == {"name": {"from": None, "to": "Ann"}}
    assert update_trail.user_id == "u-7"
    assert update_trail.trace_id == "t-1"
    assert delete_trail.operation == "DELETE"
    assert delete_trail.entity_id == "u-gone"
    assert delete_trail.entity_type == "User"


@pytest.mark.asyncio
async def test_audit_interceptor_records_previous_values():
    trails = []

    async def sink(trail):
        trails.append(trail)

    before = User(email="a@example.com", name="Ann")
    after = User(id=before.id, email="b@example.com", name="Bea")
    await AuditTrailInterceptor(sink).after(
        _ctx(
            "update",
            id=before.id,
            data={"name": "Bea", "email": "b@example.com"},
            previous=before,
        ),
        after,
    )
    assert trails[0].changes == {
        "name": {"from": "Ann", "to": "Bea"},
        "email": {"from": "a@example.com", "to": "b@example.com"},
    }


@pytest.mark.asyncio
async def test_audit_interceptor_respects_per_call_opt_out():
    trails = []

    async def sink(trail):
        trails.append(trail)

    await AuditTrailInterceptor(sink).after(
        _ctx("delete", id="u1", options=DeleteOptions(audit_trail=False)), None
    )
    assert trails == []
