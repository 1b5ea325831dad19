import pytest
from structlog.testing import capture_logs

from datacore.core.error_handlers import handle_error
from datacore.core.exceptions import DomainValidationError, NotFoundError, ValidationError
from datacore.logging import current_trace_id
from datacore.middleware.interceptors import ServiceInterceptor
from datacore.middleware.logging import LoggingInterceptor
from datacore.repositories.base import Repository
from datacore.repositories.options import CreateOptions, ListOptions, SearchQuery, UpdateOptions
from datacore.services.base import Service, ServiceConfig

from .conftest import User


class EmailValidator(ServiceInterceptor):
    """Rejects payloads whose email would fail ``User.validate``."""

    def __init__(self):
        self.validated = []

    async def validate(self, ctx):
        self.validated.append(ctx.operation)
        data = ctx.arguments.get("data") or {}
        if "email" in data:
            User(email=data["email"]).validate()


class FindSpy(ServiceInterceptor):
    def __init__(self):
        self.seen = []
        self.trace_ids = []

    async def before(self, ctx):
        self.trace_ids.append((ctx.trace_id, current_trace_id()))

    async def after_find(self, ctx, entity):
        self.seen.append(entity.id)


@pytest.fixture
def repository(store):
    return Repository(store, entity_type="User")


@pytest.mark.asyncio
async def test_create_runs_validation(repository, store):
    validator = EmailValidator()
    service = Service(repository, interceptors=[validator])
    user = await service.create({"email": "a@example.com"})
    assert user.email == "a@example.com"
    assert validator.validated == ["create"]

    with pytest.raises(DomainValidationError):
        await service.create({"email": "not-an-email"})
    assert len(store.rows) == 1


@pytest.mark.asyncio
async def test_validation_can_be_skipped(repository, store):
    validator = EmailValidator()
    service = Service(repository, interceptors=[validator])
    await service.create({"email": "raw"}, CreateOptions(skip_validation=True))
    assert validator.validated == []

    off = Service(repository, ServiceConfig(validation=False), interceptors=[validator])
    await off.create({"email": "raw2"})
    assert validator.validated == []
    assert len(store.rows) == 2


@pytest.mark.asyncio
async def test_update_validates_and_delegates(repository):
    validator = EmailValidator()
    service = Service(repository, interceptors=[validator])
    user = await service.create({"email": "a@example.com"})
    updated = await service.update(user.id, {"name": "Ann"}, UpdateOptions(expected_version=1))
    assert updated.name == "Ann"
    assert validator.validated == ["create", "update"]

    with pytest.raises(DomainValidationError):
        await service.update(user.id, {"email": "bad"})


@pytest.mark.asyncio
async def test_reads_call_after_find_per_entity(repository):
    spy = FindSpy()
    service = Service(repository, interceptors=[spy])
    first = await service.create({"email": "a@example.com", "name": "Ann"})
    second = await service.create({"email": "b@example.com", "name": "Bob"})

    assert await service.find_by_id(first.id) == first
    page = await service.list(ListOptions(limit=5))
    found = await service.search(SearchQuery(query="bob"))

    assert [u.id for u in page.data] == [first.id, second.id]
    assert found.total == 1
    assert spy.seen == [first.id, first.id, second.id, second.id]


@pytest.mark.asyncio
async def test_missing_entity_skips_after_find(repository):
    spy = FindSpy()
    service = Service(repository, interceptors=[spy])
    assert await service.find_by_id("missing") is None
    assert spy.seen == []


@pytest.mark.asyncio
async def test_each_operation_binds_a_fresh_trace_id(repository):
    spy = FindSpy()
    service = Service(repository, interceptors=[spy])
    await service.create({"email": "a@example.com"})
    await service.list()
    (first_ctx, first_bound), (second_ctx, second_bound) = spy.trace_ids
    assert first_ctx == first_bound
    assert second_ctx == second_bound
    assert first_ctx != second_ctx
    assert current_trace_id() is None


@pytest.mark.asyncio
async def test_repository_shares_service_trace_id(store):
    seen = []

    class RepoSpy(ServiceInterceptor):
        async def before(self, ctx):
            seen.append((ctx.layer, ctx.trace_id))

    repository = Repository(store, interceptors=[RepoSpy()])
    service = Service(repository, interceptors=[RepoSpy()])
    await service.delete((await service.create({"email": "a@example.com"})).id)
    (svc_layer, svc_trace), (repo_layer, repo_trace) = seen[-2:]
    assert (svc_layer, repo_layer) == ("service", "repository")
    assert svc_trace == repo_trace


@pytest.mark.asyncio
async def test_errors_are_logged_and_reraised(repository):
    service = Service(repository, interceptors=[LoggingInterceptor()])
    with capture_logs() as logs:
        with pytest.raises(NotFoundError):
            await service.delete("missing")
    failed = [log for log in logs if log["event"] == "data_operation_failed"]
    assert failed[0]["operation"] == "delete"
    assert failed[0]["layer"] == "service"


@pytest.mark.asyncio
async def test_errors_carry_the_operation_trace_id(repository):
    failures = []

    class ErrorSpy(ServiceInterceptor):
        async def on_error(self, ctx, error):
            failures.append((ctx.trace_id, error))

    service = Service(repository, interceptors=[ErrorSpy()])
    with pytest.raises(NotFoundError) as exc_info:
        await service.delete("missing")

    trace_id, seen = failures[0]
    err = exc_info.value
    assert seen is err
    assert err.trace_id == trace_id
    assert err.context["trace_id"] == trace_id
    assert err.context["operation"] == "delete"
    assert err.context["entity_id"] == "missing"
    assert err.context["layer"] == "repository"
    assert handle_error(err).trace_id == trace_id


@pytest.mark.asyncio
async def test_validation_error_aborts_before_repository(repository, store):
    class Reject(ServiceInterceptor):
        async def validate(self, ctx):
            raise ValidationError("rejected")

    service = Service(repository, interceptors=[Reject()])
    with pytest.raises(ValidationError):
        await service.create({"email": "a@example.com"})
    assert store.calls == []


def test_entity_type_comes_from_repository(repository):
    assert Service(repository).entity_type == "User"
