from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from staff_scheduler.api.dependencies import get_reporter, get_schedule_cache
from staff_scheduler.main import create_application
from staff_scheduler.services.cache import InMemoryScheduleCache

from .utils import RecordingReporter


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def schedule_cache() -> InMemoryScheduleCache:
    return InMemoryScheduleCache(ttl_seconds=60)


@pytest.fixture()
async def api_client(
    schedule_cache: InMemoryScheduleCache,
    reporter: RecordingReporter,
) -> AsyncIterator[AsyncClient]:
    app = create_application()
    app.dependency_overrides[get_schedule_cache] = lambda: schedule_cache
    app.dependency_overrides[get_reporter] = lambda: reporter
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
