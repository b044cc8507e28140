import copy
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["MARKETPLACE_API_URL"] = "http://marketplace.test"
os.environ["FETCH_RETRY_ATTEMPTS"] = "3"
os.environ["FETCH_RETRY_DELAY"] = "0"
os.environ["REDIS_URL"] = ""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import build_engine, get_session
from app.main import app
from app.models import Base
from app.services import marketplace
from app.services.comparison import comparison_registry
from app.services.storage import ClientStorage

SAMPLE_PROPERTIES = [
    {
        "id": 1,
        "title": "Riverside house",
        "description": "Thatched house on the Thamalakane river",
        "price": "1,250,000",
        "location": "Boseja, Maun",
        "city": "Maun",
        "propertyType": "house",
        "listingType": "agent",
        "bedrooms": 3,
        "bathrooms": 2,
        "squareFeet": 1800,
        "latitude": "-19.9837",
        "longitude": "23.4167",
    },
    {
        "id": 2,
        "title": "Modern apartment",
        "description": "Walking distance to the Main Mall",
        "price": 850000,
        "location": "CBD, Gaborone",
        "city": "Gaborone",
        "property_type": "apartment",
        "listing_type": "owner",
        "bedrooms": 2,
        "bathrooms": 1,
        "square_feet": 950,
        "lat": -24.6282,
        "lng": 25.9231,
    },
    {
        "id": 3,
        "title": "Family home in Phakalane",
        "description": "Four bedrooms, borehole, solar geyser",
        "price": 2400000,
        "location": "Phakalane, Gaborone",
        "city": "Gaborone",
        "type": "house",
        "listingType": "owner",
        "bedrooms": 4,
        "bathrooms": 3,
        "latitude": 0,
        "longitude": 0,
    },
    {
        "id": 4,
        "name": "Cattle farm",
        "cost": "P4,900,000",
        "address": "Ghanzi",
        "city": "Ghanzi",
        "propertyType": "farm",
        "listingType": "agent",
        "bedrooms": None,
        "size": "120000",
        "latitude": "abc",
        "longitude": 21.7,
    },
]


@pytest.fixture
def sample_records():
    return copy.deepcopy(SAMPLE_PROPERTIES)


class FakeMarketplace:
    """Stands in for the marketplace REST API behind httpx.MockTransport."""

    def __init__(self):
        self.calls = []
        self.properties = list(SAMPLE_PROPERTIES)
        self.properties_status = 200
        self.ai_status = 200
        self.ai_body = {"explanation": "Showing everything", "confidence": 0.5, "filters": {}}
        self.keyword_results = []
        self.suggestions = ["Gaborone West", "Gaborone North"]

    @property
    def paths(self):
        return [request.url.path for request in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path == "/api/properties":
            if self.properties_status != 200:
                return httpx.Response(self.properties_status, json={"message": "unavailable"})
            return httpx.Response(200, json={"success": True, "data": self.properties})
        if path == "/api/search/ai":
            if isinstance(self.ai_body, str):
                return httpx.Response(self.ai_status, text=self.ai_body)
            return httpx.Response(self.ai_status, json=self.ai_body)
        if path == "/api/search":
            return httpx.Response(200, json={"results": self.keyword_results})
        if path == "/api/suggest":
            return httpx.Response(200, json={"suggestions": self.suggestions})
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def fake_marketplace(monkeypatch):
    fake = FakeMarketplace()

    def client(timeout):
        return httpx.AsyncClient(
            base_url="http://marketplace.test",
            timeout=timeout,
            transport=httpx.MockTransport(fake.handler),
        )

    monkeypatch.setattr(marketplace, "_client", client)
    return fake


@pytest.fixture(autouse=True)
def reset_state():
    marketplace.breaker.close()
    marketplace.ai_breaker.close()
    comparison_registry.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(db_session):
    return ClientStorage(db_session, "client-1")


@pytest.fixture
async def client(session_factory, fake_marketplace):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Client-Id": "client-1"},
    ) as client:
        yield client
