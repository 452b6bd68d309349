"""Shared fixtures: in-memory store and a fake Strava API."""
from typing import Dict, List, Optional, Union

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stridesync.database import init_db
from stridesync.services.storage import ActivityStore
from stridesync.services.strava import StravaClient


def make_raw_activity(activity_id: int, **overrides) -> Dict:
    """Activity summary shaped like GET /athlete/activities."""
    activity = {
        "id": activity_id,
        "name": f"Morning Run {activity_id}",
        "type": "Run",
        "distance": 5000.0,
        "moving_time": 1500,
        "total_elevation_gain": 20.0,
        "start_date": "2025-01-06T13:00:00Z",
        "start_date_local": "2025-01-06T08:00:00Z",
        "average_speed": 3.33,
        "max_speed": 4.1,
        "average_heartrate": 150.0,
        "max_heartrate": 171.0,
    }
    activity.update(overrides)
    return activity


PageResult = Union[List[Dict], Dict, int, Exception]


class FakeStravaAPI:
    """
    Stand-in for the Strava REST API behind an httpx.MockTransport.

    pages maps a page number to a list of activities, an HTTP status code
    to fail with, or an exception to raise; unlisted pages use default_page.
    """

    def __init__(self):
        self.pages: Dict[int, PageResult] = {}
        self.default_page: PageResult = []
        self.athlete = {"id": 42, "firstname": "Ada", "lastname": "Runner"}
        self.athlete_status = 200
        self.requests: List[httpx.Request] = []

    def full_pages(self, count: int, page_size: int) -> None:
        next_id = 1
        for page in range(1, count + 1):
            self.pages[page] = [make_raw_activity(next_id + i) for i in range(page_size)]
            next_id += page_size

    def _respond(self, result: PageResult) -> httpx.Response:
        if isinstance(result, Exception):
            raise result
        if isinstance(result, int):
            return httpx.Response(result, json={"message": "error"})
        return httpx.Response(200, json=result)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/athlete/activities"):
            page = int(request.url.params["page"])
            return self._respond(self.pages.get(page, self.default_page))
        if path.endswith("/athlete"):
            if self.athlete_status != 200:
                return httpx.Response(self.athlete_status, json={"message": "error"})
            return httpx.Response(200, json=self.athlete)
        if path.endswith("/streams"):
            keys = request.url.params["keys"].split(",")
            return httpx.Response(200, json={key: {"data": []} for key in keys})
        if "/activities/" in path:
            activity_id = int(path.rsplit("/", 1)[-1])
            return httpx.Response(200, json=make_raw_activity(activity_id))
        return httpx.Response(404, json={"message": "not found"})

    @property
    def activity_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/athlete/activities")]

    def client(self, token: Optional[str] = "test-token") -> StravaClient:
        return StravaClient(token, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def strava_api():
    return FakeStravaAPI()


@pytest.fixture
def raw_activity():
    return make_raw_activity


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return ActivityStore(session_factory)


@pytest.fixture
def broken_store():
    """Store whose database has no tables, so every operation fails."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield ActivityStore(sessionmaker(bind=engine))
    engine.dispose()
