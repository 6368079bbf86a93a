from typing import Any

import pytest
from pullup import database
from pullup.infrastructure.repositories import SqlAlchemyEventRepository, SqlAlchemyRsvpRepository


class DummySession:
    def __init__(self) -> None:
        self.began = False
        self.closed = False

    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.closed = True
        return False

    def begin(self) -> "DummySession":
        self.began = True
        return self


@pytest.mark.asyncio
async def test_repositories_share_one_transactional_session(monkeypatch) -> None:
    session = DummySession()

    def factory(*args: Any, **kwargs: Any) -> DummySession:
        return session

    monkeypatch.setattr(database, "async_session", factory)

    async with database.repositories() as (event_repo, rsvp_repo):
        assert isinstance(event_repo, SqlAlchemyEventRepository)
        assert isinstance(rsvp_repo, SqlAlchemyRsvpRepository)
        assert event_repo.session is session
        assert rsvp_repo.session is session
        assert session.began
    assert session.closed
