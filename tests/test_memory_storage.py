"""Tests for MemoryStorage, which runs the compiled queries and writes in process."""

from datetime import datetime, timedelta, timezone

import pytest

from board_service.actions.errors import NotFoundError
from board_service.actions.memory import MemoryStorage, matches
from board_service.actions.query import build_filter
from board_service.schemas.boards import Board, Filter, Member


def _doc(board_id, owner_id, member_ids):
    return {
        "_id": board_id,
        "owner_id": owner_id,
        "members": [{"member_id": m, "roles": ["viewer"]} for m in member_ids],
    }


DOCS = [
    _doc("b1", "o1", ["m1"]),
    _doc("b2", "o1", []),
    _doc("b3", "o2", ["m1", "m2"]),
    _doc("b4", "o3", ["m3"]),
]


class TestMatches:
    def test_empty_filter_matches_all_documents(self):
        query = build_filter(Filter())
        assert all(matches(d, query) for d in DOCS)

    def test_owner_or_member(self):
        query = build_filter(Filter(owner_ids=["o1"], member_ids=["m1"]))
        for doc in DOCS:
            expected = doc["owner_id"] == "o1" or any(m["member_id"] == "m1" for m in doc["members"])
            assert matches(doc, query) is expected

    def test_board_ids_and_member_ids(self):
        query = build_filter(Filter(board_ids=["b1", "b4"], member_ids=["m1"]))
        assert [d["_id"] for d in DOCS if matches(d, query)] == ["b1"]


def _board(board_id="b1", members=(), **kwargs) -> Board:
    return Board(board_id=board_id, members=list(members), **kwargs)


async def _only(storage: MemoryStorage, board_id: str) -> Board:
    boards = await storage.find(Filter(board_ids=[board_id]), 0, 10)
    assert len(boards) == 1
    return boards[0]


@pytest.mark.asyncio
async def test_update_is_idempotent_for_same_member_value():
    storage = MemoryStorage()
    update = _board(members=[Member(member_id="m1", roles=["r1"])])

    await storage.save(update)
    await storage.save(update)

    board = await _only(storage, "b1")
    assert [(m.member_id, m.roles) for m in board.members] == [("m1", ["r1"])]


@pytest.mark.asyncio
async def test_delete_then_add_replaces_roles():
    storage = MemoryStorage()
    await storage.save(_board(members=[Member(member_id="m1", roles=["r1"])]))
    await storage.save(_board(members=[Member(member_id="m1", delete=True)]))
    await storage.save(_board(members=[Member(member_id="m1", roles=["r2"])]))

    board = await _only(storage, "b1")
    assert [(m.member_id, m.roles) for m in board.members] == [("m1", ["r2"])]


@pytest.mark.asyncio
async def test_regrant_replaces_roles_without_delete():
    storage = MemoryStorage()
    await storage.save(_board(members=[Member(member_id="m1", roles=["r1"])]))
    await storage.save(_board(members=[Member(member_id="m1", roles=["r2"])]))

    board = await _only(storage, "b1")
    assert [(m.member_id, m.roles) for m in board.members] == [("m1", ["r2"])]


@pytest.mark.asyncio
async def test_pull_and_add_in_one_save():
    storage = MemoryStorage()
    await storage.save(_board(members=[Member(member_id="m1", roles=["r1"]), Member(member_id="m2")]))
    await storage.save(_board(members=[
        Member(member_id="m1", delete=True),
        Member(member_id="m1", roles=["r2"]),
    ]))

    board = await _only(storage, "b1")
    assert sorted((m.member_id, tuple(m.roles)) for m in board.members) == [("m1", ("r2",)), ("m2", ())]


@pytest.mark.asyncio
async def test_update_never_overwrites_owner_or_created_at():
    storage = MemoryStorage()
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    await storage.save(_board(owner_id="u1", name="Sprint", created_at=created))
    await storage.save(_board(owner_id="u9", name="Renamed", created_at=created + timedelta(days=1)))

    board = await _only(storage, "b1")
    assert board.owner_id == "u1"
    assert board.created_at == created
    assert board.name == "Renamed"


@pytest.mark.asyncio
async def test_delete():
    storage = MemoryStorage()
    with pytest.raises(NotFoundError):
        await storage.delete("missing")

    await storage.save(_board(owner_id="u1"))
    await storage.delete("b1")
    assert await storage.find(Filter(board_ids=["b1"]), 0, 10) == []


@pytest.mark.asyncio
async def test_find_sorts_newest_first_and_pages():
    storage = MemoryStorage()
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(5):
        await storage.save(_board(f"b{i}", owner_id="u1", created_at=start + timedelta(minutes=i)))

    first = await storage.find(Filter(), 0, 2)
    last = await storage.find(Filter(), 2, 2)

    assert [b.board_id for b in first] == ["b4", "b3"]
    assert [b.board_id for b in last] == ["b0"]
    assert await storage.count(Filter(owner_ids=["u1"])) == 5
    assert await storage.count(Filter(owner_ids=["u2"])) == 0
