"""Compile board filters and updates into MongoDB queries and write operations."""

from typing import Any, Dict, List, NamedTuple, Tuple

from pymongo import DESCENDING, UpdateOne

from board_service.schemas.boards import Board, Filter

# fields an update must never overwrite
IMMUTABLE_FIELDS = ("_id", "owner_id", "created_at")

FIND_SORT = [("created_at", DESCENDING)]

INDEX_KEYS = [("owner_id", 1), ("created_at", 1), ("members.member_id", 1)]


class BoardWrite(NamedTuple):
    """One step of a board save, run in order inside a single bulk write."""

    filter: Dict[str, Any]
    update: Dict[str, Any]
    upsert: bool = False

    def to_operation(self) -> UpdateOne:
        return UpdateOne(self.filter, self.update, upsert=self.upsert)


def _in(field: str, values: List[str]) -> Dict[str, Any]:
    return {field: {"$in": list(values)}}


def build_filter(f: Filter) -> Dict[str, Any]:
    """Translate a Filter into a find/count predicate.

    Clauses are merged into one document, so they AND together. An empty
    Filter gives ``{}``, which matches every board.
    """
    query: Dict[str, Any] = {}
    if f.board_ids:
        query.update(_in("_id", f.board_ids))

    if f.owner_ids and f.member_ids:
        query["$or"] = [
            _in("owner_id", f.owner_ids),
            _in("members.member_id", f.member_ids),
        ]
    elif f.owner_ids:
        query.update(_in("owner_id", f.owner_ids))
    elif f.member_ids:
        query.update(_in("members.member_id", f.member_ids))

    return query


def build_update(board: Board) -> List[BoardWrite]:
    """Translate a board save into ordered write operations.

    Every incoming member id is pulled first, so a board keeps one entry per
    member_id. A single upsert then sets the mutable scalar fields, sets
    owner_id/created_at on insert only and adds back the members not flagged
    for deletion.
    """
    writes: List[BoardWrite] = []
    by_id = {"_id": board.board_id}

    pull_ids = list(dict.fromkeys(m.member_id for m in board.members))
    if pull_ids:
        writes.append(BoardWrite(
            filter=by_id,
            update={"$pull": {"members": {"member_id": {"$in": pull_ids}}}},
        ))

    doc = board.to_document()
    fields = {
        key: value for key, value in doc.items()
        if key not in IMMUTABLE_FIELDS and key != "members" and value not in (None, "")
    }
    on_insert = {"owner_id": board.owner_id, "created_at": board.created_at}
    # last grant wins when a request names the same member twice
    added = {m.member_id: m.to_document() for m in board.members if not m.delete}
    add_members = list(added.values())

    update: Dict[str, Any] = {
        "$setOnInsert": on_insert,
        "$addToSet": {"members": {"$each": add_members}},
    }
    # an empty $set is rejected by the server
    if fields:
        update["$set"] = fields

    writes.append(BoardWrite(filter=by_id, update=update, upsert=True))
    return writes


def page_window(page_index: int, page_size: int) -> Tuple[int, int]:
    """Return (skip, limit) for a zero-based page."""
    return page_index * page_size, page_size
