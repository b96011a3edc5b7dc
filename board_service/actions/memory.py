"""In-process Storage that runs the compiled Mongo queries and writes.

Only the operators the board compiler emits are understood: equality,
``$in``, ``$or``, ``$and`` on (dotted) field paths, and the update operators
``$set``, ``$setOnInsert``, ``$pull`` and ``$addToSet`` with ``$each``.
"""

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List

from board_service.actions.errors import NotFoundError, StoreQueryError
from board_service.actions.query import BoardWrite, build_filter, build_update, page_window
from board_service.actions.storage import Storage
from board_service.schemas.boards import Board, Filter

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _resolve(value: Any, path: List[str]) -> List[Any]:
    """Values reached by ``path``, fanning out through arrays like Mongo does."""
    if not path:
        if isinstance(value, list):
            return list(value)
        return [value]
    if isinstance(value, list):
        out: List[Any] = []
        for item in value:
            out.extend(_resolve(item, path))
        return out
    if isinstance(value, dict) and path[0] in value:
        return _resolve(value[path[0]], path[1:])
    return []


def _match_field(doc: Dict[str, Any], field: str, cond: Any) -> bool:
    values = _resolve(doc, field.split("."))
    if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                if not any(v in arg for v in values):
                    return False
            else:
                raise StoreQueryError(f"unsupported query operator {op}", "memory query")
        return True
    return cond in values


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(matches(doc, q) for q in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, q) for q in cond):
                return False
        elif not _match_field(doc, key, cond):
            return False
    return True


def apply_write(docs: Dict[str, Dict[str, Any]], write: BoardWrite) -> None:
    target = next((d for d in docs.values() if matches(d, write.filter)), None)
    inserted = False
    if target is None:
        if not write.upsert:
            return
        target = {"_id": write.filter["_id"]}
        inserted = True

    for op, args in write.update.items():
        if op == "$set" or (op == "$setOnInsert" and inserted):
            target.update(copy.deepcopy(args))
        elif op == "$setOnInsert":
            continue
        elif op == "$pull":
            for field, cond in args.items():
                target[field] = [item for item in target.get(field, []) if not matches(item, cond)]
        elif op == "$addToSet":
            for field, arg in args.items():
                items = arg["$each"] if isinstance(arg, dict) and "$each" in arg else [arg]
                current = target.setdefault(field, [])
                for item in items:
                    if item not in current:
                        current.append(copy.deepcopy(item))
        else:
            raise StoreQueryError(f"unsupported update operator {op}", "memory update")

    if inserted:
        docs[target["_id"]] = target


class MemoryStorage(Storage):
    """Storage kept in a dict of documents, for tests and local runs."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def save(self, board: Board) -> None:
        async with self._lock:
            for write in build_update(board):
                apply_write(self.documents, write)

    async def delete(self, board_id: str) -> None:
        async with self._lock:
            if self.documents.pop(board_id, None) is None:
                raise NotFoundError("board not found", "board delete", board_id)

    def _matching(self, f: Filter) -> List[Dict[str, Any]]:
        query = build_filter(f)
        return [d for d in self.documents.values() if matches(d, query)]

    async def find(self, f: Filter, page_index: int, page_size: int) -> List[Board]:
        skip, limit = page_window(page_index, page_size)
        async with self._lock:
            docs = sorted(
                self._matching(f),
                key=lambda d: d.get("created_at") or _OLDEST,
                reverse=True,
            )
            page = copy.deepcopy(docs[skip:skip + limit])
        return [Board.from_document(d) for d in page]

    async def count(self, f: Filter) -> int:
        async with self._lock:
            return len(self._matching(f))
