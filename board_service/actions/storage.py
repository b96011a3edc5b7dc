"""Board persistence: the Storage contract and its MongoDB implementation."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

import pymongo
from pymongo.errors import PyMongoError

from board_service.actions.errors import StoreQueryError, StoreTimeoutError, NotFoundError
from board_service.actions.query import FIND_SORT, INDEX_KEYS, build_filter, build_update, page_window
from board_service.schemas.boards import Board, Filter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class Storage(ABC):
    """Abstract repository for boards."""

    @abstractmethod
    async def save(self, board: Board) -> None:
        """Upsert a board and apply its member delta."""

    @abstractmethod
    async def delete(self, board_id: str) -> None:
        """Remove a board, raising NotFoundError if it does not exist."""

    @abstractmethod
    async def find(self, f: Filter, page_index: int, page_size: int) -> List[Board]:
        """Return one page of matching boards, newest first."""

    @abstractmethod
    async def count(self, f: Filter) -> int:
        """Count every board matching the filter."""

    async def ensure_indexes(self) -> None:
        """One-time startup step, no-op unless the backend needs indexes."""

    async def close(self) -> None:
        """Release backend resources on shutdown."""


class MongoStorage(Storage):
    def __init__(self, collection, timeout: float = DEFAULT_TIMEOUT):
        self.collection = collection
        self.timeout = timeout

    @contextmanager
    def _bounded(self, operation: str, board_id: Optional[str] = None) -> Iterator[None]:
        """Run the enclosed driver calls under the store timeout."""
        try:
            with pymongo.timeout(self.timeout):
                yield
        except PyMongoError as e:
            if e.timeout:
                raise StoreTimeoutError(str(e), operation, board_id) from e
            raise StoreQueryError(str(e), operation, board_id) from e

    async def ensure_indexes(self) -> None:
        with self._bounded("create index"):
            name = await self.collection.create_index(INDEX_KEYS)
        logger.info("index created: collection=%s name=%s", self.collection.name, name)

    async def close(self) -> None:
        await self.collection.database.client.close()

    async def save(self, board: Board) -> None:
        writes = build_update(board)
        deleted = [m.member_id for m in board.members if m.delete]
        if deleted:
            logger.info("delete board's members: board_id=%s members=%s", board.board_id, deleted)

        logger.info("board update: board_id=%s", board.board_id)
        with self._bounded("board update", board.board_id):
            result = await self.collection.bulk_write(
                [w.to_operation() for w in writes], ordered=True
            )
        logger.info(
            "board updated: board_id=%s matched=%s modified=%s upserted=%s",
            board.board_id,
            result.matched_count,
            result.modified_count,
            result.upserted_count,
        )

    async def delete(self, board_id: str) -> None:
        logger.debug("board delete: board_id=%s", board_id)
        with self._bounded("board delete", board_id):
            result = await self.collection.delete_one({"_id": board_id})
        if result.deleted_count == 0:
            raise NotFoundError("board not found", "board delete", board_id)
        logger.debug("board deleted: board_id=%s", board_id)

    async def find(self, f: Filter, page_index: int, page_size: int) -> List[Board]:
        skip, limit = page_window(page_index, page_size)
        with self._bounded("board find"):
            cursor = self.collection.find(build_filter(f)).sort(FIND_SORT).skip(skip).limit(limit)
            docs = await cursor.to_list(length=None)
        return [Board.from_document(doc) for doc in docs]

    async def count(self, f: Filter) -> int:
        with self._bounded("board count"):
            return await self.collection.count_documents(build_filter(f))
