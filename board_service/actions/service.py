import logging

from board_service.actions.storage import Storage
from board_service.schemas.boards import create_board, update_board, create_filter, to_response
from board_service.schemas.requests import (
    BoardsRequest,
    BoardsResponse,
    CreateBoardRequest,
    DeleteBoardRequest,
    UpdateBoardRequest,
)

logger = logging.getLogger(__name__)


class BoardService:
    """Maps the board procedures onto a Storage."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def create_board(self, request: CreateBoardRequest) -> None:
        await self.storage.save(create_board(request))

    async def update_board(self, request: UpdateBoardRequest) -> None:
        await self.storage.save(update_board(request))

    async def delete_board(self, request: DeleteBoardRequest) -> None:
        await self.storage.delete(request.board_id)

    async def get_boards(self, request: BoardsRequest) -> BoardsResponse:
        """List one page of boards.

        A filter on explicit board ids is small enough that the page length is
        the total. Otherwise a count query runs only when the page cannot tell
        it: a full page may have more behind it, and an empty page past the
        first says nothing about earlier pages. An under-full page is the last
        one, so its offset plus its length is exact.
        """
        f = create_filter(request)
        boards = await self.storage.find(f, request.page_index, request.page_size)

        total = len(boards)
        if not request.board_ids:
            full_page = len(boards) == request.page_size
            past_end = not boards and request.page_index > 0
            if full_page or past_end:
                total = await self.storage.count(f)
                logger.debug("boards counted: total=%s", total)
            else:
                total += request.page_index * request.page_size

        return BoardsResponse(total=total, boards=[to_response(b) for b in boards])
