from typing import Optional


class BoardServiceError(Exception):
    """Base error carrying the logical operation and board it concerns."""

    status_code = 500

    def __init__(self, message: str, operation: str = "", board_id: Optional[str] = None):
        self.message = message
        self.operation = operation
        self.board_id = board_id
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [p for p in (self.operation, self.board_id and f"board {self.board_id}") if p]
        if parts:
            return f"{': '.join(parts)}: {self.message}"
        return self.message


class InvalidRequestError(BoardServiceError):
    status_code = 400


class NotFoundError(BoardServiceError):
    status_code = 404


class StoreTimeoutError(BoardServiceError):
    status_code = 504


class StoreQueryError(BoardServiceError):
    status_code = 500
