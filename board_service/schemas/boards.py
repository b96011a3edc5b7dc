from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from board_service.schemas.requests import (
    CreateBoardRequest,
    UpdateBoardRequest,
    BoardsRequest,
    BoardsResponseBoard,
    BoardsResponseMember,
)


# BaseModel for MongoDB documents, `_id` is populated by alias
class MongoBaseModel(BaseModel):
    model_config = {
        "populate_by_name": True,
    }


class Member(MongoBaseModel):
    member_id: str
    roles: List[str] = Field(default_factory=list)
    # removal intent on update requests, never stored
    delete: bool = Field(default=False, exclude=True)

    def to_document(self) -> Dict[str, Any]:
        return {"member_id": self.member_id, "roles": list(self.roles)}


class Board(MongoBaseModel):
    board_id: str = Field(alias="_id")
    owner_id: Optional[str] = None
    name: Optional[str] = None
    metadata: Optional[str] = None
    created_at: Optional[datetime] = None
    members: List[Member] = Field(default_factory=list)

    def member_with_role(self, role: str) -> Optional[Member]:
        """Return the first member holding ``role``, or None."""
        for member in self.members:
            if role in member.roles:
                return member
        return None

    def to_document(self) -> Dict[str, Any]:
        """Mongo document for this board; unset scalar fields are left out."""
        doc = self.model_dump(by_alias=True, exclude={"members"}, exclude_none=True)
        doc["members"] = [m.to_document() for m in self.members]
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Board":
        created_at = doc.get("created_at")
        if isinstance(created_at, datetime) and created_at.tzinfo is None:
            # the driver hands back naive datetimes unless tz_aware is on
            doc = {**doc, "created_at": created_at.replace(tzinfo=timezone.utc)}
        return cls.model_validate(doc)


class Filter(BaseModel):
    board_ids: List[str] = Field(default_factory=list)
    owner_ids: List[str] = Field(default_factory=list)
    member_ids: List[str] = Field(default_factory=list)


def _utcnow() -> datetime:
    # Mongo keeps millisecond precision, trim so stored and returned values agree
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def create_board(request: CreateBoardRequest) -> Board:
    return Board(
        board_id=request.board_id,
        owner_id=request.owner_id,
        name=request.name,
        metadata=request.metadata,
        created_at=_utcnow(),
        members=[
            Member(member_id=m.member_id, roles=list(m.roles))
            for m in request.members
        ],
    )


def update_board(request: UpdateBoardRequest) -> Board:
    # owner_id and created_at stay unset so they never overwrite stored values
    return Board(
        board_id=request.board_id,
        name=request.name,
        metadata=request.metadata,
        members=[
            Member(member_id=m.member_id, roles=list(m.roles), delete=m.delete)
            for m in request.members
        ],
    )


def create_filter(request: BoardsRequest) -> Filter:
    return Filter(
        board_ids=list(request.board_ids),
        owner_ids=list(request.owner_ids),
        member_ids=list(request.member_ids),
    )


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """RFC 3339 UTC rendering used on the wire, e.g. 2024-05-01T10:00:00.123Z."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_response(board: Board) -> BoardsResponseBoard:
    return BoardsResponseBoard(
        board_id=board.board_id,
        owner_id=board.owner_id or "",
        name=board.name or "",
        metadata=board.metadata or "",
        created_at=format_timestamp(board.created_at),
        members=[
            BoardsResponseMember(member_id=m.member_id, roles=list(m.roles))
            for m in board.members
        ],
    )
