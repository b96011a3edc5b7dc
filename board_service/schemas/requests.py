from pydantic import BaseModel, Field
from typing import List, Optional


# Wire shapes of the four board procedures


class CreateBoardRequestMember(BaseModel):
    member_id: str
    roles: List[str] = Field(default_factory=list)


class CreateBoardRequest(BaseModel):
    board_id: str
    owner_id: str
    name: str
    metadata: str = ""
    members: List[CreateBoardRequestMember] = Field(default_factory=list)


class UpdateBoardRequestMember(BaseModel):
    member_id: str
    roles: List[str] = Field(default_factory=list)
    delete: bool = False


class UpdateBoardRequest(BaseModel):
    board_id: str
    name: str = ""
    metadata: str = ""
    members: List[UpdateBoardRequestMember] = Field(default_factory=list)


class DeleteBoardRequest(BaseModel):
    board_id: str


class BoardsRequest(BaseModel):
    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, ge=1)
    board_ids: List[str] = Field(default_factory=list)
    owner_ids: List[str] = Field(default_factory=list)
    member_ids: List[str] = Field(default_factory=list)


class BoardsResponseMember(BaseModel):
    member_id: str
    roles: List[str] = Field(default_factory=list)


class BoardsResponseBoard(BaseModel):
    board_id: str
    owner_id: str
    name: str
    metadata: str
    created_at: Optional[str] = Field(None, description="RFC 3339 UTC timestamp")
    members: List[BoardsResponseMember] = Field(default_factory=list)


class BoardsResponse(BaseModel):
    total: int
    boards: List[BoardsResponseBoard] = Field(default_factory=list)


class EmptyResponse(BaseModel):
    ok: bool = True
    message: str = ""
