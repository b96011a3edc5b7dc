"""Request validation rules applied before a request reaches the board core."""

import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from board_service.actions.errors import InvalidRequestError
from board_service.schemas.requests import (
    BoardsRequest,
    CreateBoardRequest,
    DeleteBoardRequest,
    UpdateBoardRequest,
)


class ValidationRules(BaseModel):
    id_max_length: int = 64
    id_pattern: Optional[str] = Field(None, description="Regex every id must fully match")
    name_max_length: int = 255
    metadata_max_length: int = 65536
    members_max: int = 1000
    roles_max: int = 32
    allowed_roles: List[str] = Field(default_factory=list, description="Empty allows any role")
    page_size_max: int = 1000

    @classmethod
    def from_file(cls, path: str) -> "ValidationRules":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


class RequestValidator:
    """Checks board requests against a fixed set of rules.

    The rules are handed in at construction, so two validators with
    different rules can live side by side.
    """

    def __init__(self, rules: Optional[ValidationRules] = None):
        self.rules = rules or ValidationRules()
        self._id_re = re.compile(self.rules.id_pattern) if self.rules.id_pattern else None

    def validate(self, request: BaseModel) -> None:
        errors: List[str] = []

        if isinstance(request, (CreateBoardRequest, UpdateBoardRequest, DeleteBoardRequest)):
            self._check_id(errors, "board_id", request.board_id)
        if isinstance(request, CreateBoardRequest):
            self._check_id(errors, "owner_id", request.owner_id)
            if not request.name.strip():
                errors.append("name is required")
        if isinstance(request, (CreateBoardRequest, UpdateBoardRequest)):
            self._check_board_fields(errors, request)
        if isinstance(request, BoardsRequest):
            if request.page_size > self.rules.page_size_max:
                errors.append(f"page_size must be at most {self.rules.page_size_max}")
            for field in ("board_ids", "owner_ids", "member_ids"):
                for i, value in enumerate(getattr(request, field)):
                    self._check_id(errors, f"{field}[{i}]", value)

        if errors:
            raise InvalidRequestError("; ".join(errors), "validate request")

    def _check_id(self, errors: List[str], field: str, value: str) -> None:
        if not value:
            errors.append(f"{field} is required")
        elif len(value) > self.rules.id_max_length:
            errors.append(f"{field} must be at most {self.rules.id_max_length} characters")
        elif self._id_re is not None and not self._id_re.fullmatch(value):
            errors.append(f"{field} has an invalid format")

    def _check_board_fields(self, errors: List[str], request) -> None:
        rules = self.rules
        if len(request.name) > rules.name_max_length:
            errors.append(f"name must be at most {rules.name_max_length} characters")
        if len(request.metadata) > rules.metadata_max_length:
            errors.append(f"metadata must be at most {rules.metadata_max_length} characters")
        if len(request.members) > rules.members_max:
            errors.append(f"members must have at most {rules.members_max} entries")
        for i, member in enumerate(request.members):
            self._check_id(errors, f"members[{i}].member_id", member.member_id)
            if len(member.roles) > rules.roles_max:
                errors.append(f"members[{i}].roles must have at most {rules.roles_max} entries")
            if rules.allowed_roles:
                unknown = [r for r in member.roles if r not in rules.allowed_roles]
                if unknown:
                    errors.append(f"members[{i}].roles has unknown roles: {', '.join(unknown)}")
