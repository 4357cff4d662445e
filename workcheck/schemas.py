# workcheck/schemas.py
"""Request/response models for the HTTP API (camelCase on the wire)."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilePayload(_CamelModel):
    id: Optional[int] = None
    file: str
    test: Optional[str] = None


class CheckPayload(_CamelModel):
    id: Optional[int] = None
    check_item: str
    status: Optional[str] = None
    sort_order: int = 0


class TaskPayload(_CamelModel):
    id: Optional[int] = None
    task_id: str = Field(..., min_length=1, max_length=50)
    change: Optional[str] = None
    risk: Optional[str] = None
    # user/month of a saved task always come from the bucket being saved
    user_name: Optional[str] = None
    month: Optional[str] = None
    # an explicit null is accepted and stored as an empty list
    files: Optional[List[FilePayload]] = Field(default_factory=list)
    checks: Optional[List[CheckPayload]] = Field(default_factory=list)
