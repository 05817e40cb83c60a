from pydantic import BaseModel
from typing import Optional


class BaseSchema(BaseModel):
    """Base schema for request bodies sent in camelCase by the frontend"""
    class Config:
        from_attributes = True
        populate_by_name = True
        str_strip_whitespace = True


class SuccessResponse(BaseModel):
    """Standard success response"""
    success: bool = True
    message: str
    data: Optional[dict] = None
