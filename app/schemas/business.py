from pydantic import Field

from app.schemas import BaseSchema


class BusinessCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=255)
    domain: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
