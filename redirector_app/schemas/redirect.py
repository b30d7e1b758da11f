from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class RedirectRecord(BaseModel):
    """A stored redirect, as returned by every store backend.

    - from_attributes=True lets it be built straight from the ORM row
    - camelCase aliases match the JSON the admin API returns
    """
    key: str
    slug: Optional[str] = None
    destination: str
    token: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RedirectCreate(BaseModel):
    # Validated by the issuance service so a bad URL answers 400, not 422
    destination: Optional[str] = Field(None, description="Absolute http(s) URL to redirect to")
    slug: Optional[str] = Field(None, description="Optional human-readable alias")


class RedirectUpdate(BaseModel):
    destination: Optional[str] = Field(None, description="New absolute http(s) URL")


class IssueResponse(BaseModel):
    message: str
    redirect_url: str
    path_redirect_url: str
    slug_redirect_url: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    message: str
