"""
app/schemas/integrations.py

Schemas for platform integration endpoints.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class IntegrationFetchBody(BaseModel):
    platform: str = ""
    account_id: str = ""
    access_token: str = ""
    refresh_token: str | None = None
    start_date: date
    end_date: date
    metrics: list[str] = Field(default_factory=list)
    dimensions: list[str] = Field(default_factory=list)


class IntegrationFetchResponse(BaseModel):
    success: bool = True
    file_id: str
    file_name: str
    total_rows: int = Field(..., ge=0)
    headers: list[str] = Field(default_factory=list)
    uploaded_at: datetime


class PlatformConfigResponse(BaseModel):
    name: str
    default_metrics: list[str] = Field(default_factory=list)
    default_dimensions: list[str] = Field(default_factory=list)
    max_date_range: int


class PlatformListResponse(BaseModel):
    platforms: dict[str, PlatformConfigResponse] = Field(default_factory=dict)
