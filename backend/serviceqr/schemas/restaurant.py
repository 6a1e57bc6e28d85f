"""Restaurant and table schemas"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional
from datetime import datetime


class RestaurantResponse(BaseModel):
    id: int
    slug: str
    name: str
    logo_url: Optional[str] = None
    theme_config: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TableResponse(BaseModel):
    id: int
    restaurant_id: int
    table_number: str
    qr_code_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TableCreate(BaseModel):
    """Create table request. The QR token is generated when omitted."""
    table_number: str = Field(..., max_length=50)
    qr_code_id: Optional[str] = Field(None, max_length=100)

    @field_validator("table_number")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please fill in all fields")
        return v

    @field_validator("qr_code_id")
    @classmethod
    def _strip_token(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class TableUpdate(BaseModel):
    table_number: str = Field(..., max_length=50)
    qr_code_id: str = Field(..., max_length=100)

    @field_validator("table_number", "qr_code_id")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please fill in all fields")
        return v


class TableLink(BaseModel):
    """Guest URL printed into a table's QR code."""
    table_number: str
    qr_code_id: str
    url: str
