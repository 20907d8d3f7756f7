from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_TRENDLINE_COLOR

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class InstrumentResponse(BaseModel):
    symbol: str = Field(..., description="Ticker symbol")
    name: str = Field(..., description="Human readable name")


class OHLCCandle(BaseModel):
    timestamp: int = Field(..., description="Unix timestamp in seconds")
    open: float
    high: float
    low: float
    close: float
    volume: float


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrendlineCreate(_CamelModel):
    user_id: Optional[int] = None
    start_timestamp: int = Field(..., ge=0, description="Unix timestamp in seconds")
    start_price: float
    end_timestamp: int = Field(..., ge=0, description="Unix timestamp in seconds")
    end_price: float
    color: str = Field(DEFAULT_TRENDLINE_COLOR, pattern=HEX_COLOR_PATTERN)


class TrendlineUpdate(_CamelModel):
    user_id: Optional[int] = None
    start_timestamp: Optional[int] = Field(None, ge=0)
    start_price: Optional[float] = None
    end_timestamp: Optional[int] = Field(None, ge=0)
    end_price: Optional[float] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator("start_timestamp", "start_price", "end_timestamp", "end_price", "color")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class TrendlineRecord(TrendlineCreate):
    id: int
    created_at: datetime


class ValidationErrorResponse(BaseModel):
    message: str
    errors: List[dict]
