from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterStateModel(BaseModel):
    """Persisted filter shape; unknown keys from older versions are kept and ignored downstream."""

    model_config = ConfigDict(extra="allow")

    period: Optional[str] = "Month"
    month: Optional[str] = None
    quarter: Optional[str] = None
    fy: Optional[str] = None
    fromDate: Optional[str] = None
    toDate: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    members: Union[Literal["ALL"], List[str]] = "ALL"
    companies: Union[Literal["ALL"], List[str]] = "ALL"
    projectTypes: Union[Literal["ALL"], List[str]] = "ALL"
    workTypesBoard: List[str] = Field(default_factory=list)
    productivity: str = "All"


class PersistedFilters(BaseModel):
    version: str
    timestamp: int
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
