from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ViewFiltersModel(BaseModel):
    search: str = ""
    equals: Dict[str, str] = Field(default_factory=dict)
    value_min: str = ""
    value_max: str = ""
    placed: str = "all"
    top_n: Optional[int] = None
    page: int = 1


class ViewInfo(BaseModel):
    name: str
    title: str
    required: List[str]
    filters: List[str]
    template_name: str
    loaded: bool = False


class MetaViewsResponse(BaseModel):
    views: List[ViewInfo]


class TemplateResponse(BaseModel):
    view: str
    filename: str
    headers: List[str]


class UploadResponse(BaseModel):
    view: str
    filename: str
    generation: int
    rows: int
    columns: List[str]
    adopted_at: str
    adopted: bool = True


class OptionsResponse(BaseModel):
    view: str
    options: Dict[str, List[str]]
