# app/schemas/rawg.py
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SuggestionKind = Literal["game", "developer", "publisher"]


class GameFilters(BaseModel):
    platforms: List[int] = Field(default_factory=list)
    genres: List[int] = Field(default_factory=list)
    tags: List[int] = Field(default_factory=list)
    ordering: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=40)

    def apply(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """把非空的篩選條件寫進 query params"""
        if self.platforms:
            params["platforms"] = ",".join(str(p) for p in self.platforms)
        if self.genres:
            params["genres"] = ",".join(str(g) for g in self.genres)
        if self.tags:
            params["tags"] = ",".join(str(t) for t in self.tags)
        if self.ordering:
            params["ordering"] = self.ordering
        return params


class RawgListResponse(BaseModel):
    # RAWG 物件欄位很多，保留原樣
    model_config = ConfigDict(extra="allow")

    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)


class Suggestion(BaseModel):
    kind: SuggestionKind
    id: int
    name: str
    image_url: Optional[str] = None
    extra: Optional[str] = None


class SuggestionsOut(BaseModel):
    items: List[Suggestion]
    count: int
