"""Pydantic request and response models for the API."""

from typing import Literal

from pydantic import BaseModel, Field

from .geometry import Rect


class UploadResponse(BaseModel):
    doc_id: str
    page_count: int


class PageInfoResponse(BaseModel):
    page_num: int
    width: float
    height: float


class RectModel(BaseModel):
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    def to_rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @classmethod
    def from_rect(cls, rect: Rect) -> "RectModel":
        return cls(x=rect.x, y=rect.y, width=rect.width, height=rect.height)


class AddRegionsRequest(BaseModel):
    page_num: int = Field(ge=1)
    rects: list[RectModel]
    # "css": x/y/width/height are left/top/width/height on the rendered page image
    units: Literal["pdf", "css"] = "pdf"
    scale: float = Field(default=1.0, gt=0)


class RegionsResponse(BaseModel):
    regions: dict[int, list[RectModel]]


class RedactResponse(BaseModel):
    redacted_pages: list[int]
    skipped_pages: dict[int, str]


class PageRegionsResponse(BaseModel):
    page_num: int
    units: Literal["pdf", "css"]
    rects: list[RectModel]
