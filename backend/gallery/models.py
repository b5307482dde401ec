"""
Gallery Data Models
定义数据结构和类型

包含：
- Artwork: 单个藏品记录（id, title, image_id）
- Pagination: 服务端分页信息
- ArtworkResponse: 一次集合请求的完整响应
- Page: 分页控制器使用的页面视图
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

# IIIF image service of the Art Institute of Chicago
DEFAULT_IIIF_BASE_URL = "https://www.artic.edu/iiif/2"

# Width-constrained rendition requested for every gallery image
IIIF_IMAGE_PATH = "full/843,/0/default.jpg"


def build_image_url(image_id: str, iiif_base_url: str = DEFAULT_IIIF_BASE_URL) -> str:
    """Derive the image URL for an image identifier."""
    return f"{iiif_base_url.rstrip('/')}/{image_id}/{IIIF_IMAGE_PATH}"


# ==================== Collection Models ====================

class Artwork(BaseModel):
    """
    集合中的一条记录
    image_id 为空时无法生成图片地址，展示前需过滤
    """
    id: int
    title: str
    image_id: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_id)

    @property
    def image_url(self) -> Optional[str]:
        if not self.image_id:
            return None
        return build_image_url(self.image_id)

    def image_url_for(self, iiif_base_url: str) -> Optional[str]:
        """Image URL against a non-default IIIF endpoint."""
        if not self.image_id:
            return None
        return build_image_url(self.image_id, iiif_base_url)


class Pagination(BaseModel):
    """
    服务端返回的分页信息
    """
    total: int = 0
    limit: int = 0
    offset: int = 0
    total_pages: int = 0
    current_page: int = 0


class ArtworkResponse(BaseModel):
    """
    集合接口响应
    """
    data: List[Artwork] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


# ==================== Page View ====================

@dataclass
class Page:
    """One server-returned batch of records plus pagination counters."""
    records: List[Artwork]
    total_count: int
    page_size: int
    current_page_index: int
    total_pages: int
    offset: int = 0

    @classmethod
    def from_response(cls, response: ArtworkResponse) -> "Page":
        pagination = response.pagination
        return cls(
            records=list(response.data),
            total_count=pagination.total,
            page_size=pagination.limit,
            current_page_index=pagination.current_page,
            total_pages=pagination.total_pages,
            offset=pagination.offset,
        )

    @property
    def is_last(self) -> bool:
        return self.total_pages > 0 and self.current_page_index >= self.total_pages


def page_index_for(offset: int, count: int) -> int:
    """
    1-based page index for a request of ``count`` records starting at ``offset``.

    Assumes every request uses the same count as the one before it.
    """
    if count <= 0:
        raise ValueError("count must be positive")
    return offset // count + 1
