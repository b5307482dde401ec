"""
Gallery 测试配置文件

这个文件包含 pytest fixtures（测试夹具）和测试用的假实现：
- FakeImage：只有 width/height 的图片替身，用于缓存成本计算
- FakeCollection：可编排响应的集合接口替身
- ImageServer：基于 httpx.MockTransport 的图片服务器替身
"""

import asyncio
import sys
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Set

import httpx
import pytest
from PIL import Image

# 添加 backend 目录到 Python 路径
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from image_cache import BoundedImageCache, ImageFetchConfig, ResourceFetcher
from gallery.models import Artwork, Page


# ============================================
# Helpers
# ============================================

@dataclass
class FakeImage:
    """图片替身：成本 = width * height * 4"""
    width: int
    height: int


def make_image_bytes(width: int = 4, height: int = 3, fmt: str = "PNG") -> bytes:
    """生成一张真实可解码的小图片"""
    output = BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(output, format=fmt)
    return output.getvalue()


def make_artwork(artwork_id: int, has_image: bool = True) -> Artwork:
    image_id = f"img-{artwork_id}" if has_image else None
    return Artwork(id=artwork_id, title=f"Artwork {artwork_id}", image_id=image_id)


def make_page(records: List[Artwork], total: int = 100, limit: int = 10, current_page: int = 1) -> Page:
    return Page(
        records=records,
        total_count=total,
        page_size=limit,
        current_page_index=current_page,
        total_pages=(total + limit - 1) // limit if limit else 0,
    )


class FakeCollection:
    """
    集合接口替身

    responses 按调用顺序依次返回；元素为 Exception 时抛出。
    gate 不为空时，每次请求都会等待 gate.set()。
    """

    def __init__(self, responses=None, gate: Optional[asyncio.Event] = None):
        self.responses = list(responses or [])
        self.gate = gate
        self.calls: List[tuple] = []

    async def fetch_page(self, page: int, limit: int) -> Page:
        self.calls.append((page, limit))
        # 模拟真实网络请求的挂起点
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()

        result = self.responses.pop(0) if self.responses else make_page([])
        if isinstance(result, Exception):
            raise result
        return result


class ImageServer:
    """
    图片服务器替身

    - images 中注册的 URL 返回对应字节
    - serve_all=True 时未注册的 URL 也返回默认图片
    - failing 中的 URL 触发连接错误
    - 其他 URL 返回 404
    """

    def __init__(self, delay: float = 0.0, serve_all: bool = False):
        self.delay = delay
        self.serve_all = serve_all
        self.images: Dict[str, bytes] = {}
        self.failing: Set[str] = set()
        self.requests: List[str] = []
        self.default_image = make_image_bytes()

    def add(self, url: str, data: Optional[bytes] = None) -> str:
        self.images[url] = data if data is not None else self.default_image
        return url

    def count(self, url: str) -> int:
        return self.requests.count(url)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)

        if url in self.failing:
            raise httpx.ConnectError("connection refused", request=request)

        data = self.images.get(url)
        if data is None and self.serve_all:
            data = self.default_image
        if data is None:
            return httpx.Response(404, request=request)
        return httpx.Response(200, content=data, headers={"content-type": "image/jpeg"}, request=request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def cache():
    """默认限制的空缓存"""
    return BoundedImageCache()


@pytest.fixture
def image_server():
    return ImageServer()


@pytest.fixture
def fetcher(cache, image_server):
    """使用假图片服务器的 ResourceFetcher（不合并并发请求）"""
    return ResourceFetcher(cache, http_client=image_server.client())


@pytest.fixture
def coalescing_fetcher(cache, image_server):
    """合并并发请求的 ResourceFetcher"""
    return ResourceFetcher(
        cache,
        ImageFetchConfig(coalesce_requests=True),
        http_client=image_server.client(),
    )


# ============================================
# Helper Functions
# ============================================

def assert_cache_consistent(cache: BoundedImageCache):
    """
    断言缓存计数器与条目一致。

    使用方式：
    ```python
    cache.set("a", FakeImage(2, 2))
    assert_cache_consistent(cache)
    ```
    """
    entries = list(cache._entries.values())
    assert cache.item_count == len(entries)
    assert cache.total_cost == sum(e.cost for e in entries)
