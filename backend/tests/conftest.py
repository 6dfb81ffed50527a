"""
Slack Images 测试配置文件

这个文件包含 pytest fixtures（测试夹具）和测试用的假下载器。

关键概念：
- FakeSlackDownloader：按 URL 返回预置字节，记录并发数和取消次数
- make_png：用 Pillow 生成真实 PNG
- fake_png：只有 PNG 魔数、无法解码的假 PNG
"""

import asyncio
import sys
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from PIL import Image

# 添加 backend 目录到 Python 路径
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from slack_images.config import ImagePipelineConfig
from slack_images.models import SlackFile

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

LOGIN_PAGE = (
    b"<!DOCTYPE html>\n<html><head><title>Slack</title></head>"
    b"<body><form>Sign in to your workspace</form></body></html>"
)


# ============================================
# Fake collaborators
# ============================================

class FakeSlackDownloader:
    """
    假的 Slack 文件下载器。

    - files: URL -> 字节
    - errors: URL -> 要抛出的异常
    - delay: 每次下载的等待时间（秒）
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0,
    ):
        self.files = files or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancelled = 0

    async def get_file(self, url, sink):
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.in_flight -= 1

        if url in self.errors:
            raise self.errors[url]
        if url not in self.files:
            raise FileNotFoundError(f"file not found: {url}")
        sink.write(self.files[url])


class FakeFileInfoProvider:
    """假的 files.info 查询。"""

    def __init__(self, files: Optional[Dict[str, SlackFile]] = None, can_download: bool = True):
        self.files = files or {}
        self.can_download = can_download

    def can_download_files(self):
        return self.can_download

    async def get_file_info(self, file_id):
        if file_id not in self.files:
            raise RuntimeError("file_not_found")
        return self.files[file_id]


# ============================================
# Image helpers
# ============================================

def make_png(width: int = 100, height: int = 100, pattern: str = "gradient", mode: str = "RGB") -> bytes:
    """生成一张真实的 PNG 图片。"""
    img = Image.new(mode, (width, height))
    pixels = img.load()
    for y in range(height):
        for x in range(width):
            if pattern == "solid":
                rgb = (100, 150, 200)
            elif pattern == "checkerboard":
                rgb = (255, 255, 255) if (x // 10 + y // 10) % 2 == 0 else (0, 0, 0)
            else:
                rgb = (x % 256, y % 256, (x * y) % 256)
            pixels[x, y] = rgb + (128,) if mode == "RGBA" else rgb

    output = BytesIO()
    img.save(output, format="PNG")
    return output.getvalue()


def fake_png(size: int) -> bytes:
    """PNG 魔数 + 零填充：能通过魔数校验，但无法解码。"""
    return PNG_MAGIC + b"\x00" * (size - len(PNG_MAGIC))


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def config():
    """默认配置（超时调短，便于测试）。"""
    return ImagePipelineConfig(download_timeout=2.0)


@pytest.fixture
def downloader():
    return FakeSlackDownloader()


@pytest.fixture
def gradient_png():
    return make_png(200, 200, "gradient")
