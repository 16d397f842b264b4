"""
Cache 模块 - 模型文件持久化缓存

职责：
- CacheStore / ModelArtifactCache: 单槽位持久化存储
- ArtifactFetcher: 模型文件下载
- ModelLoader: load-or-fetch 策略
"""

from .fetcher import ArtifactFetcher, HttpArtifactFetcher
from .loader import ModelLoader
from .store import CacheStore, ModelArtifactCache

__all__ = [
    "ArtifactFetcher",
    "HttpArtifactFetcher",
    "ModelLoader",
    "CacheStore",
    "ModelArtifactCache",
]
