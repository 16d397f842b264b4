"""
ModelLoader - load-or-fetch 策略

冷启动时先查缓存；未命中则下载并尽力写回缓存。写回失败只影响下次
是否命中，不影响本次使用。同一进程内用锁保证同一时刻只有一次下载
（跨进程并发仍可能重复下载）。
"""

import threading

from ..errors import StoreError, StoreUnavailableError
from .fetcher import ArtifactFetcher
from .store import ModelArtifactCache


class ModelLoader:
    """模型字节加载器"""

    def __init__(
        self,
        cache: ModelArtifactCache | None,
        fetcher: ArtifactFetcher,
        single_flight: bool = True,
    ):
        """
        Args:
            cache: 模型缓存，None 表示禁用缓存（每次都下载）
            fetcher: 模型获取器
            single_flight: 是否串行化进程内的并发加载
        """
        self.cache = cache
        self.fetcher = fetcher
        self._lock = threading.Lock() if single_flight else None

        self.last_source: str | None = None  # "cache" | "network"
        self.fetch_count = 0

    def load(self) -> bytes:
        """
        获取模型字节

        Raises:
            FetchError: 缓存未命中且下载失败
            StoreError: 缓存读取出现 "不可用" 以外的错误
        """
        if self._lock is None:
            return self._load_or_fetch()
        with self._lock:
            return self._load_or_fetch()

    def _load_or_fetch(self) -> bytes:
        data = self._try_cache()
        if data is not None:
            self.last_source = "cache"
            return data

        print("[ModelLoader] 缓存未命中，开始下载模型...")
        data = self.fetcher.fetch()
        self.fetch_count += 1
        self.last_source = "network"
        self._try_save(data)
        return data

    def _try_cache(self) -> bytes | None:
        if self.cache is None:
            return None
        try:
            data = self.cache.load()
        except StoreUnavailableError as e:
            print(f"[ModelLoader] 缓存不可用，按未命中处理: {e}")
            return None
        if data is not None:
            print(f"[ModelLoader] 命中缓存 ({len(data)} bytes)")
        return data

    def _try_save(self, data: bytes) -> None:
        if self.cache is None:
            return
        try:
            self.cache.save(data)
            print(f"[ModelLoader] 模型已写入缓存 ({len(data)} bytes)")
        except StoreError as e:
            print(f"[ModelLoader] 写入缓存失败，本次仅在内存中使用: {e}")
