"""
ArtifactFetcher - 模型文件的网络获取

canonical 来源可以是 http(s) URL，也可以是本地路径 / file:// URL。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from ..errors import FetchError, HttpError, NetworkError, RequestTimeoutError


class ArtifactFetcher(ABC):
    """模型获取器基类"""

    @abstractmethod
    def fetch(self) -> bytes:
        """
        获取完整的模型字节

        Raises:
            FetchError: 获取失败（子类区分超时 / 网络 / HTTP 状态）
        """
        pass


class HttpArtifactFetcher(ArtifactFetcher):
    """GET 静态模型文件"""

    def __init__(
        self,
        source: str | Path,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ):
        self.source = str(source)
        self.timeout = timeout
        self.session = session

    def fetch(self) -> bytes:
        parsed = urlparse(self.source)
        if parsed.scheme in ("http", "https"):
            data = self._fetch_http()
        elif parsed.scheme == "file":
            data = self._read_file(Path(url2pathname(parsed.path)))
        else:
            data = self._read_file(Path(self.source).expanduser())

        if not data:
            raise FetchError(f"模型文件为空: {self.source}")
        return data

    def _fetch_http(self) -> bytes:
        print(f"[Fetcher] 下载模型: {self.source}")
        client = self.session or requests
        try:
            response = client.get(self.source, timeout=self.timeout)
        except requests.Timeout as e:
            raise RequestTimeoutError(f"下载模型超时 ({self.timeout}s)") from e
        except requests.RequestException as e:
            raise NetworkError(f"下载模型失败: {e}") from e

        if response.status_code >= 400:
            raise HttpError(
                response.status_code,
                f"下载模型失败: {response.status_code} {response.reason}",
            )
        return response.content

    def _read_file(self, path: Path) -> bytes:
        print(f"[Fetcher] 读取模型文件: {path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise FetchError(f"无法读取模型文件 {path}: {e}") from e
