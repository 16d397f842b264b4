"""
CacheStore / ModelArtifactCache - 模型文件的持久化缓存

核心功能：
- CacheStore: 基于 SQLite 文件的 key -> blob 存储，固定库名、单表、schema 版本
  记录在 PRAGMA user_version 中；版本升高时在独占事务里重建表
- ModelArtifactCache: 单槽位门面，固定 key，load / save / clear

每次操作都独立打开、关闭连接，写入在单个事务内完成（全有或全无）。
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from omegaconf import DictConfig, OmegaConf

from ..errors import StoreUnavailableError, StoreWriteError

DB_NAME = "maize-onnx-cache"
STORE_NAME = "models"
MODEL_KEY = "maize_vit_model.onnx"
SCHEMA_VERSION = 1


@contextmanager
def transaction(conn: sqlite3.Connection, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    显式事务：正常退出时 COMMIT，异常时 ROLLBACK

    连接需以 isolation_level=None 打开，由这里完全控制事务边界。
    """
    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise


class CacheStore:
    """持久化 key -> blob 存储"""

    def __init__(
        self,
        directory: str | Path,
        name: str = DB_NAME,
        table: str = STORE_NAME,
        version: int = SCHEMA_VERSION,
        timeout: float = 5.0,
    ):
        """
        Args:
            directory: 数据库文件所在目录（不存在时自动创建）
            name: 数据库名，文件名为 {name}.sqlite3
            table: 唯一的表名
            version: schema 版本，大于已记录版本时触发升级
            timeout: 等待写锁的秒数
        """
        if not table.isidentifier():
            raise ValueError(f"非法表名: {table!r}")
        if version < 1:
            raise ValueError(f"schema 版本必须 >= 1，当前: {version}")
        self.path = Path(directory).expanduser() / f"{name}.sqlite3"
        self.table = table
        self.version = int(version)
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: DictConfig) -> "CacheStore":
        """从 cache 配置段创建"""
        cache_cfg = cfg.cache
        return cls(
            directory=cache_cfg.directory,
            name=OmegaConf.select(cache_cfg, "name", default=DB_NAME),
            table=OmegaConf.select(cache_cfg, "table", default=STORE_NAME),
            version=OmegaConf.select(cache_cfg, "schema_version", default=SCHEMA_VERSION),
            timeout=OmegaConf.select(cache_cfg, "timeout", default=5.0),
        )

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        打开存储（首次使用时建表），退出时关闭连接

        Raises:
            StoreUnavailableError: 目录 / 文件无法打开，或 schema 无法读取
        """
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    def _open(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), timeout=self.timeout, isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"无法打开缓存 {self.path}: {e}") from e

        try:
            self._upgrade(conn)
        except sqlite3.Error as e:
            conn.close()
            raise StoreUnavailableError(f"缓存 schema 初始化失败: {e}") from e
        except StoreUnavailableError:
            conn.close()
            raise
        return conn

    def _upgrade(self, conn: sqlite3.Connection) -> None:
        """已记录版本低于声明版本时重建表（一次性）"""
        current = self._user_version(conn)
        if current == self.version:
            return
        if current > self.version:
            raise StoreUnavailableError(
                f"缓存版本 {current} 高于当前支持的版本 {self.version}"
            )

        with transaction(conn, immediate=True):
            # 拿到写锁后再读一次，另一个进程可能已完成升级
            current = self._user_version(conn)
            if current < self.version:
                print(f"[CacheStore] 升级缓存 schema: v{current} -> v{self.version}")
                conn.execute(f"DROP TABLE IF EXISTS {self.table}")
                conn.execute(
                    f"CREATE TABLE {self.table} (key TEXT PRIMARY KEY, value BLOB NOT NULL)"
                )
                conn.execute(f"PRAGMA user_version = {self.version}")

    @staticmethod
    def _user_version(conn: sqlite3.Connection) -> int:
        return conn.execute("PRAGMA user_version").fetchone()[0]

    # ==================== key-value 操作 ====================

    def get(self, key: str) -> bytes | None:
        """读取 key，不存在返回 None"""
        with self.connect() as conn:
            try:
                row = conn.execute(
                    f"SELECT value FROM {self.table} WHERE key = ?", (key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"读取缓存失败: {e}") from e
        return bytes(row[0]) if row is not None else None

    def put(self, key: str, value: bytes) -> None:
        """在单个事务内写入 key"""
        with self.connect() as conn:
            try:
                with transaction(conn, immediate=True):
                    conn.execute(
                        f"INSERT OR REPLACE INTO {self.table} (key, value) VALUES (?, ?)",
                        (key, sqlite3.Binary(value)),
                    )
            except sqlite3.Error as e:
                raise StoreWriteError(f"写入缓存失败: {e}") from e

    def delete(self, key: str) -> bool:
        """删除 key，返回是否存在过"""
        with self.connect() as conn:
            try:
                with transaction(conn, immediate=True):
                    cursor = conn.execute(
                        f"DELETE FROM {self.table} WHERE key = ?", (key,)
                    )
            except sqlite3.Error as e:
                raise StoreWriteError(f"删除缓存失败: {e}") from e
        return cursor.rowcount > 0


class ModelArtifactCache:
    """单槽位模型缓存"""

    def __init__(self, store: CacheStore, key: str = MODEL_KEY):
        self.store = store
        self.key = key

    def load(self) -> bytes | None:
        """
        读取缓存的模型

        Returns:
            模型字节；从未写入时返回 None

        Raises:
            StoreUnavailableError: 存储无法打开或读取
        """
        return self.store.get(self.key)

    def save(self, data: bytes) -> None:
        """
        写入模型（原子）

        Raises:
            StoreUnavailableError: 存储无法打开
            StoreWriteError: 事务中止
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"模型数据必须是 bytes，当前: {type(data).__name__}")
        self.store.put(self.key, bytes(data))

    def clear(self) -> bool:
        """删除缓存的模型，返回是否存在过"""
        return self.store.delete(self.key)
