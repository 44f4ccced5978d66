"""
访客存储

同一接口下的三种可替换策略：
    - RedisVisitorStore: 整个列表存在单个 key 下，按追加顺序（旧 -> 新）
    - FileVisitorStore: 单个 JSON 文件，新记录插到最前（新 -> 旧）
    - LogOnlyVisitorStore: 只写日志，不可查询

所有策略都是"读取整个集合 -> 修改 -> 整体写回"，并发请求之间不是原子的，
同时到达的两次上报可能丢失其中一次。访问量很小，不加锁。
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from fastapi import Request
from redis.exceptions import RedisError

from wedding_api.config import Settings
from wedding_api.schemas.visitor import VisitRecord
from wedding_api.utils.redis_client import create_redis_client

logger = logging.getLogger(__name__)

LOGS_MESSAGE = (
    "Visitor data is stored in the runtime logs only. "
    "Check the deployment logs to view visitors."
)


@dataclass
class AppendResult:
    """追加结果，tag 为实际接收记录的存储策略"""
    success: bool
    tag: str
    error: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ReadResult:
    """读取结果，visitors 保持存储内部顺序"""
    tag: str
    visitors: List[dict] = field(default_factory=list)
    queryable: bool = True
    newest_first: bool = False
    message: Optional[str] = None


class VisitorStore:
    """有容量上限的追加日志"""

    tag: str = ""
    newest_first: bool = False
    queryable: bool = True
    capacity: Optional[int] = None

    async def append(self, record: VisitRecord) -> AppendResult:
        raise NotImplementedError

    async def read_all(self) -> ReadResult:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError


class LogOnlyVisitorStore(VisitorStore):
    """只写运行日志，不持久化"""

    tag = "logs"
    queryable = False

    async def append(self, record: VisitRecord) -> AppendResult:
        data = record.to_json()
        logger.info(
            "Wedding visitor: %s", data["guestName"],
            extra={"visitor": data},
        )
        return AppendResult(success=True, tag=self.tag, message="Visitor logged to runtime logs")

    async def read_all(self) -> ReadResult:
        return ReadResult(tag=self.tag, queryable=False, message=LOGS_MESSAGE)

    async def clear(self) -> None:
        logger.info("Log-only store has nothing to clear")


class RedisVisitorStore(VisitorStore):
    """Redis 单 key 存储；Redis 出错时降级为只写日志"""

    tag = "kv"

    def __init__(
        self,
        client,
        key: str = "wedding_visitors",
        capacity: int = 1000,
        fallback: Optional[VisitorStore] = None,
    ) -> None:
        self.client = client
        self.key = key
        self.capacity = capacity
        self.fallback = fallback or LogOnlyVisitorStore()

    async def _load(self) -> List[dict]:
        raw = await self.client.get(self.key)
        if not raw:
            return []
        visitors = json.loads(raw)
        return visitors if isinstance(visitors, list) else []

    async def append(self, record: VisitRecord) -> AppendResult:
        try:
            visitors = await self._load()
            visitors.append(record.to_json())
            # 只保留最近 capacity 条
            if len(visitors) > self.capacity:
                visitors = visitors[-self.capacity:]
            await self.client.set(self.key, json.dumps(visitors))
        except (RedisError, json.JSONDecodeError) as exc:
            logger.warning("KV not available, using logs only: %s", exc)
            return await self.fallback.append(record)
        return AppendResult(success=True, tag=self.tag)

    async def read_all(self) -> ReadResult:
        try:
            visitors = await self._load()
        except (RedisError, json.JSONDecodeError) as exc:
            logger.warning("KV not available: %s", exc)
            return await self.fallback.read_all()
        return ReadResult(tag=self.tag, visitors=visitors)

    async def clear(self) -> None:
        await self.client.delete(self.key)


class FileVisitorStore(VisitorStore):
    """本地 JSON 文件存储，最新记录在最前"""

    tag = "json-file"
    newest_first = True

    def __init__(self, path: str | Path, capacity: int = 500) -> None:
        self.path = Path(path)
        self.capacity = capacity

    def ensure_file(self) -> None:
        """文件不存在时写入空列表"""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])
            logger.info("Created visitors file %s", self.path)

    def _read(self) -> List[dict]:
        try:
            visitors = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error reading visitors file %s: %s", self.path, exc)
            return []
        return visitors if isinstance(visitors, list) else []

    def _write(self, visitors: List[dict]) -> None:
        self.path.write_text(json.dumps(visitors, indent=2, ensure_ascii=False), encoding="utf-8")

    async def append(self, record: VisitRecord) -> AppendResult:
        # 文件读写放到线程池，不阻塞事件循环
        await asyncio.to_thread(self.ensure_file)
        visitors = await asyncio.to_thread(self._read)
        visitors.insert(0, record.to_json())
        try:
            await asyncio.to_thread(self._write, visitors[: self.capacity])
        except OSError as exc:
            logger.error("Error writing visitors file %s: %s", self.path, exc)
            return AppendResult(success=False, tag=self.tag, error="Failed to save visitor")
        return AppendResult(success=True, tag=self.tag)

    async def read_all(self) -> ReadResult:
        visitors = await asyncio.to_thread(self._read)
        return ReadResult(tag=self.tag, visitors=visitors, newest_first=True)

    def _reset(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write([])

    async def clear(self) -> None:
        await asyncio.to_thread(self._reset)


def build_visitor_store(settings: Settings) -> VisitorStore:
    """根据配置选定存储策略，仅在启动时调用一次"""
    if settings.storage_backend == "redis":
        if not settings.redis_url:
            logger.warning("STORAGE_BACKEND=redis without REDIS_URL, falling back to logs")
            return LogOnlyVisitorStore()
        return RedisVisitorStore(
            create_redis_client(settings.redis_url),
            key=settings.redis_key,
            capacity=settings.kv_capacity,
        )
    if settings.storage_backend == "file":
        store = FileVisitorStore(settings.visitors_file, capacity=settings.file_capacity)
        store.ensure_file()
        return store
    return LogOnlyVisitorStore()


def most_recent_first(result: ReadResult) -> List[dict]:
    """统一为最新在前的展示顺序"""
    if result.newest_first:
        return list(result.visitors)
    return list(reversed(result.visitors))


async def get_visitor_store(request: Request) -> VisitorStore:
    """获取启动时创建的访客存储"""
    return request.app.state.visitor_store
