"""
访问上报客户端

请柬页面初始化时调用 TrackingEmitter.track_visit。上报失败只记日志，不影响页面渲染。
AdminClient 供管理控制台查询和清空访问记录。
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from wedding_api.schemas.visitor import DIRECT_VISIT
from wedding_api.utils.timezone import utc_now_iso

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_SECONDS = 10.0
DEFAULT_TIMEOUT = 10.0


@dataclass
class ClientContext:
    """浏览器侧可观测到的上下文"""
    user_agent: str = ""
    referrer: str = ""
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    language: Optional[str] = None


@dataclass
class TrackingSession:
    """
    页面会话内的去重状态

    只由页面初始化流程写入，用于吸收开发模式下初始化逻辑被执行两次的情况，
    超出窗口的真实重复访问仍会上报。
    """
    last_key: str = ""
    last_time: float = float("-inf")

    def is_duplicate(self, key: str, now: float, window: float = DUPLICATE_WINDOW_SECONDS) -> bool:
        return key == self.last_key and (now - self.last_time) < window

    def mark(self, key: str, now: float) -> None:
        self.last_key = key
        self.last_time = now


@dataclass
class TrackResult:
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    stored: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@dataclass
class AdminResult:
    success: bool
    source: Optional[str] = None
    count: int = 0
    visitors: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None


class TrackingEmitter:
    """向 /api/track 上报访问"""

    def __init__(
        self,
        base_url: str,
        session: Optional[TrackingSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or TrackingSession()
        self.transport = transport
        self.clock = clock
        self.timeout = timeout

    def build_payload(self, guest_key: str, context: ClientContext) -> Dict[str, Any]:
        return {
            "guestName": guest_key,
            "timestamp": utc_now_iso(),
            "userAgent": context.user_agent,
            "referrer": context.referrer or "Direct",
            "screenWidth": context.screen_width,
            "screenHeight": context.screen_height,
            "language": context.language,
        }

    async def track_visit(
        self,
        guest_name: Optional[str] = None,
        context: Optional[ClientContext] = None,
    ) -> TrackResult:
        """
        上报一次访问

        Args:
            guest_name: 由 URL slug 还原的宾客姓名，直接访问时为空
            context: 浏览器上下文

        Returns:
            上报结果；窗口内重复调用返回 skipped，网络错误返回 success=False
        """
        guest_key = guest_name or DIRECT_VISIT
        now = self.clock()

        if self.session.is_duplicate(guest_key, now):
            logger.debug("Skipping duplicate track for %s", guest_key)
            return TrackResult(success=True, skipped=True, reason="duplicate")

        self.session.mark(guest_key, now)
        payload = self.build_payload(guest_key, context or ClientContext())

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                transport=self.transport,
                timeout=self.timeout,
            ) as client:
                resp = await client.post("/api/track", json=payload)
                result = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info("Tracking note: %s", exc)
            return TrackResult(success=False, error=str(exc))

        if not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else "Unexpected response"
            return TrackResult(success=False, error=error)

        logger.info(
            "Visit tracked: %s | Stored in: %s",
            (result.get("data") or {}).get("guestName"),
            result.get("stored"),
        )
        return TrackResult(
            success=True,
            stored=result.get("stored"),
            data=result.get("data"),
        )


class AdminClient:
    """管理控制台调用 /api/visitors"""

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def _request(self, method: str, password: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self.transport,
            timeout=self.timeout,
        ) as client:
            resp = await client.request(
                method,
                "/api/visitors",
                headers={"Authorization": f"Bearer {password}"},
            )
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError("Unexpected response")
            return data

    async def list_visitors(self, password: str) -> AdminResult:
        """获取访问记录（最新在前）"""
        try:
            data = await self._request("GET", password)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error fetching visitors: %s", exc)
            return AdminResult(success=False, error=str(exc))

        if not data.get("success"):
            return AdminResult(success=False, error=data.get("error"))
        return AdminResult(
            success=True,
            source=data.get("source"),
            count=data.get("count", 0),
            visitors=data.get("visitors") or [],
            message=data.get("message"),
        )

    async def clear_visitors(self, password: str) -> AdminResult:
        """清空访问记录"""
        try:
            data = await self._request("DELETE", password)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error clearing visitors: %s", exc)
            return AdminResult(success=False, error=str(exc))

        if not data.get("success"):
            return AdminResult(success=False, error=data.get("error"))
        return AdminResult(success=True, message=data.get("message"))
