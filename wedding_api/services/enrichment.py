"""
访问记录补全：根据传输层信息生成来源地址、地理位置和设备类型
"""
import re
from typing import Mapping, Optional
from urllib.parse import unquote

from wedding_api.schemas.visitor import (
    DIRECT_VISIT,
    DeviceType,
    TrackRequest,
    VisitLocation,
    VisitRecord,
)
from wedding_api.utils.timezone import epoch_millis, utc_now_iso

MOBILE_AGENT_RE = re.compile(r"Mobile|Android|iPhone|iPad", re.IGNORECASE)

LOCAL_LOCATION = VisitLocation(city="Local", region="Dev", country="Local")

# 托管平台注入的地理位置头
GEO_CITY_HEADER = "x-vercel-ip-city"
GEO_REGION_HEADER = "x-vercel-ip-country-region"
GEO_COUNTRY_HEADER = "x-vercel-ip-country"


def classify_device(user_agent: Optional[str]) -> DeviceType:
    """根据 User-Agent 判断设备类型"""
    if user_agent and MOBILE_AGENT_RE.search(user_agent):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP


def resolve_origin_address(
    headers: Mapping[str, str],
    peer_address: Optional[str] = None,
    hosted: bool = True,
) -> str:
    """
    解析客户端来源地址

    优先级：X-Forwarded-For 第一个值 > X-Real-IP > 兜底值。
    托管模式兜底为 "unknown"，本地模式使用 socket 对端地址。
    """
    for name in ("x-forwarded-for", "x-real-ip"):
        first = (headers.get(name) or "").split(",")[0].strip()
        if first:
            return first
    if hosted:
        return "unknown"
    return peer_address or "localhost"


def resolve_location(headers: Mapping[str, str], hosted: bool = True) -> VisitLocation:
    if not hosted:
        return LOCAL_LOCATION
    return VisitLocation(
        city=unquote(headers.get(GEO_CITY_HEADER) or "Unknown"),
        region=unquote(headers.get(GEO_REGION_HEADER) or "Unknown"),
        country=headers.get(GEO_COUNTRY_HEADER) or "Unknown",
    )


def build_visit_record(
    payload: TrackRequest,
    headers: Mapping[str, str],
    peer_address: Optional[str] = None,
    hosted: bool = True,
) -> VisitRecord:
    """用客户端数据和传输层元数据生成访问记录"""
    return VisitRecord(
        id=str(epoch_millis()),
        guest_name=payload.guest_name or DIRECT_VISIT,
        timestamp=payload.timestamp or utc_now_iso(),
        origin_address=resolve_origin_address(headers, peer_address, hosted),
        location=resolve_location(headers, hosted),
        device_type=classify_device(payload.user_agent),
        user_agent=payload.user_agent or "Unknown",
        referrer=payload.referrer or "Direct",
    )
