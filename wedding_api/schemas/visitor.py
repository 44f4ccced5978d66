"""
访问记录相关的 Pydantic Schemas
"""
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DIRECT_VISIT = "Direct Visit"


class DeviceType(str, Enum):
    """设备类型"""
    MOBILE = "Mobile"
    DESKTOP = "Desktop"


class VisitLocation(BaseModel):
    """粗粒度地理位置"""
    model_config = ConfigDict(frozen=True)

    city: str = "Unknown"
    region: str = "Unknown"
    country: str = "Unknown"


class VisitRecord(BaseModel):
    """单次页面访问记录，写入后不可修改"""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    id: str
    guest_name: str = DIRECT_VISIT
    timestamp: str
    # 旧版 visitors.json 使用 "ip" 字段
    origin_address: str = Field(
        "unknown",
        validation_alias=AliasChoices("originAddress", "origin_address", "ip"),
        serialization_alias="originAddress",
    )
    location: VisitLocation = Field(default_factory=VisitLocation)
    device_type: DeviceType = DeviceType.DESKTOP
    user_agent: str = "Unknown"
    referrer: str = "Direct"

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TrackRequest(BaseModel):
    """客户端上报的访问数据，所有字段均可缺省"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    guest_name: Optional[str] = None
    timestamp: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


class TrackResponse(BaseModel):
    """上报成功响应"""
    success: bool = True
    stored: str
    data: dict
    message: Optional[str] = None


class VisitorListResponse(BaseModel):
    """访客列表响应"""
    success: bool = True
    source: str
    count: int
    visitors: List[dict]
    message: Optional[str] = None


class VisitorSummary(BaseModel):
    """管理控制台展示的原始计数"""
    total: int
    mobile: int
    desktop: int
    personalized: int
