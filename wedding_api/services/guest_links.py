"""
管理控制台：生成个性化请柬链接、统计访问记录
"""
from dataclasses import dataclass
from typing import Iterable, Mapping

from wedding_api.schemas.visitor import DIRECT_VISIT, DeviceType, VisitorSummary
from wedding_api.utils.slug import slugify

INVITE_PATH = "/invite"


@dataclass(frozen=True)
class GuestLink:
    """个性化链接，只在控制台临时生成，不持久化"""
    display_name: str
    slug: str
    url: str


def build_guest_link(display_name: str, base_url: str) -> GuestLink:
    """
    为宾客生成请柬链接，例如 https://example.com/invite/uncle-rajan

    Raises:
        ValueError: 姓名中没有可用于 slug 的字符
    """
    name = display_name.strip()
    slug = slugify(name)
    if not slug:
        raise ValueError(f"Cannot build an invite link for {display_name!r}")
    return GuestLink(
        display_name=name,
        slug=slug,
        url=f"{base_url.rstrip('/')}{INVITE_PATH}/{slug}",
    )


def summarize_visitors(visitors: Iterable[Mapping]) -> VisitorSummary:
    total = mobile = desktop = personalized = 0
    for visitor in visitors:
        total += 1
        device = visitor.get("deviceType")
        if device == DeviceType.MOBILE.value:
            mobile += 1
        elif device == DeviceType.DESKTOP.value:
            desktop += 1
        if visitor.get("guestName", DIRECT_VISIT) != DIRECT_VISIT:
            personalized += 1
    return VisitorSummary(total=total, mobile=mobile, desktop=desktop, personalized=personalized)
