"""
宾客姓名与 URL slug 互转

两者不是互逆的：大小写和标点在 slugify 时丢失，deslugify 不尝试还原。
"""
import re
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_RE = re.compile(r"[^a-z0-9-]")


def slugify(name: Optional[str]) -> str:
    """
    生成 URL slug，例如 "Uncle Rajan" -> "uncle-rajan"

    Args:
        name: 显示名称

    Returns:
        只包含 [a-z0-9-] 的字符串，可能为空
    """
    if not name:
        return ""
    slug = name.lower().strip()
    slug = _WHITESPACE_RE.sub("-", slug)
    return _INVALID_RE.sub("", slug)


def deslugify(slug: Optional[str]) -> Optional[str]:
    """
    从 slug 还原显示名称，例如 "uncle-rajan" -> "Uncle Rajan"

    Returns:
        显示名称；slug 为空时返回 None
    """
    if not slug:
        return None
    return " ".join(word[:1].upper() + word[1:].lower() for word in slug.split("-"))
