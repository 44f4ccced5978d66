"""
时间处理

访问记录的时间戳统一使用 UTC ISO-8601（毫秒精度，Z 结尾），与浏览器 toISOString 一致。
"""
import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """获取当前 UTC 时间（带时区信息）"""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """当前 UTC 时间的 ISO-8601 字符串"""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis() -> int:
    return int(time.time() * 1000)
