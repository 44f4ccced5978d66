"""
管理端鉴权：单一共享口令，以 Bearer 形式传递
"""
import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from wedding_api.config import Settings, get_settings

logger = logging.getLogger(__name__)


def is_authorized(authorization: Optional[str], expected_password: str) -> bool:
    """比较 Authorization 头与期望的 Bearer 口令（常量时间）"""
    if not authorization:
        return False
    return secrets.compare_digest(
        authorization.encode("utf-8"),
        f"Bearer {expected_password}".encode("utf-8"),
    )


async def verify_admin_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """管理端依赖项，口令不匹配时返回 401"""
    if not is_authorized(authorization, settings.admin_password):
        # 不记录请求携带的口令
        logger.warning("Rejected admin request with invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
