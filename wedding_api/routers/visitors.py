"""
访客查询 / 清空路由（管理端）
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from wedding_api.schemas.visitor import VisitorListResponse
from wedding_api.services.visitor_store import (
    VisitorStore,
    get_visitor_store,
    most_recent_first,
)
from wedding_api.utils.security import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.options("/visitors")
async def visitors_preflight():
    """跨域预检，不需要鉴权"""
    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/visitors",
    response_model=VisitorListResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_admin_token)],
)
async def list_visitors(store: VisitorStore = Depends(get_visitor_store)):
    """
    获取全部访问记录

    无论使用哪种存储策略，返回顺序都是最新在前。
    只写日志的存储返回空列表和说明信息。
    """
    try:
        result = await store.read_all()
    except Exception as exc:
        logger.error("Error fetching visitors: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc)},
        )

    visitors = most_recent_first(result)
    return VisitorListResponse(
        source=result.tag,
        count=len(visitors),
        visitors=visitors,
        message=result.message,
    )


@router.delete("/visitors", dependencies=[Depends(verify_admin_token)])
async def clear_visitors(store: VisitorStore = Depends(get_visitor_store)):
    """清空全部访问记录，可重复调用"""
    try:
        await store.clear()
    except Exception as exc:
        logger.error("Error clearing visitors: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc)},
        )

    logger.info("Cleared all visitors (source=%s)", store.tag)
    return {"success": True, "message": "All visitors cleared"}
