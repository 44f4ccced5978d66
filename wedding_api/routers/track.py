"""
访问上报路由
"""
import json
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from wedding_api.config import Settings, get_settings
from wedding_api.schemas.visitor import TrackRequest, TrackResponse
from wedding_api.services.enrichment import build_visit_record
from wedding_api.services.visitor_store import VisitorStore, get_visitor_store
from wedding_api.utils.metrics import VISITS_TRACKED

logger = logging.getLogger(__name__)

router = APIRouter()


async def _parse_payload(request: Request) -> TrackRequest:
    """空请求体按 {} 处理；无法解析或不是对象时抛出 ValueError"""
    body = await request.body()
    if not body.strip():
        return TrackRequest()
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return TrackRequest.model_validate(data)


@router.options("/track")
async def track_preflight():
    """跨域预检"""
    return Response(status_code=status.HTTP_200_OK)


@router.post("/track", response_model=TrackResponse, response_model_exclude_none=True)
async def track_visit(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: VisitorStore = Depends(get_visitor_store),
):
    """
    记录一次页面访问

    客户端数据可以缺省，服务端补全来源地址、地理位置和设备类型后写入存储。

    Returns:
        存储的访问记录以及实际接收记录的存储策略
    """
    try:
        payload = await _parse_payload(request)
        peer = request.client.host if request.client else None
        record = build_visit_record(payload, request.headers, peer, hosted=settings.is_hosted())
        data = record.to_json()
        logger.info(
            "Wedding visitor %s (%s, %s, %s)",
            data["guestName"],
            data["location"]["city"],
            data["location"]["country"],
            data["deviceType"],
            extra={"visit_id": data["id"], "visit_time": data["timestamp"]},
        )

        result = await store.append(record)
    except ValueError as exc:
        # JSON 解析失败、请求体不是对象或字段类型错误
        logger.warning("Tracking error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc)},
        )
    except Exception as exc:
        logger.error("Tracking error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc)},
        )

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": result.error or "Failed to save visitor"},
        )

    VISITS_TRACKED.labels(result.tag).inc()
    return TrackResponse(stored=result.tag, data=data, message=result.message)
