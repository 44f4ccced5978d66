"""
Pydantic Schemas
"""
from wedding_api.schemas.visitor import (
    DIRECT_VISIT,
    DeviceType,
    TrackRequest,
    TrackResponse,
    VisitLocation,
    VisitorListResponse,
    VisitorSummary,
    VisitRecord,
)
