"""
Sites API — Root Route
========================

GET / returns a static identification payload (service message, term and
the owner's identity). Values come from settings so deployments can
change them without code edits.
"""

from fastapi import APIRouter

from app.config import settings
from app.schemas.site import RootResponse

router = APIRouter(tags=["Root"])


@router.get("/", response_model=RootResponse, summary="Service identification")
async def root() -> RootResponse:
    return RootResponse(
        message=settings.api_message,
        term=settings.api_term,
        student=settings.api_student,
        learn_id=settings.api_learn_id,
    )
