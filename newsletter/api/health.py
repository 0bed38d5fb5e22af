from __future__ import annotations

from fastapi import APIRouter, Response

router = APIRouter()


@router.get("/health", tags=["health"])
async def health() -> Response:
    return Response(status_code=200)
