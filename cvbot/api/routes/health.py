from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: ``status`` set to "OK" and a short message.
    """

    return {"status": "OK", "message": "CVBot Backend Server is running"}
