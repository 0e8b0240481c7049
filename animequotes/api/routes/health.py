from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check, outside the API prefix so it bypasses the gate."""

    return {"status": "ok"}
