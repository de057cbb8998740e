"""Corpus-level similarity endpoints."""

from fastapi import APIRouter, HTTPException

router = APIRouter(prefix="/api/similarity", tags=["similarity"])


@router.post("/train")
async def train():
    from parley import services

    try:
        return services.get().train()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
