"""Snapshot endpoints addressed by snapshot id."""

from fastapi import APIRouter, HTTPException

router = APIRouter(prefix="/api/snapshot", tags=["snapshots"])


@router.get("/{snapshot_id}")
async def get_snapshot(snapshot_id: str):
    from parley import services
    from parley.core.models import snapshot_to_record

    try:
        snapshot = services.get().snapshots.get_snapshot(snapshot_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Snapshot {snapshot_id} not found")
    return snapshot_to_record(snapshot)


@router.delete("/{snapshot_id}")
async def delete_snapshot(snapshot_id: str):
    from parley import services

    try:
        return {"success": services.get().snapshots.delete_snapshot(snapshot_id)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
