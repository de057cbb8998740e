"""Discussion-scoped endpoints: snapshots, compare, restore, branches, similarity, merge."""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from parley.errors import InvalidArgumentError, NotFoundError

router = APIRouter(prefix="/api/discussion", tags=["discussions"])


class CreateSnapshot(BaseModel):
    description: str | None = None
    tags: list[str] | None = None
    type: str | None = None


class RestoreRequest(BaseModel):
    snapshotId: str | None = None
    mode: str = "replace"
    allowCross: bool | None = None
    includeContext: bool = False


class CreateBranch(BaseModel):
    name: str | None = None
    description: str | None = None
    snapshotId: str | None = None


class MergeRequest(BaseModel):
    sourceIds: list[str] = []


@router.post("/{discussion_id}/snapshot", status_code=201)
async def create_snapshot(discussion_id: str, body: CreateSnapshot | None = None):
    from parley import services
    from parley.core.models import snapshot_to_record

    body = body or CreateSnapshot()
    try:
        snapshot = services.get().snapshots.create_snapshot(
            discussion_id,
            description=body.description,
            tags=body.tags,
            type=body.type or "manual",
        )
        return snapshot_to_record(snapshot)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/snapshots")
async def list_snapshots(discussion_id: str):
    from parley import services
    from parley.core.models import snapshot_to_record

    try:
        return [snapshot_to_record(s) for s in services.get().snapshots.get_snapshots(discussion_id)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/compare")
async def compare(
    discussion_id: str,
    from_id: str | None = Query(None, alias="from"),
    to_id: str | None = Query(None, alias="to"),
):
    from parley import services

    if not from_id or not to_id:
        raise HTTPException(status_code=400, detail="Both 'from' and 'to' are required")
    try:
        return services.get().compare(discussion_id, from_id, to_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{discussion_id}/restore")
async def restore(discussion_id: str, body: RestoreRequest):
    from parley import services

    if not body.snapshotId:
        raise HTTPException(status_code=400, detail="snapshotId is required")
    try:
        return services.get().restores.restore(
            discussion_id,
            body.snapshotId,
            mode=body.mode,
            allow_cross=body.allowCross,
            include_context=body.includeContext,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/restore/preview")
async def preview_restore(discussion_id: str, snapshotId: str | None = None):
    from parley import services

    if not snapshotId:
        raise HTTPException(status_code=400, detail="snapshotId is required")
    try:
        return services.get().restores.preview_restore(discussion_id, snapshotId)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/restores")
async def restore_history(discussion_id: str):
    from parley import services
    from parley.core.models import restore_to_record

    try:
        history = services.get().restores.get_restore_history(discussion_id)
        return [
            {k: v for k, v in restore_to_record(r).items() if k != "previous"} for r in history
        ]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{discussion_id}/restores/{restore_id}/undo")
async def undo_restore(discussion_id: str, restore_id: str):
    from parley import services

    try:
        return services.get().restores.undo_restore(discussion_id, restore_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{discussion_id}/branch", status_code=201)
async def create_branch(discussion_id: str, body: CreateBranch | None = None):
    from parley import services
    from parley.core.models import branch_to_record

    body = body or CreateBranch()
    try:
        branch = services.get().branches.create_branch(
            discussion_id,
            name=body.name,
            description=body.description or "",
            snapshot_id=body.snapshotId,
        )
        return branch_to_record(branch)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/branches")
async def list_branches(discussion_id: str):
    from parley import services
    from parley.core.models import branch_to_record

    try:
        return [branch_to_record(b) for b in services.get().branches.get_branches(discussion_id)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{discussion_id}/similar")
async def find_similar(
    discussion_id: str, threshold: float | None = None, limit: int | None = None
):
    from parley import services

    try:
        return services.get().find_similar(discussion_id, threshold=threshold, limit=limit)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{discussion_id}/merge")
async def merge(discussion_id: str, body: MergeRequest):
    from parley import services

    if not body.sourceIds:
        raise HTTPException(status_code=400, detail="sourceIds must not be empty")
    try:
        return services.get().merge(discussion_id, body.sourceIds)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
