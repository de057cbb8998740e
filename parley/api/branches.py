"""Branch endpoints addressed by branch id."""

from fastapi import APIRouter, HTTPException

from parley.errors import NotFoundError

router = APIRouter(prefix="/api/branch", tags=["branches"])


@router.get("/{branch_id}")
async def get_branch(branch_id: str):
    from parley import services
    from parley.core.models import branch_to_record

    try:
        branch = services.get().branches.get_branch(branch_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    if branch is None:
        raise HTTPException(status_code=404, detail=f"Branch {branch_id} not found")
    return branch_to_record(branch)


@router.get("/{branch_id}/compare")
async def compare_branch(branch_id: str):
    from parley import services

    try:
        return services.get().branches.compare_branch(branch_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{branch_id}/merge")
async def merge_branch(branch_id: str):
    from parley import services

    try:
        return services.get().branches.merge_branch(branch_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.delete("/{branch_id}")
async def delete_branch(branch_id: str):
    from parley import services

    try:
        return {"success": services.get().branches.delete_branch(branch_id)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
