# backend/recordlock/locks/router.py
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from ..deps import get_lock_service
from ..shared.config import settings
from .schemas import FREE_MESSAGE, LockAcquireIn, LockCreatedOut, LockOut, MessageOut
from .service import LockService

router = APIRouter(prefix=f"{settings.API_PREFIX}/v1/locks", tags=["locks"])


@router.get(
    "/{resource_id:path}",
    response_model=LockOut,
    responses={404: {"model": MessageOut, "description": FREE_MESSAGE}},
)
def check_lock(resource_id: str, svc: LockService = Depends(get_lock_service)):
    lock = svc.check(resource_id)
    if lock is None:
        # free is a normal outcome, not an error
        return JSONResponse(status_code=404, content={"message": FREE_MESSAGE})
    return svc.to_out(lock)


@router.post("", response_model=LockCreatedOut, status_code=status.HTTP_201_CREATED)
def acquire_lock(req: LockAcquireIn, svc: LockService = Depends(get_lock_service)):
    lock = svc.acquire(req)
    return LockCreatedOut(message="Lock created", lock=svc.to_out(lock))


@router.delete("/{resource_id:path}", status_code=status.HTTP_204_NO_CONTENT)
def release_lock(resource_id: str, svc: LockService = Depends(get_lock_service)):
    svc.release(resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
