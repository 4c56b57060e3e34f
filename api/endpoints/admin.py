from typing import List
from fastapi import APIRouter, Depends, status
from api.deps import get_store, require_admin
from domain.errors import NotFoundError, PermissionDeniedError
from domain.schemas import ActivityEntryOut, StatsOut, UserOut
from domain.services.activity import ALL_USERS, aggregate_activity
from domain.services.stats import compute_stats
from infra.repositories.record_store import ADMIN_USERNAME, RecordStore

router = APIRouter(prefix="/admin")


def _managed_user(store: RecordStore, user_id: str):
    user = store.get_user(user_id)
    if not user:
        raise NotFoundError(f"user {user_id} not found")
    if user.username == ADMIN_USERNAME:
        raise PermissionDeniedError("The bootstrap admin account cannot be modified")
    return user


@router.get("/stats", response_model=StatsOut)
def stats(store: RecordStore = Depends(get_store), admin=Depends(require_admin)):
    return StatsOut.from_orm(compute_stats(store))


@router.get("/users", response_model=List[UserOut])
def users(store: RecordStore = Depends(get_store), admin=Depends(require_admin)):
    return store.list_users()


@router.post("/users/{user_id}/block", response_model=UserOut)
def block_user(user_id: str, store: RecordStore = Depends(get_store), admin=Depends(require_admin)):
    _managed_user(store, user_id)
    return store.set_user_blocked(user_id, True)


@router.post("/users/{user_id}/unblock", response_model=UserOut)
def unblock_user(user_id: str, store: RecordStore = Depends(get_store), admin=Depends(require_admin)):
    _managed_user(store, user_id)
    return store.set_user_blocked(user_id, False)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, store: RecordStore = Depends(get_store), admin=Depends(require_admin)) -> None:
    _managed_user(store, user_id)
    store.delete_user(user_id)


@router.get("/history", response_model=List[ActivityEntryOut])
def history(q: str = "", category: str = "all",
            store: RecordStore = Depends(get_store), admin=Depends(require_admin)):
    return aggregate_activity(store, ALL_USERS, query=q, category=category)
