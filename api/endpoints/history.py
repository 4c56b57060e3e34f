from typing import List
from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from api.deps import get_store, require_user
from domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from domain.schemas import ActivityEntryOut
from domain.services.activity import JOB_SOURCE, RESUME_SOURCE, aggregate_activity, delete_activity_entry, render_job_scan_report
from infra.repositories.record_store import RecordStore

router = APIRouter(prefix="/history")


def _owned_record(store: RecordStore, source: str, entry_id: str, user):
    if source == JOB_SOURCE:
        rec = store.get_job_scan(entry_id)
    elif source == RESUME_SOURCE:
        rec = store.get_resume_scan(entry_id)
    else:
        raise ValidationError(f"Unknown activity source: {source}", ["source"])
    if not rec:
        raise NotFoundError(f"{source} {entry_id} not found")
    if rec.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError("You can only access your own records")
    return rec


@router.get("", response_model=List[ActivityEntryOut])
def list_history(q: str = "", category: str = "all",
                 store: RecordStore = Depends(get_store), user=Depends(require_user)):
    return aggregate_activity(store, user.id, query=q, category=category)


@router.delete("")
def clear_history(store: RecordStore = Depends(get_store), user=Depends(require_user)):
    return {"removed": store.clear_user_history(user.id)}


@router.delete("/{source}/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(source: str, entry_id: str,
                 store: RecordStore = Depends(get_store), user=Depends(require_user)) -> None:
    _owned_record(store, source, entry_id, user)
    delete_activity_entry(store, source, entry_id)


@router.get("/job-scan/{entry_id}/report", response_class=PlainTextResponse)
def job_scan_report(entry_id: str, store: RecordStore = Depends(get_store), user=Depends(require_user)):
    rec = _owned_record(store, JOB_SOURCE, entry_id, user)
    return PlainTextResponse(
        render_job_scan_report(rec),
        headers={"Content-Disposition": f'attachment; filename="Report_{rec.id}.txt"'},
    )
