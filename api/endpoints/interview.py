from typing import List
from fastapi import APIRouter, Depends, status
from api.deps import get_orchestrator, get_store, require_user
from domain.errors import NotFoundError
from domain.schemas import InterviewModuleOut, InterviewPrepRequest
from domain.services.analysis_orchestrator import AnalysisOrchestrator
from infra.repositories.record_store import RecordStore

router = APIRouter(prefix="/interview-prep")


@router.post("", response_model=InterviewModuleOut)
async def generate(body: InterviewPrepRequest,
                   orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
                   user=Depends(require_user)) -> InterviewModuleOut:
    return await orchestrator.run_interview_prep(body.role, body.experience_level, user=user)


@router.get("", response_model=List[InterviewModuleOut])
def list_modules(store: RecordStore = Depends(get_store), user=Depends(require_user)):
    return store.get_user_scoped("interview", user.id)


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_module(module_id: str, store: RecordStore = Depends(get_store), user=Depends(require_user)) -> None:
    module = store.get_interview_module(module_id)
    if not module or module.user_id != user.id:
        raise NotFoundError(f"interview module {module_id} not found")
    store.delete_interview_module(module_id)
