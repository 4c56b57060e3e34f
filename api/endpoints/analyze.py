from fastapi import APIRouter, Depends, File, UploadFile
from api.deps import get_orchestrator, get_session_user
from domain.schemas import JobAnalysisResult, JobInput, ResumeAnalysisRequest, ResumeAnalysisResult
from domain.services.analysis_orchestrator import AnalysisOrchestrator
from infra.uploads import job_input_from_upload

router = APIRouter(prefix="/analyze")


@router.post("/job", response_model=JobAnalysisResult)
async def analyze_job(body: JobInput,
                      orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
                      user=Depends(get_session_user)) -> JobAnalysisResult:
    return await orchestrator.run_job_analysis(body, user=user)


@router.post("/job/upload", response_model=JobAnalysisResult)
async def analyze_job_upload(file: UploadFile = File(...),
                             orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
                             user=Depends(get_session_user)) -> JobAnalysisResult:
    data = await file.read()
    job = job_input_from_upload(file.filename, file.content_type, data)
    return await orchestrator.run_job_analysis(job, user=user)


@router.post("/resume", response_model=ResumeAnalysisResult)
async def analyze_resume(body: ResumeAnalysisRequest,
                         orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
                         user=Depends(get_session_user)) -> ResumeAnalysisResult:
    return await orchestrator.run_resume_analysis(
        body.resume_text, body.job_description, body.job_title, user=user)
