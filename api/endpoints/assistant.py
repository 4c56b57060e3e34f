from fastapi import APIRouter, Depends
from api.deps import get_orchestrator
from domain.schemas import ChatReply, ChatRequest
from domain.services.analysis_orchestrator import AnalysisOrchestrator

router = APIRouter(prefix="/assistant")


@router.post("/chat", response_model=ChatReply)
async def chat(body: ChatRequest, orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)) -> ChatReply:
    reply = await orchestrator.chat_with_assistant(body.messages)
    return ChatReply(reply=reply)
