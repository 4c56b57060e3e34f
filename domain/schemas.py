from datetime import date, datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

SourceType = Literal["manual", "email", "file", "screenshot"]


class JobInput(BaseModel):
    title: str = ""
    company: str = ""
    salary: str = ""
    location: str = ""
    email: str = ""
    website: str = ""
    description: str = ""
    source_type: SourceType = "manual"
    screenshot: Optional[str] = Field(
        default=None, description="Base64 image or data URL of a screenshot")


class ResumeAnalysisRequest(BaseModel):
    job_title: str = ""
    resume_text: str = ""
    job_description: str = ""


class InterviewPrepRequest(BaseModel):
    role: str = ""
    experience_level: str = ""


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)


class ChatReply(BaseModel):
    reply: str


class SignupRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    role: str
    is_blocked: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class JobAnalysisResult(BaseModel):
    record_id: Optional[str] = None
    verdict: str
    category: str
    risk_level: str
    risk_rate: float
    confidence_score: float
    model_label: str
    explanations: List[str]
    safety_tips: List[str]


class ResumeAnalysisResult(BaseModel):
    record_id: Optional[str] = None
    job_title: str
    verdict: str
    category: str
    risk_level: str
    fraud_risk_score: float
    match_percentage: float
    ats_score: float
    rating: str
    matched_skills: List[str]
    missing_skills: List[str]
    suggestions: List[str]
    optimized_summary: str
    roadmap: List[str]


class InterviewModuleOut(BaseModel):
    id: Optional[str] = None
    role: str
    experience_level: str
    technical_questions: List[str]
    hr_questions: List[str]
    preparation_roadmap: List[str]
    resources: List[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityEntryOut(BaseModel):
    id: str
    source: str
    user_id: str
    title: str
    subtitle: str
    risk_rate: float
    date: datetime
    verdict: str
    category: str

    class Config:
        from_attributes = True


class TrendPointOut(BaseModel):
    date: date
    users: int
    scans: int

    class Config:
        from_attributes = True


class StatsOut(BaseModel):
    total_users: int
    total_analyses: int
    fake_jobs_detected: int
    high_risk_percentage: int
    new_users_today: int
    risk_distribution: Dict[str, int]
    growth_trend: List[TrendPointOut]

    class Config:
        from_attributes = True
