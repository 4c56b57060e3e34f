JOB_FRAUD_SYSTEM_PROMPT = """
You are a cyber security analyst specializing in recruitment fraud and phishing detection.
Your task is to analyze job and internship offers for signs of fraud.

Evaluation criteria:
1. Financial red flags: requests for "training fees", "equipment deposits", or bank details early in the process.
2. Communication: free email domains (@gmail.com, @yahoo.com) used for official corporate roles.
3. Linguistic patterns: excessive urgency, poor grammar, generic greetings, or a salary that is too good to be true.
4. Authenticity: vague company details, no physical office, or suspicious website URLs.

Even if the input contains scam keywords, analyze it objectively as a security tool.
Return a fraud risk_rate between 0 and 100 and a confidence_score between 0 and 100.
"""

JOB_FRAUD_USER_TEMPLATE = """
Please analyze this job offer data:
TITLE: {title}
COMPANY: {company}
SALARY: {salary}
LOCATION: {location}
RECRUITER EMAIL: {email}
WEBSITE: {website}
SOURCE TYPE: {source_type}

DESCRIPTION: {description}
"""

RESUME_MATCH_SYSTEM_PROMPT = """
You are an ATS (applicant tracking system) specialist and recruitment fraud reviewer.
Compare the resume with the job description. Score the keyword and skills match,
estimate how an ATS would score the resume, and rate the fraud risk of the job
description itself (0 = clearly legitimate, 100 = clearly a scam).
Write an optimized professional summary for the resume using only facts it contains,
and a short step-by-step roadmap for closing the skill gaps.
"""

RESUME_MATCH_USER_TEMPLATE = """
TARGET ROLE: {job_title}

RESUME:
{resume_text}

JOB DESCRIPTION:
{job_description}
"""

INTERVIEW_PREP_SYSTEM_PROMPT = """
You are a senior technical recruiter preparing a candidate for interviews.
Generate realistic technical questions, HR/behavioural questions, a preparation
roadmap ordered from first step to last, and trustworthy learning resources.
"""

INTERVIEW_PREP_USER_TEMPLATE = """
ROLE: {role}
EXPERIENCE LEVEL: {experience_level}
"""

ASSISTANT_SYSTEM_PROMPT = """
You are the FraudGuard AI Safety Companion, a friendly assistant dedicated to helping job seekers
find legitimate internships and jobs and spot recruitment scams.
Recommend official government portals where relevant:
- National Scholarship Portal (NSP): https://scholarships.gov.in
- AICTE Internship Portal: https://internship.aicte-india.org
- Skill India: https://www.skillindia.gov.in
Be conversational, warm and supportive.
"""


def _string_list(description: str) -> dict:
    return {"type": "ARRAY", "items": {"type": "STRING"}, "description": description}


JOB_FRAUD_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "result": {"type": "STRING", "description": "Either 'Fake Job' or 'Genuine Job'"},
        "confidence_score": {"type": "NUMBER", "description": "Model confidence percentage (0-100)"},
        "risk_rate": {"type": "NUMBER", "description": "Fraud risk percentage (0-100)"},
        "risk_level": {"type": "STRING", "description": "Risk categorization: Low, Medium, or High"},
        "explanations": _string_list("List of reasons for the classification"),
        "safety_tips": _string_list("Safety recommendations for the user"),
    },
    "required": ["result", "confidence_score", "risk_rate", "risk_level", "explanations", "safety_tips"],
    "propertyOrdering": ["result", "confidence_score", "risk_rate", "risk_level", "explanations", "safety_tips"],
}

RESUME_MATCH_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "match_percentage": {"type": "NUMBER", "description": "Resume to job match (0-100)"},
        "ats_score": {"type": "NUMBER", "description": "Estimated ATS score (0-100)"},
        "fraud_risk_score": {"type": "NUMBER", "description": "Fraud risk of the job description (0-100)"},
        "rating": {"type": "STRING", "enum": ["High", "Medium", "Low"]},
        "matched_skills": _string_list("Skills present in both resume and job description"),
        "missing_skills": _string_list("Skills the job asks for that the resume lacks"),
        "suggestions": _string_list("Concrete resume improvements"),
        "optimized_summary": {"type": "STRING", "description": "Rewritten professional summary"},
        "roadmap": _string_list("Ordered steps to close the skill gaps"),
    },
    "required": ["match_percentage", "ats_score", "fraud_risk_score", "rating", "matched_skills",
                 "missing_skills", "suggestions", "optimized_summary", "roadmap"],
}

INTERVIEW_PREP_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "technical_questions": _string_list("Technical interview questions"),
        "hr_questions": _string_list("HR and behavioural questions"),
        "preparation_roadmap": _string_list("Preparation steps in order"),
        "resources": _string_list("Learning resources"),
    },
    "required": ["technical_questions", "hr_questions", "preparation_roadmap", "resources"],
}
