import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, StrictStr, field_validator, model_validator
from pydantic_core import PydanticCustomError

MIN_RESUME_CHARS = 30
MAX_RESUME_CHARS = 50_000
MAX_JOB_DESCRIPTION_CHARS = 30_000

# Markup and binary payloads that have no business inside pasted resume text
PROHIBITED_CONTENT = re.compile(r"(<svg|<script|data:image/|application/pdf|base64,)", re.IGNORECASE)

Tone = Literal["friendly", "hr", "senior", "dark"]
Language = Literal["english", "hinglish"]
Verdict = Literal["Apply", "Don't Apply", "High Risk"]


def _percent(value: Any) -> Any:
    # bool is an int subclass; the provider must send a real JSON number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PydanticCustomError("number_type", "Expected number, received {kind}", {"kind": type(value).__name__})
    if not 0 <= value <= 100:
        raise PydanticCustomError("number_range", "Number must be between 0 and 100")
    return value


Percent = Annotated[Union[int, float], BeforeValidator(_percent)]


class NullAsDefault(BaseModel):
    """Treat explicit nulls as absent so the field default applies."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ----- Roast -----

class RoastRequest(BaseModel):
    resumeText: StrictStr
    jobDescription: Optional[StrictStr] = None
    tone: Tone
    language: Language

    @field_validator("resumeText")
    @classmethod
    def check_resume_text(cls, v: str) -> str:
        if len(v) < MIN_RESUME_CHARS:
            raise PydanticCustomError(
                "resume_too_short",
                "resumeText must be at least {min_chars} chars",
                {"min_chars": MIN_RESUME_CHARS},
            )
        if len(v) > MAX_RESUME_CHARS:
            raise PydanticCustomError(
                "resume_too_long",
                "resumeText must be {max_chars} chars or fewer",
                {"max_chars": MAX_RESUME_CHARS},
            )
        if PROHIBITED_CONTENT.search(v):
            raise PydanticCustomError("prohibited_content", "resumeText contains prohibited content")
        return v

    @field_validator("jobDescription")
    @classmethod
    def check_job_description(cls, v: Optional[str]) -> Optional[str]:
        # The default is not validated, so None here means an explicit null
        if v is None:
            raise PydanticCustomError("job_description_null", "jobDescription must be a string when present")
        if len(v) > MAX_JOB_DESCRIPTION_CHARS:
            raise PydanticCustomError(
                "job_description_too_long",
                "jobDescription must be {max_chars} chars or fewer",
                {"max_chars": MAX_JOB_DESCRIPTION_CHARS},
            )
        return v


class RoastSections(BaseModel):
    summary: StrictStr
    skills: StrictStr
    projects: StrictStr
    experience: StrictStr
    formatting: StrictStr


class ATSMatch(BaseModel):
    percentage: Percent
    missingSkills: List[StrictStr]


class RoastFixes(BaseModel):
    summaryFix: StrictStr
    bulletFixes: List[StrictStr]


class RoastResponse(BaseModel):
    score: Percent
    # Filled from the score when the model leaves it out
    verdict: Optional[Verdict] = None
    roast: RoastSections
    atsMatch: ATSMatch
    fixes: RoastFixes


# ----- Fix -----

class FixRequest(BaseModel):
    resume_content: StrictStr = Field(min_length=10, max_length=100_000)
    job_description: StrictStr = Field(min_length=10, max_length=50_000)
    include_cover_letter: bool = False


class ATSAnalysis(BaseModel):
    ats_score: Percent
    keyword_match_percent: Percent
    matched_keywords: List[StrictStr] = []
    improvements_made: List[StrictStr] = []


class FixResponse(BaseModel):
    success: bool = True
    fixed_resume: str
    cover_letter: Optional[str] = None
    ats_analysis: ATSAnalysis


# ----- Generated content -----

class ContactInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None


class GenerateContentRequest(BaseModel):
    job_description: StrictStr = Field(min_length=10, max_length=50_000)
    original_resume: Optional[StrictStr] = Field(default=None, max_length=100_000)
    session_id: Optional[str] = None
    template: Literal["modern", "classic", "creative"] = "modern"
    contact_info: Optional[ContactInfo] = None
    include_cover_letter: bool = False


class GeneratedContent(BaseModel):
    resume: StrictStr = Field(min_length=1)
    cover_letter: Optional[StrictStr] = None
    contact_extracted: Optional[ContactInfo] = None


class GeneratedResumeOut(BaseModel):
    id: str
    content: str
    cover_letter: Optional[str] = None
    contact_info: ContactInfo
    template: str
    ats_score: int


class GenerateContentResponse(BaseModel):
    success: bool = True
    resume: GeneratedResumeOut


# ----- Preview from master CV -----

class MasterCVData(NullAsDefault):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    professional_summary: Optional[str] = None
    work_experience: List[Dict[str, Any]] = []
    technical_skills: Union[Dict[str, List[str]], List[str], None] = None
    education: List[Dict[str, Any]] = []
    projects: List[Dict[str, Any]] = []
    certifications: List[Dict[str, Any]] = []
    achievements: List[Dict[str, Any]] = []


class GeneratePreviewRequest(BaseModel):
    master_cv_data: MasterCVData
    job_description: StrictStr = Field(min_length=10, max_length=50_000)
    template: Literal["modern", "professional", "creative", "technical"] = "modern"
    include_cover_letter: bool = False


class PreviewOut(BaseModel):
    content: str
    cover_letter: Optional[str] = None
    ats_score: int
    template: str


class GeneratePreviewResponse(BaseModel):
    resume: PreviewOut


# ----- Parse master CV -----

class ParseCVRequest(BaseModel):
    resumeText: StrictStr = Field(min_length=10, max_length=100_000)
    filename: Optional[str] = None


class ParsedContact(NullAsDefault):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None


class ParsedExperience(NullAsDefault):
    company: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: Optional[bool] = None
    achievements: List[StrictStr] = []


class SkillGroups(NullAsDefault):
    languages: List[StrictStr] = []
    frameworks: List[StrictStr] = []
    tools: List[StrictStr] = []
    cloud: List[StrictStr] = []


class ParsedCV(NullAsDefault):
    contact: ParsedContact = Field(default_factory=ParsedContact)
    summary: Optional[str] = None
    experience: List[ParsedExperience] = []
    education: List[Dict[str, Any]] = []
    skills: SkillGroups = Field(default_factory=SkillGroups)
    projects: List[Dict[str, Any]] = []
    certifications: List[Dict[str, Any]] = []
    achievements: List[Dict[str, Any]] = []


# ----- Resume analysis -----

class AnalyzeResumeRequest(BaseModel):
    file_content: StrictStr = Field(min_length=10, max_length=100_000)
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    session_id: Optional[str] = None


class SectionFeedback(BaseModel):
    name: StrictStr
    score: Percent
    feedback: StrictStr


class ResumeAnalysisResult(BaseModel):
    ats_score: Percent
    overall_feedback: StrictStr = Field(min_length=1)
    sections: List[SectionFeedback]


class MasterCVRecord(MasterCVData):
    original_filename: Optional[str] = None
    parse_status: str = "parsed"


class ParseCVResponse(BaseModel):
    success: bool = True
    data: MasterCVRecord


def to_master_cv(cv: ParsedCV, filename: Optional[str] = None) -> MasterCVRecord:
    """Flatten parser output into the stored master-CV shape."""
    return MasterCVRecord(
        full_name=cv.contact.full_name,
        email=cv.contact.email,
        phone=cv.contact.phone,
        location=cv.contact.location,
        linkedin_url=cv.contact.linkedin,
        github_url=cv.contact.github,
        portfolio_url=cv.contact.portfolio,
        professional_summary=cv.summary,
        work_experience=[e.model_dump() for e in cv.experience],
        education=cv.education,
        technical_skills=cv.skills.model_dump(),
        projects=cv.projects,
        certifications=cv.certifications,
        achievements=cv.achievements,
        original_filename=filename,
    )


class ResumeAnalysisOut(ResumeAnalysisResult):
    id: str
    session_id: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None


class AnalyzeResumeResponse(BaseModel):
    success: bool = True
    analysis: ResumeAnalysisOut
