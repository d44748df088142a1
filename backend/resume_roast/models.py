from sqlalchemy import Column, String, DateTime, Text, Integer, Float
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from .db import Base
import uuid

def uid() -> str:
    return str(uuid.uuid4())

class GeneratedResume(Base):
    __tablename__ = "generated_resumes"
    id = Column(String, primary_key=True, default=uid)
    session_id = Column(String, index=True, nullable=True)
    job_description = Column(Text)
    generated_content = Column(Text)
    cover_letter = Column(Text, nullable=True)
    template = Column(String, default="modern")  # modern|classic|creative
    contact_info = Column(JSON, nullable=True)   # {name, email, phone, linkedin}
    ats_optimization_score = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class ResumeAnalysis(Base):
    __tablename__ = "resume_analyses"
    id = Column(String, primary_key=True, default=uid)
    session_id = Column(String, index=True, nullable=True)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    ats_score = Column(Float)
    overall_feedback = Column(Text)
    sections = Column(JSON)  # list[{name, score, feedback}]
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class RateLimitBucketRow(Base):
    __tablename__ = "rate_limit_buckets"
    key = Column(String, primary_key=True)
    tokens = Column(Integer, nullable=False)
    last_refill = Column(Float, nullable=False)  # epoch ms
