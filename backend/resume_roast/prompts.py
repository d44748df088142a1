"""
Prompt templates for every generation task.

Builders are pure functions of the validated request: the same input always
yields the same prompt string.
"""
import json
from typing import Optional

from .schemas import (
    AnalyzeResumeRequest,
    ContactInfo,
    FixRequest,
    GenerateContentRequest,
    GeneratePreviewRequest,
    ParseCVRequest,
    RoastRequest,
)

TONE_INSTRUCTIONS = {
    "friendly": (
        "TONE: Be supportive and encouraging, like a helpful friend. Still be honest about issues, "
        "but frame them positively. Use phrases like \"You're on the right track, but...\" and "
        "\"One thing that could help is...\""
    ),
    "hr": (
        "TONE: Be professional and formal, like an actual HR recruiter reviewing resumes. Use corporate "
        "language. Be direct about what works and what doesn't from a hiring perspective."
    ),
    "senior": (
        "TONE: Be brutally honest like a senior developer or tech lead doing a code review. No sugarcoating. "
        "Call out weak claims directly. Use phrases like \"Look, here's the problem...\" and "
        "\"This won't fly because...\""
    ),
    "dark": (
        "TONE: Roast mercilessly with dark humor. Be harsh but still useful, like a comedy roast where the "
        "goal is brutal honesty. No personal attacks, just the brutal truth about the resume."
    ),
}

LANGUAGE_INSTRUCTIONS = {
    "english": "LANGUAGE: Write in clear, conversational English.",
    "hinglish": (
        "LANGUAGE: Write in Hinglish (mix of Hindi and English). Use phrases like \"Bhai, ye dekh...\", "
        "\"Yaar, problem ye hai ki...\", \"Seedha baat - \". Keep it natural and conversational."
    ),
}

ROAST_SCHEMA = """{
  "score": number,
  "verdict": "Apply" | "Don't Apply" | "High Risk",
  "roast": {
    "summary": string,
    "skills": string,
    "projects": string,
    "experience": string,
    "formatting": string
  },
  "atsMatch": {
    "percentage": number,
    "missingSkills": string[]
  },
  "fixes": {
    "summaryFix": string,
    "bulletFixes": string[]
  }
}"""


def quote_block(text: Optional[str]) -> str:
    """Escape triple quotes so user text cannot close its delimiter."""
    return (text or "").replace('"""', '\\"\\"\\"')


def tone_instructions(tone: str, language: str) -> str:
    return f"{TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS['senior'])}\n\n{LANGUAGE_INSTRUCTIONS[language]}"


def build_roast_prompt(req: RoastRequest) -> str:
    return f"""You are an objective recruiter-level resume evaluator.

Always follow these hard rules:

1) DO NOT invent or add facts (no companies, company names, dates, metrics, or accomplishments that do not exist in the provided resume).
2) Use the following strict rubric for scoring: formatting (10%), skills & ATS match (25%), projects (25%), experience & metrics (25%), language & grammar (15%). Score MUST be an integer between 0 and 100.
3) Tone affects wording only; scoring must remain objective.
4) Output JSON ONLY, with this exact schema (no extra fields):

{ROAST_SCHEMA}

Resume: \"\"\"{quote_block(req.resumeText)}\"\"\"

JobDescription: \"\"\"{quote_block(req.jobDescription)}\"\"\"

Tone: {req.tone}

Language: {req.language}

{tone_instructions(req.tone, req.language)}

Be decisive in the verdict. If you cannot compute a field, return a short message but still adhere to the JSON schema. Do not include any analysis outside the JSON object."""


def build_fix_prompt(req: FixRequest) -> str:
    return f"""You are an expert resume writer who transforms weak resumes into ATS-optimized, interview-winning documents. Your job is to REWRITE the resume to match the job description.

ORIGINAL RESUME:
{req.resume_content}

TARGET JOB DESCRIPTION:
{req.job_description}

REWRITE THIS RESUME following these rules:

1. SUMMARY (2-3 lines):
   - Start with years of experience + primary role
   - Highlight 2-3 key achievements relevant to THIS job
   - Include 2-3 keywords from the job description naturally

2. KEY SKILLS (one line, 6-8 skills):
   - Extract the most important skills from the JD
   - Only include skills the candidate actually has
   - Format: Skill 1 | Skill 2 | Skill 3 | Skill 4 | Skill 5 | Skill 6

3. EXPERIENCE:
   - Keep the same companies and dates
   - Rewrite every bullet using Action -> Impact -> Result
   - Quantify achievements only with numbers present in the original resume
   - Inject keywords from the JD naturally into bullets
   - 3-4 bullets per role

4. PROJECTS (if any):
   - One-line description with technologies used
   - Highlight impact/result

5. EDUCATION:
   - Keep existing education
   - Format: Degree | Institution | Year

6. CERTIFICATIONS (if any):
   - List relevant certifications

FORMATTING RULES:
- Plain text only (no tables, columns, or special characters)
- Clear section headers in CAPS
- One blank line between sections
- Bullet points start with action verbs
- 1 page for <5 years experience, 2 pages max otherwise

NEVER invent employers, titles, dates, degrees or metrics.
Return the COMPLETE rewritten resume as plain text, ready to copy-paste. Do not include any commentary or explanations."""


def build_fix_cover_letter_prompt(fixed_resume: str, job_description: str) -> str:
    return f"""Based on this resume and job description, write a compelling cover letter.

RESUME:
{fixed_resume}

JOB DESCRIPTION:
{job_description}

Write a professional cover letter that:
1. Opens with enthusiasm for the specific role
2. Highlights 2-3 most relevant achievements
3. Shows knowledge of the company/role
4. Ends with a clear call to action
5. Keep it to 3-4 paragraphs, under 300 words

Return ONLY the cover letter text, no commentary."""


def build_ats_analysis_prompt(fixed_resume: str, job_description: str) -> str:
    return f"""Analyze this resume against the job description and return a JSON with:
{{
  "ats_score": <0-100>,
  "keyword_match_percent": <0-100>,
  "matched_keywords": ["keyword1", "keyword2", ...],
  "improvements_made": ["improvement1", "improvement2", ...]
}}

RESUME:
{fixed_resume}

JOB DESCRIPTION:
{job_description}

Return ONLY JSON."""


TEMPLATE_STYLES = {
    "modern": "Use blue (#2563eb) for headers and accents. Clean, minimalist design with clean lines and subtle borders.",
    "classic": "Use green (#059669) for headers and accents. Traditional, professional design with clear sections.",
    "creative": "Use purple (#9333ea) for headers and accents. Creative, modern design with dynamic sections.",
}


def build_content_prompt(req: GenerateContentRequest, contact: ContactInfo) -> str:
    style = TEMPLATE_STYLES.get(req.template, TEMPLATE_STYLES["modern"])
    cover_letter_rules = ""
    cover_letter_field = ""
    if req.include_cover_letter:
        cover_letter_rules = """
8. COVER LETTER:
   - Professional business letter format with proper greeting
   - Opening paragraph: specific interest in the company and role
   - Body: 2-3 specific examples showing qualification alignment
   - Closing: clear call to action
   - Complement the resume without repeating it verbatim
"""
        cover_letter_field = '\n  "cover_letter": "Professional cover letter addressing the specific role and company",'

    return f"""You are a world-class resume writer and career strategist. Generate an ATS-optimized resume that gets past automated screening and impresses hiring managers.

CONTACT INFORMATION TO USE (these are the actual details, never use placeholders):
Name: {contact.name}
Phone: {contact.phone}
Email: {contact.email}
LinkedIn: {contact.linkedin}

MASTER RESUME CONTENT TO WORK WITH:
{req.original_resume or 'No master resume provided'}

TARGET JOB DESCRIPTION:
{req.job_description}

TEMPLATE STYLE: {req.template.upper()}
Design Guidelines: {style}

CRITICAL RESUME WRITING INSTRUCTIONS:
1. TAILORING: reposition and prioritize experiences from the master resume that match the job requirements.
2. ATS OPTIMIZATION: use keywords from the job description naturally and standard section headers (Professional Summary, Experience, Education, Skills).
3. PROFESSIONAL SUMMARY (3-4 lines): years of experience, primary expertise, 2-3 relevant achievements.
4. EXPERIENCE: reverse chronological; Job Title | Company | Location | Dates; 3-5 achievement bullets per role starting with action verbs.
5. SKILLS: prioritize skills named in the job description, grouped logically.
6. EDUCATION & CERTIFICATIONS: keep what the master resume lists.
7. FORMATTING: markdown with # for the name, ## for section headers, **bold** for emphasis; 1-2 pages.
{cover_letter_rules}
NEVER invent employers, titles, dates, degrees or metrics that are not in the master resume.

MANDATORY OUTPUT FORMAT - Return valid JSON only:
{{
  "resume": "Complete resume in clean markdown",{cover_letter_field}
  "contact_extracted": {{
    "name": "Full professional name",
    "phone": "Phone number",
    "email": "Email address",
    "linkedin": "LinkedIn URL"
  }}
}}"""


PREVIEW_TEMPLATE_NOTES = {
    "modern": "- Clean, minimal with clear visual hierarchy",
    "professional": "- Traditional format emphasizing career progression",
    "creative": "- Slightly more expressive language while maintaining professionalism",
    "technical": "- Technical projects and skills prominently featured",
}


def build_preview_prompt(req: GeneratePreviewRequest) -> str:
    cv = req.master_cv_data
    context = {
        "contact": {
            "name": cv.full_name,
            "email": cv.email,
            "phone": cv.phone,
            "location": cv.location,
            "linkedin": cv.linkedin_url,
            "github": cv.github_url,
            "portfolio": cv.portfolio_url,
        },
        "summary": cv.professional_summary,
        "experience": cv.work_experience,
        "skills": cv.technical_skills,
        "education": cv.education,
        "projects": cv.projects,
        "certifications": cv.certifications,
        "achievements": cv.achievements,
    }
    return f"""You are an expert ATS resume writer who creates job-winning, recruiter-ready resumes.

INPUT: Structured master CV data (JSON) and a target job description.
OUTPUT: A tailored, ATS-optimized resume in clean text format.

=== RESUME WRITING RULES ===
1. FORMAT: ATS-safe (no tables, icons, graphics or columns). Sections in this order: CONTACT INFO, PROFESSIONAL SUMMARY, KEY SKILLS, WORK EXPERIENCE, PROJECTS, EDUCATION.
2. PROFESSIONAL SUMMARY (3-4 lines): years of experience + primary expertise, 2-3 job keywords, one measurable achievement.
3. KEY SKILLS: 10-15 skills matching the job, grouped by category, job-description skills first.
4. WORK EXPERIENCE: every bullet is [Action Verb] + [What you did] + [Measurable Result].
5. KEYWORDS: integrate 15-20 job-description keywords naturally; include both acronyms and full terms.
6. TAILORING: pick the 3-4 most relevant roles; add missing skills ONLY if they align with actual experience. Do NOT invent experience or achievements.
7. LENGTH: 1 page for <10 years experience, 2 pages max otherwise.

TEMPLATE STYLE: {req.template}
{PREVIEW_TEMPLATE_NOTES[req.template]}

=== JOB DESCRIPTION ===
{req.job_description}

=== CANDIDATE DATA ===
{json.dumps(context, indent=2)}

Generate a polished, ATS-optimized, recruiter-ready resume. Output ONLY the resume text (no markdown, no code blocks, no JSON):"""


def build_preview_cover_letter_prompt(req: GeneratePreviewRequest) -> str:
    cv = req.master_cv_data
    return f"""Generate a compelling, professional cover letter for this job application.

JOB DESCRIPTION:
{req.job_description}

CANDIDATE DATA:
Name: {cv.full_name}
Contact: {cv.email} | {cv.phone}
Summary: {cv.professional_summary}
Recent Experience: {json.dumps(cv.work_experience[:2])}
Key Skills: {json.dumps(cv.technical_skills)}

COVER LETTER REQUIREMENTS:
1. Use the EXACT contact information provided above
2. Address specific requirements from the job description
3. Highlight 2-3 relevant achievements
4. 3-4 paragraphs: opening hook, qualifications, closing with a call to action
5. Professional but personable tone
6. Proper letter formatting with date

Output ONLY the cover letter text:"""


def build_parse_cv_prompt(req: ParseCVRequest) -> str:
    return f"""You are an expert resume parser. Extract ALL information from this resume into structured JSON.

CRITICAL RULES:
- Extract REAL data only from the resume, never add placeholders or make up information
- If a field is not present in the resume, use null
- Dates use "Month YYYY" (e.g. "January 2020") or "Present"; split ranges into start_date and end_date
- Keep phone numbers in the EXACT format from the resume
- URLs (LinkedIn, GitHub, Portfolio) start with https:// (add it if missing)
- Categorize skills: languages, frameworks, tools, cloud
- Keep every number, percentage and dollar amount found in achievements

REQUIRED OUTPUT FORMAT (valid JSON only):
{{
  "contact": {{"full_name": "...", "email": "...", "phone": "...", "location": "...", "linkedin": "...", "github": "...", "portfolio": "..."}},
  "summary": "...",
  "experience": [
    {{"company": "...", "title": "...", "location": "...", "start_date": "January 2020", "end_date": "Present", "is_current": true, "achievements": ["..."]}}
  ],
  "education": [{{"institution": "...", "degree": "...", "major": "...", "graduation_date": "May 2018", "gpa": "3.8"}}],
  "skills": {{"languages": [], "frameworks": [], "tools": [], "cloud": []}},
  "projects": [{{"name": "...", "description": "...", "technologies": [], "outcomes": "..."}}],
  "certifications": [{{"name": "...", "issuer": "...", "date": "...", "credential_id": "..."}}],
  "achievements": [{{"title": "...", "description": "...", "date": "..."}}]
}}

RESUME TEXT TO PARSE:
{req.resumeText}

OUTPUT ONLY VALID JSON, NO MARKDOWN OR EXPLANATIONS:"""


def build_analyze_prompt(req: AnalyzeResumeRequest) -> str:
    return f"""Analyze this resume content and provide an ATS score and constructive feedback. Be encouraging but honest, and focus on actionable improvements. Return the response in this exact JSON format:
{{
  "ats_score": <number between 0-100>,
  "overall_feedback": "<constructive overall feedback about the resume>",
  "sections": [
    {{
      "name": "<section name like Contact Information, Professional Summary, etc>",
      "score": <number between 0-100>,
      "feedback": "<specific, actionable feedback for this section>"
    }}
  ]
}}

Score content quality rather than perfect formatting:
- Contact info that exists should score 70-90+ depending on completeness
- Summaries that highlight relevant skills should score 60-80+
- Experience with titles, companies and responsibilities should score 60-85+
- Education with degree/school info should score 70-90+
- Skills sections with relevant technologies should score 65-85+

Resume content to analyze:
{req.file_content}

Return ONLY JSON."""
