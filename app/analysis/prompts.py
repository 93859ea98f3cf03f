"""Prompt templates for resume vs. job post analysis using LangChain.

One template per analysis kind. Each asks for a single JSON object whose
shape matches the corresponding model in app.models; braces in the JSON
examples are doubled because templates use f-string formatting.
"""

from langchain_core.prompts import ChatPromptTemplate


# --- System Prompt -----------------------------------------------------------

SYSTEM_PROMPT = """You are an expert HR analyst comparing a candidate's resume with a job posting.

CRITICAL RULES:
- Respond with ONLY a valid JSON object. No prose before or after it.
- Base every statement STRICTLY on the two documents. Do not invent skills, titles, or conditions.
- If a document does not mention something, say "not specified" rather than guessing.
- All scores are integers from 0 to 100.
- Be specific and actionable in problems and recommendations.
"""

DOCUMENTS_BLOCK = """RESUME:
{resume}

JOB POSTING:
{job_post}
"""


# --- Dimension templates ------------------------------------------------------

HEADLINE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", DOCUMENTS_BLOCK + """
Compare the JOB TITLE of the posting with the TITLES the candidate has held.

Consider:
- Hierarchy and seniority level
- Industry terminology
- Functional closeness of the roles
- Career progression in the titles

Respond in exactly this JSON format:
{{
  "jobTitle": "exact title from the posting",
  "candidateTitles": ["title 1", "title 2"],
  "matchScore": 0,
  "explanation": "why the titles do or do not match",
  "problems": ["problem 1"],
  "recommendations": ["recommendation 1"]
}}"""),
])

SKILLS_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", DOCUMENTS_BLOCK + """
Compare the SKILLS the posting asks for with the skills the resume demonstrates.

1. Skills explicitly requested by the posting.
2. Skills listed or evidenced in the resume.
3. Matching skills.
4. Missing skills (requested but not found).
5. Additional skills (candidate has them, posting does not ask).

Focus on professional and technical skills: required vs. nice-to-have, level, tech stack fit.

Respond in exactly this JSON format:
{{
  "requestedSkills": ["skill"],
  "candidateSkills": ["skill"],
  "matchingSkills": ["skill"],
  "missingSkills": ["skill"],
  "additionalSkills": ["skill"],
  "matchScore": 0,
  "explanation": "summary of the skills fit",
  "problems": ["problem 1"],
  "recommendations": ["recommendation 1"]
}}"""),
])

EXPERIENCE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", DOCUMENTS_BLOCK + """
Compare the candidate's WORK EXPERIENCE with what the role requires, including seniority.

Consider years of relevant experience, scope of responsibility, industry relevance,
quality of achievements, leadership experience and career growth.

seniorityMatch must be one of: "under-qualified", "perfect-match", "over-qualified".

Respond in exactly this JSON format:
{{
  "candidateExperience": ["what the candidate has done"],
  "jobRequirements": ["what the role requires"],
  "experienceMatch": 0,
  "seniorityMatch": "perfect-match",
  "seniorityExplanation": "why this seniority verdict",
  "quantityMatch": 0,
  "quantityExplanation": "how the amount of experience compares",
  "explanation": "summary of the experience fit",
  "problems": ["problem 1"],
  "recommendations": ["recommendation 1"]
}}"""),
])

JOB_CONDITIONS_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", DOCUMENTS_BLOCK + """
Compare the WORKING CONDITIONS of the posting with the candidate's situation and preferences:
1. Location requirements vs. the candidate's location.
2. Salary range vs. the candidate's expectation (if mentioned).
3. Schedule vs. the candidate's preference.
4. Work format (remote / hybrid / office) vs. the candidate's preference.

When one side is silent, use "not specified" and judge compatibility as true unless
the other side makes it impossible.

Respond in exactly this JSON format:
{{
  "location": {{"jobValue": "", "candidateValue": "", "compatible": true, "explanation": ""}},
  "salary": {{"jobValue": "", "candidateValue": "", "compatible": true, "explanation": ""}},
  "schedule": {{"jobValue": "", "candidateValue": "", "compatible": true, "explanation": ""}},
  "workFormat": {{"jobValue": "", "candidateValue": "", "compatible": true, "explanation": ""}},
  "overallScore": 0,
  "explanation": "overall view of the conditions",
  "problems": ["problem 1"],
  "recommendations": ["recommendation 1"]
}}"""),
])

SUMMARY_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", DOCUMENTS_BLOCK + """
Give an OVERALL assessment of how well this candidate fits this posting, weighing
job title, skills, experience and working conditions together.

Respond in exactly this JSON format:
{{
  "overallScore": 0,
  "summary": "3-5 sentences: verdict, the strongest points, the biggest gaps"
}}"""),
])


# --- Template registry for analysis kinds ------------------------------------

PROMPT_MAP = {
    "headline": HEADLINE_PROMPT,
    "skills": SKILLS_PROMPT,
    "experience": EXPERIENCE_PROMPT,
    "job_conditions": JOB_CONDITIONS_PROMPT,
    "summary": SUMMARY_PROMPT,
}

ANALYSIS_KINDS = tuple(PROMPT_MAP)


def get_prompt_for_kind(kind: str) -> ChatPromptTemplate:
    """Return the ChatPromptTemplate for an analysis kind.

    Raises:
        KeyError: If the kind is unknown.
    """
    return PROMPT_MAP[kind]
