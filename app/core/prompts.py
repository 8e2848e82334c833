"""
Centralized AI Prompt Repository
- Keeps evaluation and chat prompts out of business logic
- Facilitates auditing and refinement
"""

import json
from typing import Any, Dict

RESUME_TEXT_LIMIT = 5000

# --- RESUME EVALUATION PROMPTS ---
RESUME_EVALUATION_TEMPLATE = """You are a resume evaluation expert. First, determine if this is a valid resume document. Then analyze it against the given criteria and provide a JSON response.

Document Content:
{resume_text}

Criteria:
{criteria_json}

IMPORTANT: Respond with ONLY valid JSON in this exact format (no markdown, no extra text, no code blocks):

{{
  "is_resume": true,
  "fit_score": 85,
  "missing_skills": ["skill1", "skill2"],
  "feedback": "Very brief feedback (max 60 characters) highlighting the main reason for pass/fail."
}}

First, check if "is_resume" should be true or false:
- Set "is_resume" to false if the document is clearly NOT a resume (e.g., random text, articles, books, code files, etc.)
- A valid resume should contain career information, work experience, education, or professional skills
- If "is_resume" is false, set fit_score to 0, missing_skills to [], and feedback to "Not a resume document"

If it IS a resume:
- The fit_score should be a number between 0-100 representing how well the resume matches the criteria.
- The missing_skills should be an array of specific skills mentioned in the criteria that are missing from the resume.
- The feedback should be VERY SHORT AND CONCISE (maximum 60 characters) - just the key reason for the score. Examples:
  - "Missing Supabase, React experience"
  - "Strong match for all requirements"
  - "Lacks required AWS and Docker skills"
  - "Perfect fit with 5+ years experience\""""

# --- CHAT PROMPTS ---
CHAT_SYSTEM = """You are a resume evaluation assistant.

RULES:
1. GREETINGS -> Respond warmly and briefly.
2. EVALUATION REQUESTS -> When the user describes a role, skills or job requirements, call a tool:
   - evaluate_resumes: the user wants all uploaded resumes scored against requirements.
     Extract the role, the list of skills and a short job description from the conversation.
   - search_resumes: the user wants to find resumes matching a description first
     (e.g. "find candidates who worked with Kubernetes").
3. OTHER QUESTIONS -> Politely explain that you only help with resume evaluation.

Never invent resume content. Never answer with evaluation scores yourself."""

GREETING_REPLY = (
    "Hello! I can evaluate your uploaded resumes against a role. "
    "Tell me the position and the skills you are looking for, e.g. "
    "\"Backend Engineer with Python, Go and PostgreSQL\"."
)

OFF_TOPIC_REPLY = (
    "I can only help with resume evaluation. Describe the role and skills "
    "you are hiring for and I will score the uploaded resumes."
)

NO_CRITERIA_REPLY = (
    "I could not work out the role or skills from your message. "
    "Please mention a job title or a few required skills."
)

NOT_A_RESUME_FEEDBACK = "Not a resume document"

# --- TOOL DECLARATIONS ---
EVALUATE_RESUMES_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "evaluate_resumes",
        "description": "Evaluate all uploaded resumes against the job requirements the user described.",
        "parameters": {
            "type": "object",
            "properties": {
                "role": {"type": "string", "description": "Job title, e.g. Backend Engineer"},
                "skills": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Required skills, e.g. [\"Python\", \"Go\"]",
                },
                "job_description": {"type": "string", "description": "Short summary of the requirement"},
            },
            "required": ["role", "skills"],
        },
    },
}

SEARCH_RESUMES_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "search_resumes",
        "description": "Semantic search over uploaded resume content; matching resumes are then evaluated.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to look for in resumes"},
                "top_k": {"type": "integer", "description": "Number of chunks to retrieve", "default": 10},
            },
            "required": ["query"],
        },
    },
}

CHAT_TOOLS = [EVALUATE_RESUMES_TOOL, SEARCH_RESUMES_TOOL]


def build_resume_prompt(text: str, criteria: Dict[str, Any]) -> str:
    """Evaluation prompt over the first RESUME_TEXT_LIMIT characters of the resume."""
    return RESUME_EVALUATION_TEMPLATE.format(
        resume_text=text[:RESUME_TEXT_LIMIT],
        criteria_json=json.dumps(criteria, indent=2),
    )
