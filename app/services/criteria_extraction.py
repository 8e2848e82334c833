"""
Keyword heuristics for the chat endpoint: intent classification and criteria
extraction from free text when the model does not supply them.
"""
import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

from app.schemas.resume import Criteria

GREETING = re.compile(
    r"^\s*(hi|hello|hey|hiya|howdy|greetings|good\s+(morning|afternoon|evening)|thanks|thank\s+you)\b[\s!.,:)]*"
    r"(there|team|bot|assistant)?[\s!.,:)]*$",
    re.IGNORECASE,
)

EVALUATION_KEYWORDS = re.compile(
    r"\b(hire|hiring|recruit\w*|looking\s+for|need(s|ed)?|want(s|ed)?|seeking|find|search|"
    r"evaluate|evaluation|screen\w*|shortlist\w*|assess\w*|rank\w*|match\w*|score\w*|"
    r"resumes?|cvs?|candidates?|applicants?|role|position|job|vacanc\w+|opening|"
    r"skills?|experience[d]?|developer|engineer|designer|analyst|scientist|architect|manager|intern)\b",
    re.IGNORECASE,
)

ROLE_NOUNS = (
    r"developer|engineer|programmer|designer|architect|analyst|scientist|manager|"
    r"administrator|consultant|specialist|lead|intern|devops|tester"
)

ROLE_PATTERN = re.compile(
    r"\b((?:[\w.+#/-]+\s+){0,3}?(?:" + ROLE_NOUNS + r"))s?\b",
    re.IGNORECASE,
)

ROLE_STOP_WORDS = {
    "a", "an", "the", "some", "any", "for", "of", "i", "we", "me", "us", "need", "needs", "want", "wants",
    "looking", "hire", "hiring", "seeking", "find", "get", "who", "is", "are", "with", "as", "to", "good",
    "great", "experienced", "skilled", "strong", "new", "our", "my", "please", "show", "candidates",
}

_I = re.IGNORECASE


def _p(pattern: str, flags: int = _I) -> Pattern:
    return re.compile(pattern, flags)


# Canonical skill name -> alias patterns
SKILL_SYNONYMS: List[Tuple[str, List[Pattern]]] = [
    ("Python", [_p(r"\bpython\b")]),
    ("JavaScript", [_p(r"\bjavascript\b"), _p(r"\bjs\b"), _p(r"\becmascript\b")]),
    ("TypeScript", [_p(r"\btypescript\b"), _p(r"\bTS\b", 0)]),
    ("Node.js", [_p(r"\bnode(?:\.?js)?\b")]),
    ("React", [_p(r"\breact(?:\.?js)?\b")]),
    ("Next.js", [_p(r"\bnext\.?js\b")]),
    ("Angular", [_p(r"\bangular(?:js)?\b")]),
    ("Vue", [_p(r"\bvue(?:\.?js)?\b")]),
    ("Django", [_p(r"\bdjango\b")]),
    ("Flask", [_p(r"\bflask\b")]),
    ("FastAPI", [_p(r"\bfast\s?api\b")]),
    ("Java", [_p(r"\bjava\b(?!\s*script)")]),
    ("Spring", [_p(r"\bspring(?:\s?boot)?\b")]),
    ("Kotlin", [_p(r"\bkotlin\b")]),
    ("Swift", [_p(r"\bswift\b")]),
    ("Go", [_p(r"\bgolang\b"), _p(r"\bGo\b", 0)]),
    ("Rust", [_p(r"\brust\b")]),
    ("C++", [_p(r"(?<![\w+#])c\+\+(?![\w+#])"), _p(r"\bcpp\b")]),
    ("C#", [_p(r"(?<![\w+#])c#(?![\w+#])"), _p(r"\bcsharp\b")]),
    (".NET", [_p(r"(?<!\w)\.net\b"), _p(r"\bdotnet\b")]),
    ("Ruby", [_p(r"\bruby\b")]),
    ("Ruby on Rails", [_p(r"\brails\b")]),
    ("PHP", [_p(r"\bphp\b")]),
    ("Laravel", [_p(r"\blaravel\b")]),
    ("SQL", [_p(r"\bsql\b")]),
    ("PostgreSQL", [_p(r"\bpostgres(?:ql)?\b")]),
    ("MySQL", [_p(r"\bmysql\b")]),
    ("MongoDB", [_p(r"\bmongo(?:db)?\b")]),
    ("Redis", [_p(r"\bredis\b")]),
    ("Supabase", [_p(r"\bsupabase\b")]),
    ("Firebase", [_p(r"\bfirebase\b")]),
    ("GraphQL", [_p(r"\bgraphql\b")]),
    ("REST", [_p(r"\bREST\b", 0), _p(r"\brestful\b")]),
    ("Docker", [_p(r"\bdocker\b"), _p(r"\bcontainers?\b")]),
    ("Kubernetes", [_p(r"\bkubernetes\b"), _p(r"\bk8s\b")]),
    ("AWS", [_p(r"\baws\b"), _p(r"\bamazon\s+web\s+services\b")]),
    ("Azure", [_p(r"\bazure\b")]),
    ("GCP", [_p(r"\bgcp\b"), _p(r"\bgoogle\s+cloud\b")]),
    ("Terraform", [_p(r"\bterraform\b")]),
    ("Linux", [_p(r"\blinux\b")]),
    ("Git", [_p(r"\bgit\b")]),
    ("CI/CD", [_p(r"\bci\s*/\s*cd\b"), _p(r"\bcontinuous\s+(?:integration|delivery|deployment)\b")]),
    ("Machine Learning", [_p(r"\bmachine\s+learning\b"), _p(r"\bML\b", 0)]),
    ("Deep Learning", [_p(r"\bdeep\s+learning\b")]),
    ("TensorFlow", [_p(r"\btensorflow\b")]),
    ("PyTorch", [_p(r"\bpytorch\b")]),
    ("Pandas", [_p(r"\bpandas\b")]),
    ("NLP", [_p(r"\bnlp\b"), _p(r"\bnatural\s+language\s+processing\b")]),
    ("HTML", [_p(r"\bhtml5?\b")]),
    ("CSS", [_p(r"\bcss3?\b")]),
    ("Tailwind CSS", [_p(r"\btailwind(?:\s?css)?\b")]),
    ("Figma", [_p(r"\bfigma\b")]),
]


def classify_intent(text: str) -> str:
    """'greeting', 'evaluation' or 'off_topic'."""
    message = (text or "").strip()
    if not message:
        return "off_topic"
    if EVALUATION_KEYWORDS.search(message) or extract_skills(message):
        return "evaluation"
    if GREETING.match(message):
        return "greeting"
    return "off_topic"


def extract_skills(text: str) -> List[str]:
    """Canonical skill names mentioned in text, in order of first mention."""
    found = []
    for canonical, patterns in SKILL_SYNONYMS:
        positions = [m.start() for m in (p.search(text) for p in patterns) if m]
        if positions:
            found.append((min(positions), canonical))
    return [name for _, name in sorted(found)]


def extract_role(text: str) -> Optional[str]:
    match = ROLE_PATTERN.search(text or "")
    if not match:
        return None
    words = match.group(1).split()
    while len(words) > 1 and words[0].lower() in ROLE_STOP_WORDS:
        words = words[1:]
    role = " ".join(words).strip(" ,.;:")
    if not role:
        return None
    return " ".join(w if any(c.isupper() for c in w) else w.capitalize() for w in role.split())


def extract_criteria(text: str) -> Criteria:
    """Force-extract role, skills and job description from a free-text request."""
    message = (text or "").strip()
    return Criteria(
        role=extract_role(message) or "",
        skills=extract_skills(message),
        job_description=message,
    )


def criteria_from_arguments(arguments: Dict[str, Any], fallback_text: str) -> Criteria:
    """
    Criteria from tool-call arguments, filled in from the raw message where the
    model left the role or skills out.
    """
    skills = arguments.get("skills") or []
    if isinstance(skills, str):
        skills = [s.strip() for s in skills.split(",") if s.strip()]
    criteria = Criteria(
        role=str(arguments.get("role") or "").strip(),
        skills=[str(s).strip() for s in skills if str(s).strip()],
        job_description=str(arguments.get("job_description") or "").strip(),
    )

    extracted = extract_criteria(fallback_text)
    if not criteria.role:
        criteria.role = extracted.role
    if not criteria.skills:
        criteria.skills = extracted.skills
    if not criteria.job_description:
        criteria.job_description = extracted.job_description
    return criteria
