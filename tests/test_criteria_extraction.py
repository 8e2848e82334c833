import pytest

from app.services.criteria_extraction import (
    classify_intent, criteria_from_arguments, extract_criteria, extract_role, extract_skills
)


@pytest.mark.parametrize("message", ["hi", "Hello there!", "good morning", "thanks"])
def test_greetings(message):
    assert classify_intent(message) == "greeting"


@pytest.mark.parametrize("message", [
    "I need a React developer",
    "hello, we are hiring a data scientist",
    "Python, Django, PostgreSQL",
    "evaluate the resumes for a backend role",
])
def test_evaluation_requests(message):
    assert classify_intent(message) == "evaluation"


@pytest.mark.parametrize("message", ["what's the weather today?", "tell me a joke", ""])
def test_off_topic(message):
    assert classify_intent(message) == "off_topic"


def test_skills_are_canonical_and_in_order_of_mention():
    assert extract_skills("Need k8s, Golang and postgres; nodejs is a plus") == [
        "Kubernetes", "Go", "PostgreSQL", "Node.js"
    ]


def test_short_case_sensitive_skills_do_not_match_plain_words():
    assert extract_skills("we are going to rest") == []
    assert extract_skills("Go and REST APIs") == ["Go", "REST"]


def test_java_is_not_javascript():
    assert extract_skills("JavaScript only") == ["JavaScript"]
    assert extract_skills("Java and JavaScript") == ["Java", "JavaScript"]


def test_role_drops_filler_words():
    assert extract_role("I want a Node.js developer") == "Node.js Developer"
    assert extract_role("We are hiring a senior backend engineer with Go") == "Senior Backend Engineer"
    assert extract_role("Python, Django") is None


def test_extract_criteria_uses_message_as_description():
    criteria = extract_criteria("  I need a Python developer  ")
    assert criteria.role == "Python Developer"
    assert criteria.skills == ["Python"]
    assert criteria.job_description == "I need a Python developer"


def test_tool_arguments_are_filled_from_message():
    criteria = criteria_from_arguments({"role": "Backend Engineer"}, "Backend engineer with Go and Docker")
    assert criteria.role == "Backend Engineer"
    assert criteria.skills == ["Go", "Docker"]
    assert criteria.job_description == "Backend engineer with Go and Docker"


def test_tool_arguments_take_precedence():
    criteria = criteria_from_arguments(
        {"role": "Designer", "skills": "Figma, Sketch", "job_description": "UI work"},
        "I want a Python developer"
    )
    assert criteria.role == "Designer"
    assert criteria.skills == ["Figma", "Sketch"]
    assert criteria.job_description == "UI work"
