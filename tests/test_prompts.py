"""
Tests for the action table and prompt builders.
"""

import pytest

from bloom_host.core.exceptions import UnknownActionError
from bloom_host.schemas.ai import ActionRequest, AssessmentQuestion
from bloom_host.services.prompts import (
    MENTOR_SYSTEM_PROMPT,
    QUIZ_SYSTEM_PROMPT,
    build_chat_messages,
    build_prompts,
    resolve_action,
    summarize_assessment,
)


def make_question(concept, difficulty="beginner", correct=0):
    return AssessmentQuestion(
        question=f"About {concept}?",
        options=["a", "b", "c", "d"],
        correct_answer=correct,
        difficulty=difficulty,
        concept=concept,
    )


def test_unknown_action_is_rejected():
    with pytest.raises(UnknownActionError) as excinfo:
        resolve_action("teleport")
    assert excinfo.value.message == "Unknown action: teleport"
    assert excinfo.value.status_code == 500


def test_mentor_chat_has_no_prompt_pair():
    with pytest.raises(UnknownActionError):
        build_prompts(ActionRequest(action="mentor_chat", topic="Go"))


def test_quiz_prompt_defaults_to_easy_and_prefers_node_title():
    system, user = build_prompts(
        ActionRequest(action="generate_quiz", topic="Python", nodeTitle="Closures")
    )
    assert system == QUIZ_SYSTEM_PROMPT.format(difficulty="easy")
    assert "easy difficulty" in system
    assert '"correct_answer": 0' in system
    assert user == 'Create 5 easy multiple-choice questions about "Closures".'


def test_quiz_prompt_uses_requested_difficulty():
    system, user = build_prompts(
        ActionRequest(action="generate_quiz", topic="Python", difficulty="hard")
    )
    assert "hard difficulty" in system
    assert '"Python"' in user


def test_explain_prompt_carries_both_answers():
    _, user = build_prompts(
        ActionRequest(
            action="explain_answer",
            question="What is 2+2?",
            userAnswer="5",
            correctAnswer="4",
        )
    )
    assert 'answered "5"' in user
    assert 'The correct answer was: "4"' in user


def test_resources_prompt_targets_node_title_when_given():
    _, user = build_prompts(
        ActionRequest(action="recommend_resources", topic="Python", node_title="Asyncio")
    )
    assert '"Asyncio"' in user


def test_assessment_summary_marks_each_question():
    request = ActionRequest(
        action="generate_personalized_roadmap",
        topic="Python",
        assessmentAnswers=[0, 2],
        assessmentQuestions=[
            make_question("variables"),
            make_question("generators", difficulty="advanced", correct=1),
        ],
    )
    summary, correct, total = summarize_assessment(request)

    assert (correct, total) == (1, 2)
    assert summary.splitlines() == [
        '- "variables" (beginner): CORRECT',
        '- "generators" (advanced): INCORRECT',
    ]

    _, user = build_prompts(request)
    assert "QUIZ PERFORMANCE (1/2 correct):" in user


def test_assessment_summary_without_answers():
    request = ActionRequest(action="generate_personalized_roadmap", topic="Python")
    assert summarize_assessment(request) == ("No quiz completed", 0, 0)


def test_missing_answers_count_as_incorrect():
    request = ActionRequest(
        action="generate_personalized_roadmap",
        topic="Python",
        assessmentAnswers=[0],
        assessmentQuestions=[make_question("a"), make_question("b")],
    )
    _, correct, total = summarize_assessment(request)
    assert (correct, total) == (1, 2)


def test_chat_history_keeps_last_ten_in_order():
    history = [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"}
        for i in range(15)
    ]
    request = ActionRequest(
        action="mentor_chat", topic="Python", chatHistory=history, userMessage="next"
    )

    messages = build_chat_messages(request, history_limit=10)

    assert messages[0] == {"role": "system", "content": MENTOR_SYSTEM_PROMPT}
    assert [m["content"] for m in messages[1:-1]] == [f"message {i}" for i in range(5, 15)]
    assert messages[-1] == {"role": "user", "content": "next"}


def test_short_history_is_forwarded_whole():
    request = ActionRequest(
        action="mentor_chat",
        chatHistory=[{"role": "assistant", "content": "Hi!"}],
        userMessage="hello",
    )
    assert len(build_chat_messages(request)) == 3
