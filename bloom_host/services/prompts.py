"""
Prompt templates for every relay action.

Each structured action maps to a builder returning a (system, user) prompt
pair; mentor_chat builds a full message list instead.
"""

from typing import Callable, Dict, List, Tuple

from bloom_host.core.exceptions import UnknownActionError
from bloom_host.schemas.ai import Action, ActionRequest

PromptPair = Tuple[str, str]


ASSESSMENT_SYSTEM_PROMPT = """You are an expert educator writing a short assessment that measures how much a student already knows about a topic.

CRITICAL: Respond with valid JSON ONLY. No prose, no code, no markdown. Just the JSON array.

Write exactly 10 multiple-choice questions spanning beginner to advanced concepts, using this EXACT structure:
[
  {"question": "question text here", "options": ["Option A", "Option B", "Option C", "Option D"], "correct_answer": 0, "difficulty": "beginner", "concept": "concept being tested", "explanation": "Why the correct answer is right and which misconception the wrong ones reflect"}
]

RULES:
- correct_answer is the index (0-3) of the correct option
- difficulty is exactly one of: "beginner", "intermediate", "advanced"
- 4 beginner, 3 intermediate and 3 advanced questions
- every question tests a different concept or subtopic
- explanation is 1-2 sentences, shown when the student answers wrong
- NO text before or after the JSON array
- NO markdown code fences"""

PERSONALIZED_ROADMAP_SYSTEM_PROMPT = """You are an expert curriculum designer. Build a personalized learning roadmap from a student's pre-assessment quiz results.

CRITICAL: Respond with valid JSON ONLY. No prose, no markdown. Just the JSON array.

INITIAL MASTERY RULES:
1. The pre-quiz only reveals knowledge gaps; it can never confirm mastery
2. Use "weak" for topics whose related questions the student got WRONG
3. Use "learning" for topics whose related questions the student got RIGHT (some knowledge shown, practice still needed)
4. NEVER use "strong"; that level is earned later through topic quizzes
5. Order topics from foundational to advanced
6. Spend more of the roadmap on areas where the student struggled

Use this exact structure:
[
  {"title": "subtopic name", "description": "brief description", "order_index": 0, "initial_mastery": "weak"}
]
Include 6-10 subtopics. initial_mastery must be "weak" or "learning"."""

ROADMAP_SYSTEM_PROMPT = """You are an expert curriculum designer. Produce a learning roadmap for any topic as a JSON array of subtopics with this exact structure:
[
  {"title": "subtopic name", "description": "brief description of what this covers", "order_index": 0}
]
Include 6-10 subtopics ordered from foundational to advanced. Be specific and practical."""

QUIZ_SYSTEM_PROMPT = """You are an expert educator writing quiz questions. Write exactly 5 multiple-choice questions as a JSON array with this exact structure:
[
  {{"question": "question text", "options": ["A", "B", "C", "D"], "correct_answer": 0, "explanation": "why this is correct"}}
]
correct_answer is the index (0-3) of the correct option. Questions should be {difficulty} difficulty."""

EXPLAIN_SYSTEM_PROMPT = """You are a patient, encouraging tutor. Explain why a student's answer is wrong and teach the underlying concept clearly. Be concise but thorough."""

RESOURCES_SYSTEM_PROMPT = """You curate learning resources. Suggest specific YouTube videos and articles as a JSON array with this exact structure:
[
  {"title": "Specific video/article title suggestion", "description": "What you'll learn from this resource", "type": "youtube|article"}
]

RULES:
- type is either "youtube" or "article", nothing else
- "youtube": name specific videos that very likely exist (popular tutorials, well known channels)
- "article": name specific articles on sites such as Medium, freeCodeCamp, GeeksforGeeks or MDN
- 3-4 YouTube suggestions and 2-3 article suggestions
- say concretely what each resource covers
- beginner-friendly material first, then intermediate"""

MENTOR_SYSTEM_PROMPT = """You are BloomIQ, an AI learning mentor. You're friendly, encouraging and knowledgeable. Help students understand concepts, answer their questions and guide their learning journey. Use examples and analogies. When they struggle, break things down into simpler parts. Celebrate their progress!"""


def summarize_assessment(request: ActionRequest) -> Tuple[str, int, int]:
    """Return (per-question summary, correct count, question count)."""
    answers = request.assessment_answers
    questions = request.assessment_questions
    if not answers or not questions:
        return "No quiz completed", 0, len(questions or [])

    lines = []
    correct = 0
    for index, question in enumerate(questions):
        answer = answers[index] if index < len(answers) else None
        is_correct = answer == question.correct_answer
        if is_correct:
            correct += 1
        verdict = "CORRECT" if is_correct else "INCORRECT"
        lines.append(f'- "{question.concept}" ({question.difficulty}): {verdict}')
    return "\n".join(lines), correct, len(questions)


def _assessment(request: ActionRequest) -> PromptPair:
    user_prompt = (
        f'Write 10 assessment questions that test prior knowledge of "{request.topic}". '
        "Cover the key foundational concepts through to advanced topics, one concept per question, "
        "each with a brief explanation. Return ONLY the JSON array."
    )
    return ASSESSMENT_SYSTEM_PROMPT, user_prompt


def _personalized_roadmap(request: ActionRequest) -> PromptPair:
    summary, correct, total = summarize_assessment(request)
    user_prompt = f"""Create a personalized learning roadmap for: "{request.topic}"

QUIZ PERFORMANCE ({correct}/{total} correct):
{summary}

Using this quiz data, build a roadmap that:
1. Concentrates on the concepts answered WRONG (mark them "weak")
2. Marks the concepts answered RIGHT as "learning" (knowledge shown, still to be confirmed through practice)
3. NEVER marks anything "strong"; that is earned through topic quizzes later
4. Adds related foundational topics the student may be missing
5. Runs from basic to advanced

Return ONLY the JSON array."""
    return PERSONALIZED_ROADMAP_SYSTEM_PROMPT, user_prompt


def _roadmap(request: ActionRequest) -> PromptPair:
    user_prompt = (
        f'Create a comprehensive learning roadmap for: "{request.topic}". '
        "Start with the foundational concepts, then move to progressively more advanced topics."
    )
    return ROADMAP_SYSTEM_PROMPT, user_prompt


def _quiz(request: ActionRequest) -> PromptPair:
    difficulty = request.difficulty or "easy"
    subject = request.node_title or request.topic
    user_prompt = f'Create 5 {difficulty} multiple-choice questions about "{subject}".'
    return QUIZ_SYSTEM_PROMPT.format(difficulty=difficulty), user_prompt


def _explain(request: ActionRequest) -> PromptPair:
    user_prompt = (
        f'The student answered "{request.user_answer}" to this question: "{request.question}"\n'
        f'The correct answer was: "{request.correct_answer}"\n'
        "Explain why their answer was incorrect and help them understand the correct concept."
    )
    return EXPLAIN_SYSTEM_PROMPT, user_prompt


def _resources(request: ActionRequest) -> PromptPair:
    subject = request.node_title or request.topic
    user_prompt = (
        f'Recommend YouTube videos and articles for learning: "{subject}". '
        "Give specific suggestions that learners can search for."
    )
    return RESOURCES_SYSTEM_PROMPT, user_prompt


PROMPT_BUILDERS: Dict[Action, Callable[[ActionRequest], PromptPair]] = {
    Action.GENERATE_ASSESSMENT: _assessment,
    Action.GENERATE_PERSONALIZED_ROADMAP: _personalized_roadmap,
    Action.GENERATE_ROADMAP: _roadmap,
    Action.GENERATE_QUIZ: _quiz,
    Action.EXPLAIN_ANSWER: _explain,
    Action.RECOMMEND_RESOURCES: _resources,
}


def resolve_action(name: str) -> Action:
    try:
        return Action(name)
    except ValueError:
        raise UnknownActionError(name) from None


def build_prompts(request: ActionRequest) -> PromptPair:
    """Look up the prompt pair for a structured (non-streaming) action."""
    action = resolve_action(request.action)
    builder = PROMPT_BUILDERS.get(action)
    if builder is None:
        # mentor_chat streams and has no single prompt pair
        raise UnknownActionError(request.action)
    return builder(request)


def build_chat_messages(request: ActionRequest, history_limit: int = 10) -> List[Dict[str, str]]:
    """System prompt, the most recent history entries in order, then the new message."""
    history = request.chat_history[-history_limit:] if history_limit > 0 else []
    messages = [{"role": "system", "content": MENTOR_SYSTEM_PROMPT}]
    messages.extend({"role": m.role.value, "content": m.content} for m in history)
    messages.append({"role": "user", "content": request.user_message or ""})
    return messages
