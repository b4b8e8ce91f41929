"""Recover JSON from free-form model output and normalize structured results."""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Type
from urllib.parse import quote_plus

from pydantic import BaseModel, ValidationError

from bloom_host.core.exceptions import ParseError
from bloom_host.schemas.ai import (
    ARRAY_ACTIONS,
    Action,
    AssessmentQuestion,
    LearningResource,
    PersonalizedRoadmapNode,
    QuizQuestion,
    RoadmapNode,
)

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

_MISSING = object()

ITEM_MODELS: Dict[Action, Type[BaseModel]] = {
    Action.GENERATE_ASSESSMENT: AssessmentQuestion,
    Action.GENERATE_ROADMAP: RoadmapNode,
    Action.GENERATE_PERSONALIZED_ROADMAP: PersonalizedRoadmapNode,
    Action.GENERATE_QUIZ: QuizQuestion,
    Action.RECOMMEND_RESOURCES: LearningResource,
}


def extract_json_candidate(text: str) -> str:
    """
    Narrow raw model text down to the part most likely to be JSON.

    A fenced code block wins; otherwise the span from the first "[" to the
    last "]".
    """
    fenced = FENCE_PATTERN.search(text)
    if fenced:
        return fenced.group(1).strip()
    bracketed = ARRAY_PATTERN.search(text)
    if bracketed:
        return bracketed.group(0)
    return text.strip()


def try_parse_json(text: str) -> Any:
    """Return the recovered JSON value, or `_MISSING` when nothing parses."""
    candidate = extract_json_candidate(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(
            f"JSON parse failed: {e}. Content (truncated): {candidate[:200]}"
        )
        return _MISSING


def parse_action_result(action: Action, raw_text: str) -> Any:
    """
    Turn the model's raw reply into the value returned as `result`.

    Array actions raise `ParseError` when no array can be recovered; free-text
    actions fall back to the raw reply.
    """
    expects_array = action in ARRAY_ACTIONS
    parsed = try_parse_json(raw_text)

    if not expects_array:
        return raw_text if parsed is _MISSING else parsed

    if parsed is _MISSING:
        raise ParseError()
    if not isinstance(parsed, list):
        logger.error(f"{action.value} did not return an array: {type(parsed).__name__}")
        raise ParseError()
    return normalize_items(action, parsed)


def normalize_items(action: Action, items: List[Any]) -> List[Dict[str, Any]]:
    """Validate each item against its schema, dropping the ones that don't fit."""
    model = ITEM_MODELS[action]
    normalized = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Dropping non-object item {position} from {action.value}")
            continue
        item = dict(item)
        if action == Action.GENERATE_PERSONALIZED_ROADMAP:
            item["initial_mastery"] = coerce_initial_mastery(item.get("initial_mastery"))
        if action == Action.RECOMMEND_RESOURCES and not item.get("url"):
            item["url"] = search_url(item.get("title", ""), item.get("type"))
        try:
            value = model.model_validate(item)
        except ValidationError as e:
            logger.warning(
                f"Dropping invalid item {position} from {action.value}: {e.error_count()} error(s)"
            )
            continue
        normalized.append(value.model_dump())

    if items and not normalized:
        logger.error(f"No usable items in {action.value} response")
        raise ParseError()

    if action in (Action.GENERATE_ROADMAP, Action.GENERATE_PERSONALIZED_ROADMAP):
        for index, node in enumerate(normalized):
            node["order_index"] = index
    return normalized


def coerce_initial_mastery(value: Optional[Any]) -> str:
    """Generated roadmaps may only start at weak or learning."""
    if value == "learning" or value == "strong":
        return "learning"
    return "weak"


def search_url(title: str, resource_type: Optional[str]) -> str:
    query = quote_plus(title)
    if resource_type == "youtube":
        return f"https://www.youtube.com/results?search_query={query}"
    return f"https://www.google.com/search?q={query}"
