"""
FastAPI router for topics, roadmap nodes and mastery progress
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bloom_host.core.exceptions import RelayError
from bloom_host.database.db import get_db
from bloom_host.schemas.ai import Action, ActionRequest
from bloom_host.schemas.learning import (
    AssessmentComplete,
    MasteryUpdate,
    ProgressStats,
    QuizRequest,
    QuizResult,
    RoadmapNodeResponse,
    TopicCreate,
    TopicResponse,
    TopicWithNodesResponse,
)
from bloom_host.services.auths import CurrentUser, get_current_user
from bloom_host.services.learning import LearningService, progress_stats
from bloom_host.services.relay import RelayService, get_relay

logger = logging.getLogger(__name__)

learning_router = APIRouter(tags=["learning"])


def relay_error_response(e: RelayError) -> JSONResponse:
    logger.error(f"❌ AI generation failed ({e.status_code}): {e.message}")
    return JSONResponse({"error": e.message}, status_code=e.status_code)


async def _topic_or_404(db: AsyncSession, user: CurrentUser, topic_id: str):
    topic = await LearningService.get_topic(db, user.id, topic_id)
    if topic is None:
        raise HTTPException(status_code=404, detail="Topic not found")
    return topic


async def _with_nodes(db: AsyncSession, user: CurrentUser, topic) -> TopicWithNodesResponse:
    nodes = await LearningService.get_nodes(db, user.id, topic.id)
    return TopicWithNodesResponse(
        **TopicResponse.model_validate(topic).model_dump(),
        nodes=[RoadmapNodeResponse.model_validate(n) for n in nodes],
    )


# ============= Topics =============


@learning_router.get("/topics", response_model=List[TopicResponse])
async def list_topics(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Topics of the current user, newest first."""
    topics = await LearningService.list_topics(db, current_user.id)
    logger.info(f"📚 Found {len(topics)} topics for user {current_user.id}")
    return topics


@learning_router.post("/topics", response_model=TopicWithNodesResponse)
async def create_topic(
    data: TopicCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: RelayService = Depends(get_relay),
):
    """Create a topic with a generic roadmap (no assessment)."""
    try:
        topic = await LearningService.create_topic(db, current_user.id, data.topic, relay)
    except RelayError as e:
        return relay_error_response(e)
    return await _with_nodes(db, current_user, topic)


@learning_router.post("/topics/assessment")
async def start_assessment(
    data: TopicCreate,
    current_user: CurrentUser = Depends(get_current_user),
    relay: RelayService = Depends(get_relay),
):
    """Generate the knowledge assessment for a topic the user wants to start."""
    logger.info(f"📝 Assessment requested by {current_user.id}: {data.topic}")
    try:
        questions = await LearningService.start_assessment(relay, data.topic)
    except RelayError as e:
        return relay_error_response(e)
    return {"topic": data.topic, "questions": questions}


@learning_router.post("/topics/assessment/complete", response_model=TopicWithNodesResponse)
async def complete_assessment(
    data: AssessmentComplete,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: RelayService = Depends(get_relay),
):
    """Create the topic and its personalized roadmap from the assessment answers."""
    try:
        topic = await LearningService.complete_assessment(
            db, current_user.id, data.topic, data.answers, data.questions, relay
        )
    except RelayError as e:
        return relay_error_response(e)
    return await _with_nodes(db, current_user, topic)


@learning_router.get("/topics/{topic_id}/nodes", response_model=List[RoadmapNodeResponse])
async def get_topic_nodes(
    topic_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _topic_or_404(db, current_user, topic_id)
    return await LearningService.get_nodes(db, current_user.id, topic_id)


@learning_router.get("/topics/{topic_id}/progress", response_model=ProgressStats)
async def get_topic_progress(
    topic_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _topic_or_404(db, current_user, topic_id)
    nodes = await LearningService.get_nodes(db, current_user.id, topic_id)
    return progress_stats(topic_id, nodes)


@learning_router.get("/topics/{topic_id}/resources")
async def get_topic_resources(
    topic_id: str,
    node_title: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: RelayService = Depends(get_relay),
):
    topic = await _topic_or_404(db, current_user, topic_id)
    try:
        resources = await relay.run(
            ActionRequest(
                action=Action.RECOMMEND_RESOURCES.value,
                topic=topic.topic,
                node_title=node_title,
            )
        )
    except RelayError as e:
        return relay_error_response(e)
    return {"resources": resources}


@learning_router.post("/topics/{topic_id}/quiz")
async def generate_topic_quiz(
    topic_id: str,
    data: QuizRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: RelayService = Depends(get_relay),
):
    topic = await _topic_or_404(db, current_user, topic_id)
    try:
        questions = await relay.run(
            ActionRequest(
                action=Action.GENERATE_QUIZ.value,
                topic=topic.topic,
                node_title=data.node_title,
                difficulty=data.difficulty,
            )
        )
    except RelayError as e:
        return relay_error_response(e)
    return {"questions": questions}


# ============= Roadmap Nodes =============


@learning_router.patch("/nodes/{node_id}/mastery", response_model=RoadmapNodeResponse)
async def update_node_mastery(
    node_id: str,
    data: MasteryUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    node = await LearningService.update_mastery(db, current_user.id, node_id, data.mastery)
    if node is None:
        raise HTTPException(status_code=404, detail="Roadmap node not found")
    logger.info(f"✅ Node {node_id} mastery set to {data.mastery.value}")
    return node


@learning_router.post("/nodes/{node_id}/quiz-result", response_model=RoadmapNodeResponse)
async def record_quiz_result(
    node_id: str,
    data: QuizResult,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply a finished topic quiz to the node's mastery."""
    node = await LearningService.apply_quiz_result(
        db, current_user.id, node_id, data.correct, data.total
    )
    if node is None:
        raise HTTPException(status_code=404, detail="Roadmap node not found")
    return node
