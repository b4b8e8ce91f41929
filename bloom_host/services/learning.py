"""
Service layer for learning topics, roadmaps and mastery tracking
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from bloom_host.models.learning import LearningTopic, Mastery, RoadmapNodeRecord
from bloom_host.schemas.ai import Action, ActionRequest, AssessmentQuestion
from bloom_host.schemas.learning import ProgressStats
from bloom_host.services.relay import RelayService

logger = logging.getLogger(__name__)

STRONG_THRESHOLD = 80
LEARNING_THRESHOLD = 50


def mastery_for_score(correct: int, total: int) -> Optional[Mastery]:
    """Mastery earned by a topic quiz, or None when the score changes nothing."""
    if total <= 0:
        return None
    percentage = correct / total * 100
    if percentage >= STRONG_THRESHOLD:
        return Mastery.STRONG
    if percentage >= LEARNING_THRESHOLD:
        return Mastery.LEARNING
    return None


def progress_stats(topic_id: str, nodes: Sequence[RoadmapNodeRecord]) -> ProgressStats:
    counts = {mastery: 0 for mastery in Mastery}
    for node in nodes:
        counts[node.mastery] += 1
    total = len(nodes)
    learning = counts[Mastery.LEARNING]
    strong = counts[Mastery.STRONG]
    progress = round((learning * 0.5 + strong) / total * 100) if total else 0
    return ProgressStats(
        topic_id=topic_id,
        weak=counts[Mastery.WEAK],
        learning=learning,
        strong=strong,
        total=total,
        progress=progress,
    )


class LearningService:
    """Topics and roadmap nodes for one user, backed by the relational store"""

    @staticmethod
    async def list_topics(db: AsyncSession, user_id: str) -> List[LearningTopic]:
        query = (
            select(LearningTopic)
            .where(LearningTopic.user_id == user_id)
            .order_by(desc(LearningTopic.created_at))
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_topic(
        db: AsyncSession, user_id: str, topic_id: str
    ) -> Optional[LearningTopic]:
        result = await db.execute(
            select(LearningTopic).where(
                LearningTopic.id == topic_id, LearningTopic.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_nodes(
        db: AsyncSession, user_id: str, topic_id: str
    ) -> List[RoadmapNodeRecord]:
        result = await db.execute(
            select(RoadmapNodeRecord)
            .where(
                RoadmapNodeRecord.topic_id == topic_id,
                RoadmapNodeRecord.user_id == user_id,
            )
            .order_by(RoadmapNodeRecord.order_index)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_node(
        db: AsyncSession, user_id: str, node_id: str
    ) -> Optional[RoadmapNodeRecord]:
        result = await db.execute(
            select(RoadmapNodeRecord).where(
                RoadmapNodeRecord.id == node_id, RoadmapNodeRecord.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def start_assessment(relay: RelayService, topic: str) -> List[Dict[str, Any]]:
        """Generate the pre-assessment; nothing is stored until it is completed."""
        return await relay.run(
            ActionRequest(action=Action.GENERATE_ASSESSMENT.value, topic=topic)
        )

    @staticmethod
    async def create_topic(
        db: AsyncSession, user_id: str, topic: str, relay: RelayService
    ) -> LearningTopic:
        """Create a topic with a generic roadmap; every node starts weak."""
        roadmap = await relay.run(
            ActionRequest(action=Action.GENERATE_ROADMAP.value, topic=topic)
        )
        return await LearningService._store_topic(
            db, user_id, topic, roadmap, lambda node: Mastery.WEAK
        )

    @staticmethod
    async def complete_assessment(
        db: AsyncSession,
        user_id: str,
        topic: str,
        answers: List[int],
        questions: List[AssessmentQuestion],
        relay: RelayService,
    ) -> LearningTopic:
        """Create a topic whose roadmap and initial mastery follow the assessment answers."""
        roadmap = await relay.run(
            ActionRequest(
                action=Action.GENERATE_PERSONALIZED_ROADMAP.value,
                topic=topic,
                assessment_answers=answers,
                assessment_questions=questions,
            )
        )
        return await LearningService._store_topic(
            db,
            user_id,
            topic,
            roadmap,
            lambda node: Mastery(node.get("initial_mastery") or Mastery.WEAK.value),
        )

    @staticmethod
    async def _store_topic(db, user_id, topic, roadmap, initial_mastery) -> LearningTopic:
        record = LearningTopic(user_id=user_id, topic=topic)
        db.add(record)
        await db.flush()

        for index, node in enumerate(roadmap):
            db.add(
                RoadmapNodeRecord(
                    topic_id=record.id,
                    user_id=user_id,
                    title=node["title"],
                    description=node.get("description"),
                    mastery=initial_mastery(node),
                    order_index=index,
                )
            )
        await db.flush()
        await db.refresh(record)
        logger.info(f"Created topic {record.id} with {len(roadmap)} roadmap nodes")
        return record

    @staticmethod
    async def update_mastery(
        db: AsyncSession, user_id: str, node_id: str, mastery: Mastery
    ) -> Optional[RoadmapNodeRecord]:
        node = await LearningService.get_node(db, user_id, node_id)
        if node is None:
            return None
        node.mastery = mastery
        await db.flush()
        await db.refresh(node)
        return node

    @staticmethod
    async def apply_quiz_result(
        db: AsyncSession, user_id: str, node_id: str, correct: int, total: int
    ) -> Optional[RoadmapNodeRecord]:
        node = await LearningService.get_node(db, user_id, node_id)
        if node is None:
            return None
        earned = mastery_for_score(min(correct, total), total)
        if earned is not None:
            logger.info(f"Node {node_id}: {correct}/{total} -> {earned.value}")
            node.mastery = earned
            await db.flush()
            await db.refresh(node)
        return node
