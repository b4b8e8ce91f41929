"""
SQLAlchemy models for learning topics and their roadmap nodes
"""

import enum
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from bloom_host.database.db import Base


class Mastery(str, enum.Enum):
    """Proficiency label attached to a roadmap node."""

    WEAK = "weak"
    LEARNING = "learning"
    STRONG = "strong"


def _new_id() -> str:
    return str(uuid.uuid4())


class LearningTopic(Base):
    """A subject the user chose to study."""

    __tablename__ = "learning_topics"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(100), index=True, nullable=False)
    topic = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    nodes = relationship(
        "RoadmapNodeRecord",
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="RoadmapNodeRecord.order_index",
    )

    def __repr__(self):
        return f"<LearningTopic {self.user_id} - {self.topic}>"


class RoadmapNodeRecord(Base):
    """One subtopic of a topic's roadmap, with the user's current mastery."""

    __tablename__ = "roadmap_nodes"

    id = Column(String(36), primary_key=True, default=_new_id)
    topic_id = Column(
        String(36),
        ForeignKey("learning_topics.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id = Column(String(100), index=True, nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    mastery = Column(SQLEnum(Mastery), default=Mastery.WEAK, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    topic = relationship("LearningTopic", back_populates="nodes")

    def __repr__(self):
        return f"<RoadmapNodeRecord {self.title} ({self.mastery.value})>"
