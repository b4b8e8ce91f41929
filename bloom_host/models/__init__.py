from bloom_host.models.learning import LearningTopic, Mastery, RoadmapNodeRecord

__all__ = [
    "LearningTopic",
    "Mastery",
    "RoadmapNodeRecord",
]
