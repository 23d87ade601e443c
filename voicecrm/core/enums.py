from enum import Enum, unique


@unique
class ActivityType(str, Enum):
    CALL = "call"
    MEETING = "meeting"
    EMAIL = "email"
    VOICE_NOTE = "voice-note"
    DEMO = "demo"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    FOLLOW_UP_CALL = "follow-up-call"
    SITE_VISIT = "site-visit"


@unique
class ActivityStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FOLLOW_UP = "follow-up"
    CANCELLED = "cancelled"


@unique
class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@unique
class Category(str, Enum):
    PROSPECTING = "prospecting"
    QUALIFICATION = "qualification"
    PRESENTATION = "presentation"
    NEGOTIATION = "negotiation"
    CLOSING = "closing"
    FOLLOW_UP = "follow-up"
    SUPPORT = "support"


@unique
class ReviewOutcome(str, Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@unique
class ClassificationState(str, Enum):
    UNCLASSIFIED = "unclassified"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@unique
class PerformanceLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"
    MASTER = "Master"
