from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    UniqueConstraint,
)

from models.base_model import BaseModel, Base

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 4.0


class OpeningProgress(BaseModel, Base):
    """Spaced-repetition state for one node of one repertoire, per user."""
    __tablename__ = "opening_progress"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    repertoire_id = Column(String(36), nullable=False, index=True)
    node_id = Column(String(128), nullable=False)

    times_reviewed = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    interval = Column("interval_days", Integer, nullable=False, default=1)
    next_review = Column(DateTime(timezone=True), nullable=False)
    last_review = Column(DateTime(timezone=True), nullable=False)
    streak = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("user_id", "repertoire_id", "node_id", name="uq_progress_user_repertoire_node"),
        CheckConstraint("times_reviewed >= 0", name="ck_progress_times_reviewed_nonnegative"),
        CheckConstraint("times_correct >= 0", name="ck_progress_times_correct_nonnegative"),
        CheckConstraint("streak >= 0", name="ck_progress_streak_nonnegative"),
        CheckConstraint("interval_days >= 1", name="ck_progress_interval_positive"),
        CheckConstraint(
            f"ease_factor >= {MIN_EASE_FACTOR} AND ease_factor <= {MAX_EASE_FACTOR}",
            name="ck_progress_ease_factor_range",
        ),
        Index("ix_progress_user_next_review", "user_id", "next_review"),
    )
