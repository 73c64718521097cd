from marshmallow import Schema, fields

from models.schemas.common import RequestSchema, UtcDateTime, validate_uuid


class ReviewSchema(RequestSchema):
    was_correct = fields.Boolean(required=True, data_key="wasCorrect")


class DueQuerySchema(RequestSchema):
    repertoire_id = fields.String(load_default=None, data_key="repertoireId", validate=validate_uuid)


class ProgressOutSchema(Schema):
    id = fields.String()
    user_id = fields.String(data_key="userId")
    repertoire_id = fields.String(data_key="repertoireId")
    node_id = fields.String(data_key="nodeId")
    times_reviewed = fields.Integer(data_key="timesReviewed")
    times_correct = fields.Integer(data_key="timesCorrect")
    ease_factor = fields.Float(data_key="easeFactor")
    interval = fields.Integer()
    next_review = UtcDateTime(data_key="nextReview")
    last_review = UtcDateTime(data_key="lastReview")
    streak = fields.Integer()


class ProgressStatsSchema(Schema):
    total_positions = fields.Integer(data_key="totalPositions")
    positions_learned = fields.Integer(data_key="positionsLearned")
    average_ease_factor = fields.Float(data_key="averageEaseFactor")
    longest_streak = fields.Integer(data_key="longestStreak")
    positions_due_today = fields.Integer(data_key="positionsDueToday")
