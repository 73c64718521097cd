"""
Opening-training progress for the current user. Every route needs a bearer token.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort
from marshmallow import ValidationError

from chess_api.deps import get_services
from models.schemas.common import validate_uuid
from models.schemas.progress import DueQuerySchema, ProgressOutSchema, ProgressStatsSchema, ReviewSchema
from utils.decorators import jwt_required

bp = Blueprint("progress", __name__)

review_schema = ReviewSchema()
due_query_schema = DueQuerySchema()
progress_out_schema = ProgressOutSchema()
progress_list_out_schema = ProgressOutSchema(many=True)
progress_stats_schema = ProgressStatsSchema()


def _check_repertoire_id(repertoire_id: str) -> None:
    try:
        validate_uuid(repertoire_id)
    except ValidationError:
        abort(400, description="Invalid repertoire ID format")


def _user_id() -> str:
    return g.current_user["user_id"]


@bp.get("/stats")
@jwt_required()
def stats():
    """
    Aggregate training statistics for the current user
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    data = get_services().progress.get_user_stats(_user_id())
    return jsonify({"data": progress_stats_schema.dump(data)}), 200


@bp.get("/due")
@jwt_required()
def due():
    """
    Positions due for review, oldest first
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    parameters:
      - in: query
        name: repertoireId
        type: string
        required: false
    responses:
      200: { description: OK }
    """
    query = due_query_schema.load(request.args)
    rows = get_services().progress.get_due_positions(_user_id(), query["repertoire_id"])
    return jsonify({"data": progress_list_out_schema.dump(rows), "meta": {"total": len(rows)}}), 200


@bp.get("/<repertoire_id>")
@jwt_required()
def repertoire_progress(repertoire_id: str):
    """
    All progress records of one repertoire, most recently reviewed first
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    parameters:
      - in: path
        name: repertoire_id
        type: string
        required: true
    responses:
      200: { description: OK }
      400: { description: Invalid repertoire id }
    """
    _check_repertoire_id(repertoire_id)
    rows = get_services().progress.get_repertoire_progress(_user_id(), repertoire_id)
    return jsonify({"data": progress_list_out_schema.dump(rows), "meta": {"total": len(rows)}}), 200


@bp.get("/<repertoire_id>/<node_id>")
@jwt_required()
def node_progress(repertoire_id: str, node_id: str):
    """
    Progress of one position
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      404: { description: Never reviewed }
    """
    _check_repertoire_id(repertoire_id)
    record = get_services().progress.get_progress(_user_id(), repertoire_id, node_id)
    if record is None:
        abort(404, description="No progress recorded for this position")
    return jsonify({"data": progress_out_schema.dump(record)}), 200


@bp.post("/<repertoire_id>/<node_id>")
@jwt_required()
def record_review(repertoire_id: str, node_id: str):
    """
    Record one review of a position and reschedule it
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            wasCorrect: { type: boolean }
    responses:
      200: { description: Updated progress }
      400: { description: Validation error }
    """
    _check_repertoire_id(repertoire_id)
    payload = review_schema.load(request.get_json(silent=True) or {})
    record = get_services().progress.record_review(_user_id(), repertoire_id, node_id, payload["was_correct"])
    return jsonify({"data": progress_out_schema.dump(record)}), 200


@bp.post("/<repertoire_id>/<node_id>/reset")
@jwt_required()
def reset(repertoire_id: str, node_id: str):
    """
    Reset a position to its initial schedule
    ---
    tags:
      - Progress
    security:
      - Bearer: []
    responses:
      200: { description: Reset progress }
    """
    _check_repertoire_id(repertoire_id)
    record = get_services().progress.reset_progress(_user_id(), repertoire_id, node_id)
    return jsonify({"data": progress_out_schema.dump(record)}), 200
