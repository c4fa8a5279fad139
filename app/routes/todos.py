from flask import Blueprint, current_app, jsonify
from app.services.check_service import to_json

bp = Blueprint('todos', __name__)


@bp.route('/candidate/<email>', methods=['GET'])
def candidate_todos(email):
    """Outstanding consent request for a candidate"""
    todos = current_app.extensions['check_service'].candidate_todos(email)
    return jsonify([to_json(todo) for todo in todos]), 200


@bp.route('/researcher/<email>', methods=['GET'])
def researcher_todos(email):
    """Outstanding searches for a candidate's case"""
    todos = current_app.extensions['check_service'].researcher_todos(email)
    return jsonify([to_json(todo) for todo in todos]), 200
