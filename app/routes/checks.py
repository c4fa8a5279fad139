from flask import Blueprint, current_app, request, jsonify
from app.services.check_service import to_json
from app.utils.validators import validate_json_object

bp = Blueprint('checks', __name__)

def _service():
    return current_app.extensions['check_service']


def _json_body():
    """Decoded JSON object body, or an error response tuple"""
    data = request.get_json(silent=True)
    valid, error = validate_json_object(data)
    if not valid:
        return None, (jsonify({'error': error}), 400)
    return data, None


@bp.route('', methods=['GET'])
def list_checks():
    """List open background checks"""
    return jsonify(_service().list_checks()), 200


@bp.route('', methods=['POST'])
def create_check():
    """Start a background check"""
    data, error = _json_body()
    if error:
        return error

    result = _service().create_check(data)
    return jsonify(result), 201


@bp.route('/<email>', methods=['GET'])
def get_check(email):
    """Current status of a background check"""
    status = _service().get_status(email)
    return jsonify(to_json(status)), 200


@bp.route('/<email>/cancel', methods=['POST'])
def cancel_check(email):
    _service().cancel_check(email)
    return '', 204


@bp.route('/<email>/report', methods=['GET'])
def get_report(email):
    """Final report of a completed background check"""
    report = _service().get_report(email)
    return jsonify(to_json(report)), 200


# Standard base64 tokens may contain '/', hence the path converter
@bp.route('/<path:token>/consent', methods=['POST'])
def consent(token):
    """Candidate consent decision"""
    data, error = _json_body()
    if error:
        return error

    _service().submit_consent(token, data)
    return '', 204


@bp.route('/<path:token>/decline', methods=['POST'])
def decline(token):
    _service().decline(token)
    return '', 204


@bp.route('/<path:token>/search', methods=['POST'])
def save_search_result(token):
    """Researcher submits the result of one search"""
    data, error = _json_body()
    if error:
        return error

    _service().submit_search(token, data)
    return '', 204
