import os
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config.config import config
from app.errors import GatewayError
from app.integrations.temporal_client import WorkflowClient
from app.services.check_service import CheckService, case_settings_from_config
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name: str = None, workflow_client: WorkflowClient = None) -> Flask:
    """Create the gateway application.

    Without ``workflow_client`` a runtime client is created and connected
    here; the caller owns closing it (see ``run.py``).
    """
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app_config = config.get(config_name, config['default'])

    app = Flask(__name__)
    app.config.from_object(app_config)
    app.json.sort_keys = False

    if workflow_client is None:
        workflow_client = WorkflowClient()
        workflow_client.init()

    app.extensions['workflow_client'] = workflow_client
    app.extensions['check_service'] = CheckService(
        workflow_client,
        case_settings_from_config(app_config)
    )

    from app.routes import checks, todos
    app.register_blueprint(checks.bp, url_prefix='/checks')
    app.register_blueprint(todos.bp, url_prefix='/todos')

    register_error_handlers(app)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'}), 200

    return app


def register_error_handlers(app: Flask) -> None:

    @app.errorhandler(GatewayError)
    def handle_gateway_error(e):
        if e.status_code >= 500:
            logger.error(f"{e.message}: {e.__cause__}")
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unhandled error: {str(e)}")
        return jsonify({'error': 'Internal server error'}), 500
