import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Gateway
    LISTEN_ADDR = os.environ.get('LISTEN_ADDR', 'localhost:8081')
    APP_URL = os.environ.get('APP_URL', 'http://localhost:8081')
    SHUTDOWN_GRACE_SECONDS = float(os.environ.get('SHUTDOWN_GRACE_SECONDS', '10'))

    # Workflow runtime
    TEMPORAL_ADDRESS = os.environ.get('TEMPORAL_ADDRESS', 'localhost:7233')
    TEMPORAL_NAMESPACE = os.environ.get('TEMPORAL_NAMESPACE', 'default')
    TASK_QUEUE = os.environ.get('TASK_QUEUE', 'background-checks-main')
    TEMPORAL_RPC_TIMEOUT_SECONDS = float(os.environ.get('TEMPORAL_RPC_TIMEOUT_SECONDS', '10'))

    # Case deadlines and retries
    CONSENT_TIMEOUT_DAYS = float(os.environ.get('CONSENT_TIMEOUT_DAYS', '7'))
    SEARCH_TIMEOUT_DAYS = float(os.environ.get('SEARCH_TIMEOUT_DAYS', '30'))
    ACTIVITY_MAX_ATTEMPTS = int(os.environ.get('ACTIVITY_MAX_ATTEMPTS', '5'))
    ACTIVITY_INITIAL_RETRY_SECONDS = float(os.environ.get('ACTIVITY_INITIAL_RETRY_SECONDS', '1'))
    ACTIVITY_MAX_RETRY_SECONDS = float(os.environ.get('ACTIVITY_MAX_RETRY_SECONDS', '300'))

    # Notifications
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    SENDGRID_FROM_EMAIL = os.environ.get('SENDGRID_FROM_EMAIL', 'noreply@example.com')
    RESEARCHER_EMAIL = os.environ.get('RESEARCHER_EMAIL', 'research@example.com')

    # Report storage
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///background_checks.db'

    # Worker
    WORKER_ACTIVITY_THREADS = int(os.environ.get('WORKER_ACTIVITY_THREADS', '10'))

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/background_checks.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite:///test_background_checks.db'


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
