import logging

from flask import Flask, jsonify
from flask_cors import CORS

from .config.environment import get_env


def _cors_origins():
    """Configured origins plus any Vercel preview deployment."""
    origins = [o.strip() for o in get_env("CORS_ORIGINS").split(",") if o.strip()]
    origins.append(r"https://.*\.vercel\.app")
    return origins


def create_app():
    APPLICATION_ENV = get_env("APPLICATION_ENV", "development")

    # Initialize Flask app
    app = Flask(__name__)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger = logging.getLogger(__name__)

    app.config["APPLICATION_ENV"] = APPLICATION_ENV
    app.config["TESTING"] = APPLICATION_ENV == "test"

    # Enable CORS for API endpoints
    CORS(
        app,
        resources={r"/api/*": {"origins": _cors_origins()}},
        supports_credentials=True,
        methods=["GET", "POST"],
    )

    # Health check endpoint
    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            'status': 'healthy',
            'service': get_env("APP_NAME"),
            'environment': APPLICATION_ENV
        }), 200

    # Root endpoint
    @app.route('/', methods=['GET'])
    def home():
        return jsonify({
            'message': 'JoinUs Chat Server is running',
            'service': get_env("APP_NAME"),
            'version': '1.0.0',
            'environment': APPLICATION_ENV
        }), 200

    # Status endpoint
    @app.route('/status', methods=['GET'])
    def status():
        return jsonify({
            'message': 'JoinUs Chat Server Status: Running!',
            'status': 'operational',
            'environment': APPLICATION_ENV
        }), 200

    # Register Meetings API blueprint (HTTP + WebSocket)
    from .meetings.routes import meetings_bp

    app.register_blueprint(meetings_bp, url_prefix='/api/v1')
    logger.info("Successfully registered Meetings blueprint")

    return app
