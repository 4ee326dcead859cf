import os
import logging
import sys
import datetime
from typing import Dict, Optional, Tuple

from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from dotenv import load_dotenv
from pydantic import ValidationError

# WSGIMiddleware for Flask (WSGI) to Uvicorn (ASGI) compatibility
from uvicorn.middleware.wsgi import WSGIMiddleware

from gemini_client import GeminiGateway
from numerology import build_numerology_profile, calculate_compatibility, NumerologyProfile
from prompts import build_user_context
from schemas import ChatMessage, ChatUserProfile, SessionContext

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('numerology_app.log'),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Raised for missing or malformed request fields."""


# --- Request Helpers ---
def _require(data: Optional[Dict], *fields: str) -> Dict:
    if not data:
        raise InvalidRequest("No data provided.")
    if not isinstance(data, dict):
        raise InvalidRequest("Expected a JSON object.")
    missing = [field for field in fields if not data.get(field)]
    if missing:
        raise InvalidRequest(f"Missing {', '.join(missing)}.")
    return data


def _profile_from(data: Optional[Dict], today: Optional[datetime.date] = None) -> NumerologyProfile:
    data = _require(data, 'full_name', 'birth_date')
    if not isinstance(data['full_name'], str):
        raise InvalidRequest("full_name must be a string.")
    try:
        return build_numerology_profile(data['full_name'], data['birth_date'], today)
    except ValueError as e:
        raise InvalidRequest(str(e))


def _chat_inputs(data: Dict) -> Tuple[str, list]:
    data = _require(data, 'message')
    try:
        history = [ChatMessage.model_validate(msg) for msg in data.get('history') or []]
    except ValidationError as e:
        raise InvalidRequest(f"Invalid chat history: {e}")
    return data['message'], history


def _chat_profile_from(data: Optional[Dict]) -> ChatUserProfile:
    data = _require(data, 'full_name', 'birth_date')
    try:
        return ChatUserProfile.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(f"Invalid chat profile: {e}")


def create_app(gateway: Optional[GeminiGateway] = None) -> Flask:
    app = Flask(__name__)
    logger.info("Flask app instance created.")
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'numerology-secret-key-2024')

    gateway = gateway or GeminiGateway.from_env()

    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=["200 per day", "50 per hour"],
        storage_uri=os.getenv('REDIS_URL', 'memory://')
    )

    # CORS Configuration
    CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    logger.info("CORS configured for the Flask app.")

    @app.errorhandler(InvalidRequest)
    def invalid_input(error):
        logger.error(f"Invalid request: {error}")
        return jsonify({"error": str(error)}), 400

    # --- Routes ---
    @app.route('/')
    def home():
        """Basic home route for health check."""
        return "Hello from Flask!"

    @app.route('/profile', methods=['POST'])
    def profile_endpoint():
        profile = _profile_from(request.get_json(silent=True))
        return jsonify(profile.to_dict()), 200

    @app.route('/personality_insights', methods=['POST'])
    @limiter.limit("10 per minute")
    async def personality_insights_endpoint():
        profile = _profile_from(request.get_json(silent=True))
        try:
            insights = await gateway.generate_personality_insights(profile)
        except Exception as e:
            logger.error(f"Error generating personality insights: {e}", exc_info=True)
            return jsonify({"error": "Failed to generate personality insights. Please try again later."}), 502
        return jsonify({"profile": profile.to_dict(), "insights": insights.model_dump()}), 200

    @app.route('/compatibility_insights', methods=['POST'])
    @limiter.limit("10 per minute")
    async def compatibility_insights_endpoint():
        data = _require(request.get_json(silent=True), 'person1', 'person2')
        person1 = _profile_from(data['person1'])
        person2 = _profile_from(data['person2'])

        if data.get('score') is not None and data.get('level'):
            try:
                score, level = int(data['score']), str(data['level'])
            except (TypeError, ValueError):
                raise InvalidRequest("score must be a number.")
        else:
            score, level = calculate_compatibility(person1, person2)

        # Never fails once the profiles are valid.
        insights = await gateway.generate_compatibility_insights(person1, person2, score, level)
        return jsonify({
            "score": score,
            "level": level,
            "person1": person1.to_dict(),
            "person2": person2.to_dict(),
            "insights": insights.model_dump(),
        }), 200

    @app.route('/daily_energy', methods=['POST'])
    @limiter.limit("10 per minute")
    async def daily_energy_endpoint():
        today = datetime.date.today()
        profile = _profile_from(request.get_json(silent=True), today)
        today_date = today.strftime('%B %d, %Y')
        try:
            energy = await gateway.generate_daily_energy(profile, profile.personal_day, profile.universal_day, today_date)
        except Exception as e:
            logger.error(f"Error generating daily energy: {e}", exc_info=True)
            return jsonify({"error": "Failed to generate daily energy. Please try again later."}), 502
        return jsonify({
            "date": today.isoformat(),
            "personal_day": profile.personal_day,
            "universal_day": profile.universal_day,
            "energy": energy.model_dump(),
        }), 200

    @app.route('/chat/session', methods=['POST'])
    def chat_session_endpoint():
        chat_profile = _chat_profile_from(request.get_json(silent=True))
        context = build_user_context(chat_profile)
        return jsonify(context.model_dump()), 200

    @app.route('/chat', methods=['POST'])
    @limiter.limit("30 per minute")
    async def chat_endpoint():
        data = request.get_json(silent=True)
        message, history = _chat_inputs(data)

        context, chat_profile = None, None
        if data.get('context'):
            try:
                context = SessionContext.model_validate(data['context'])
            except ValidationError as e:
                raise InvalidRequest(f"Invalid session context: {e}")
        else:
            chat_profile = _chat_profile_from(data.get('profile'))

        try:
            if context is not None:
                response = await gateway.generate_chat_response_with_context(message, context, history)
            else:
                response = await gateway.generate_chat_response(message, chat_profile, history)
        except Exception as e:
            logger.error(f"Error generating chat response: {e}", exc_info=True)
            return jsonify({"error": "Failed to generate a chat response. Please try again later."}), 502
        return jsonify(response.model_dump()), 200

    # Error handlers
    @app.errorhandler(400)
    def bad_request(error):
        logger.error(f"Bad Request: {error}")
        return jsonify({"error": "Bad Request: " + str(error.description)}), 400

    @app.errorhandler(404)
    def not_found(error):
        logger.error(f"Not Found: {error}")
        return jsonify({"error": "Not Found: The requested URL was not found on the server."}), 404

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal Server Error: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error: The server encountered an internal error and was unable to complete your request. Please try again later."}), 500

    return app


app = create_app()

# This is the WSGI application that Uvicorn will serve.
asgi_app = WSGIMiddleware(app)

if __name__ == '__main__':
    # uvicorn app:asgi_app --host 0.0.0.0 --port 8000
    app.run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
