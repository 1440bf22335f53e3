"""
Factory for creating service instances and the session controller.
"""

from stackideator.controller import SessionController
from stackideator.services.gemini_service import GeminiService
from stackideator.services.project_store import ProjectStore
from stackideator.sqlite3_client import SQLiteClient
from stackideator.utils.config import config


def create_ai_service(model_type="gemini"):
    """
    Factory to create the AI service for a model type.

    Args:
        model_type: Type of model to use (only "gemini" is supported)

    Returns:
        AIService instance
    """
    if model_type == "gemini":
        if not config.google_ai_api_key:
            raise ValueError("GOOGLE_AI_API_KEY is not set")
        return GeminiService(
            google_api_key=config.google_ai_api_key,
            model=config.google_ai_model,
            idea_temperature=config.idea_temperature,
            blueprint_temperature=config.blueprint_temperature,
            backend_stack=config.backend_stack,
            frontend_stack=config.frontend_stack,
        )
    raise ValueError(f"Unsupported model type: {model_type}")


def create_controller(model_type="gemini", store_path=None):
    """
    Wire up the AI service, durable store and controller.

    Args:
        model_type: Type of model to use
        store_path: sqlite file for saved projects; defaults to config.store_path

    Returns:
        SessionController instance; call close() on it when done
    """
    ai_service = create_ai_service(model_type)
    storage = SQLiteClient(store_path or config.store_path)
    store = ProjectStore(storage)
    return SessionController(ai_service=ai_service, store=store)
