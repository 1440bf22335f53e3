"""
Gemini service implementation for StackIdeator.
Handles structured generation and streaming chat using Google's Gemini models.
"""

from typing import AsyncIterator, List

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from stackideator.constants import (
    EXPECTED_CORE_FEATURES,
    ER_DIAGRAM_KEYWORD,
    IDEA_BATCH_SIZE,
    SEQUENCE_DIAGRAM_KEYWORD,
)
from stackideator.exceptions import GenerationFailure, StreamFailure
from stackideator.models.blueprint import Blueprint
from stackideator.models.chat import ChatMessage, Role
from stackideator.models.idea import Idea, IdeaDraft
from stackideator.services.ai_service import AIService
from stackideator.services.diagram_service import check_diagram
from stackideator.utils.logger import logger
from stackideator.utils.utils import load_prompt, monotonic_timestamp_ns

IDEA_LIST_SCHEMA = list[IdeaDraft]
_idea_list_adapter = TypeAdapter(IDEA_LIST_SCHEMA)

DIAGRAM_FIELDS = (
    ("erDiagram", ER_DIAGRAM_KEYWORD),
    ("sequenceDiagram", SEQUENCE_DIAGRAM_KEYWORD),
)


class GeminiService(AIService):
    """Gemini service implementation."""

    def __init__(
        self,
        google_api_key: str,
        model: str,
        idea_temperature: float = 0.7,
        blueprint_temperature: float = 0.5,
        backend_stack: str = "Spring Boot",
        frontend_stack: str = "React",
    ):
        """
        Initialize the Gemini service.

        Args:
            google_api_key: Google AI API key
            model: Gemini model to use
            idea_temperature: Sampling temperature for brainstorming ideas
            blueprint_temperature: Sampling temperature for blueprints; lower
                so architecture stays consistent between runs
            backend_stack: Backend framework the ideas target
            frontend_stack: Frontend framework the ideas target
        """
        self.google_api_key = google_api_key
        self.model = model
        self.idea_temperature = idea_temperature
        self.blueprint_temperature = blueprint_temperature
        self.backend_stack = backend_stack
        self.frontend_stack = frontend_stack
        self.gemini_client = genai.Client(api_key=google_api_key)

    async def _generate_json(self, prompt: str, schema, temperature: float) -> str:
        """Run one schema-constrained request and return the raw JSON text."""
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json",
            response_schema=schema,
        )
        try:
            response = await self.gemini_client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise GenerationFailure(f"backend request failed: {e}") from e

        text = response.text
        if not text or not text.strip():
            logger.error("Gemini returned an empty response")
            raise GenerationFailure("empty response")
        return text

    async def generate_ideas(self, niche: str) -> List[Idea]:
        """
        Generate application ideas for a niche.

        The prompt asks for a fixed number of ideas with exactly ten core
        features each; neither count is enforced, deviations are logged.

        Args:
            niche: Topic to brainstorm for

        Returns:
            Ideas with identifiers unique across batches
        """
        niche = niche.strip()
        if not niche:
            raise ValueError("niche must not be blank")

        logger.info(f"Generating ideas for niche: {niche}")
        prompt = load_prompt("idea_generator").substitute(
            count=IDEA_BATCH_SIZE,
            niche=niche,
            feature_count=EXPECTED_CORE_FEATURES,
            backend=self.backend_stack,
            frontend=self.frontend_stack,
        )
        text = await self._generate_json(prompt, IDEA_LIST_SCHEMA, self.idea_temperature)

        try:
            drafts = _idea_list_adapter.validate_json(text)
        except ValidationError as e:
            logger.error(f"Error parsing ideas response: {e}")
            raise GenerationFailure(f"malformed ideas payload: {e}") from e

        batch = monotonic_timestamp_ns()
        ideas = []
        for index, draft in enumerate(drafts):
            if len(draft.coreFeatures) != EXPECTED_CORE_FEATURES:
                logger.warning(
                    f"Idea '{draft.title}' has {len(draft.coreFeatures)} core features, "
                    f"expected {EXPECTED_CORE_FEATURES}"
                )
            ideas.append(Idea.from_draft(draft, f"idea-{batch}-{index}"))

        if len(ideas) != IDEA_BATCH_SIZE:
            logger.warning(f"Expected {IDEA_BATCH_SIZE} ideas, got {len(ideas)}")
        logger.info(f"Generated {len(ideas)} ideas")
        return ideas

    async def generate_blueprint(self, title: str, description: str) -> Blueprint:
        """
        Generate the technical blueprint for an idea.

        Diagrams that fail the syntax sanity check are dropped (set to an
        empty string) instead of failing the whole blueprint.

        Args:
            title: Idea title
            description: Idea description

        Returns:
            Validated blueprint
        """
        if not title.strip():
            raise ValueError("title must not be blank")

        logger.info(f"Generating blueprint for: {title}")
        prompt = load_prompt("blueprint_architect").substitute(
            title=title.strip(),
            description=description.strip(),
            backend=self.backend_stack,
            frontend=self.frontend_stack,
        )
        text = await self._generate_json(prompt, Blueprint, self.blueprint_temperature)

        try:
            blueprint = Blueprint.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Error parsing blueprint response: {e}")
            raise GenerationFailure(f"malformed blueprint payload: {e}") from e

        for field, keyword in DIAGRAM_FIELDS:
            source = getattr(blueprint, field)
            if not source:
                continue
            problems = check_diagram(source, keyword)
            if problems:
                logger.warning(f"Dropping {field} for '{title}': {'; '.join(problems)}")
                blueprint = blueprint.model_copy(update={field: ""})

        logger.info(f"Generated blueprint for: {title}")
        return blueprint

    @staticmethod
    def _to_content(message: ChatMessage) -> types.Content:
        role = "model" if message.role == Role.ASSISTANT else "user"
        return types.Content(role=role, parts=[types.Part(text=message.text)])

    async def stream_chat(
        self, message: str, history: List[ChatMessage], system_instruction: str
    ) -> AsyncIterator[str]:
        """
        Open a chat seeded with the project context and stream one reply.

        Args:
            message: The user's message
            history: Prior turns; messages without text are skipped
            system_instruction: Project context for the assistant

        Yields:
            Non-empty text fragments in arrival order
        """
        chat = self.gemini_client.aio.chats.create(
            model=self.model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
            history=[self._to_content(m) for m in history if m.text],
        )
        try:
            stream = await chat.send_message_stream(message)
            async for chunk in stream:
                text = chunk.text
                if text:
                    yield text
        except Exception as e:
            logger.error(f"Error streaming chat reply: {e}")
            raise StreamFailure(str(e)) from e
