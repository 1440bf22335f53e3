"""
Streaming chat session grounded in one idea and its blueprint.

Each turn runs as an asyncio task that pumps reply fragments from the AI
service into a queue. The placeholder assistant message is rewritten with
the running concatenation as fragments arrive, and the caller reads the
fragments through a single-consumer TurnStream.
"""

import asyncio
from typing import List, Optional

from stackideator.constants import CHAT_ERROR_TEXT, SCHEMA_EXCERPT_CHARS, WELCOME_MESSAGE_ID
from stackideator.exceptions import TurnInFlightError
from stackideator.models.blueprint import Blueprint
from stackideator.models.chat import ChatMessage, Role
from stackideator.models.idea import Idea
from stackideator.services.ai_service import AIService
from stackideator.utils.config import config
from stackideator.utils.logger import logger
from stackideator.utils.utils import load_prompt, timestamp_id

_END = object()


def build_system_instruction(idea: Idea, blueprint: Blueprint, backend: str, frontend: str) -> str:
    """Project context the assistant is seeded with."""
    return load_prompt("chat_system").substitute(
        title=idea.title,
        description=idea.description,
        backend=backend,
        frontend=frontend,
        highlights=", ".join(idea.techStackHighlights),
        modules=", ".join(blueprint.backendModules),
        components=", ".join(blueprint.frontendComponents),
        schema_excerpt=blueprint.databaseSchema[:SCHEMA_EXCERPT_CHARS],
    )


def welcome_message(idea: Idea, backend: str, frontend: str) -> ChatMessage:
    text = load_prompt("chat_welcome").substitute(title=idea.title, backend=backend, frontend=frontend)
    return ChatMessage(id=WELCOME_MESSAGE_ID, role=Role.ASSISTANT, text=text.strip())


class TurnStream:
    """
    Single-consumer view over the reply fragments of one chat turn.

    Iterating yields fragments in arrival order and ends when the turn
    completes, fails or is cancelled. It can be iterated only once. The
    turn runs whether or not anyone iterates.
    """

    def __init__(self, message: ChatMessage):
        self.message = message
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._consumed = False
        self._finished = False

    def _publish(self, fragment: str):
        self._queue.put_nowait(fragment)

    def _finish(self):
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    @property
    def done(self) -> bool:
        return self._finished

    def __aiter__(self):
        if self._consumed:
            raise RuntimeError("a turn stream can only be consumed once")
        self._consumed = True
        return self._fragments()

    async def _fragments(self):
        while True:
            fragment = await self._queue.get()
            if fragment is _END:
                return
            yield fragment

    def cancel(self):
        """Stop consuming the backend stream; text received so far is kept."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> ChatMessage:
        """Wait for the turn to finish and return the final assistant message."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.message


class ChatSession:
    """Conversation with the architect assistant about one blueprint."""

    def __init__(
        self,
        ai_service: AIService,
        idea: Idea,
        blueprint: Blueprint,
        backend_stack: Optional[str] = None,
        frontend_stack: Optional[str] = None,
    ):
        """
        Initialize the session with a single greeting message.

        Args:
            ai_service: AI service used to stream replies
            idea: The idea the session is about
            blueprint: The idea's blueprint
            backend_stack: Backend framework named in the context
            frontend_stack: Frontend framework named in the context
        """
        backend = backend_stack or config.backend_stack
        frontend = frontend_stack or config.frontend_stack
        self.ai_service = ai_service
        self.idea_id = idea.id
        self.system_instruction = build_system_instruction(idea, blueprint, backend, frontend)
        self.messages: List[ChatMessage] = [welcome_message(idea, backend, frontend)]
        self._active: Optional[TurnStream] = None

    @property
    def is_streaming(self) -> bool:
        return self._active is not None

    def history(self) -> List[ChatMessage]:
        """Messages to send to the backend: everything except the greeting."""
        return [m.model_copy() for m in self.messages if m.id != WELCOME_MESSAGE_ID]

    def send_turn(self, text: str) -> TurnStream:
        """
        Start a turn: append the user message and an empty assistant
        placeholder, then stream the reply into the placeholder.

        Must be called from a running event loop.

        Args:
            text: The user's message

        Returns:
            TurnStream over the reply fragments

        Raises:
            ValueError: text is blank
            TurnInFlightError: another turn of this session is still streaming
            RuntimeError: no event loop is running; the session is left untouched
        """
        if not text or not text.strip():
            raise ValueError("message must not be blank")
        if self._active is not None:
            raise TurnInFlightError("a reply is still streaming for this session")
        loop = asyncio.get_running_loop()

        history = self.history()
        self.messages.append(ChatMessage(id=timestamp_id("msg"), role=Role.USER, text=text))
        reply = ChatMessage(id=timestamp_id("msg"), role=Role.ASSISTANT, text="")
        self.messages.append(reply)

        stream = TurnStream(reply)
        self._active = stream
        task = loop.create_task(self._pump(text, history, reply, stream))
        stream._task = task
        task.add_done_callback(lambda _: self._turn_finished(stream))
        return stream

    async def _pump(self, text: str, history: List[ChatMessage], reply: ChatMessage, stream: TurnStream):
        accumulated = ""
        try:
            async for fragment in self.ai_service.stream_chat(text, history, self.system_instruction):
                if not fragment:
                    continue
                accumulated += fragment
                reply.text = accumulated
                stream._publish(fragment)
        except asyncio.CancelledError:
            logger.info(f"Chat turn cancelled after {len(accumulated)} characters")
            raise
        except Exception as e:
            logger.error(f"Chat turn failed: {e}")
            reply.text = CHAT_ERROR_TEXT
            reply.failed = True

    def _turn_finished(self, stream: TurnStream):
        if self._active is stream:
            self._active = None
        stream._finish()

    def close(self):
        """Cancel any in-flight turn; the session is being discarded."""
        if self._active is not None:
            self._active.cancel()
