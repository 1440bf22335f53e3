"""
Tests for the streaming chat session.
"""

import asyncio
import pytest

from stackideator.constants import CHAT_ERROR_TEXT, SCHEMA_EXCERPT_CHARS, WELCOME_MESSAGE_ID
from stackideator.exceptions import StreamFailure, TurnInFlightError
from stackideator.models.blueprint import ApiEndpoint, Blueprint, Estimation
from stackideator.models.chat import Role
from stackideator.models.idea import Difficulty, Idea
from stackideator.services.chat_service import ChatSession


class FakeChatService:
    """AI service stand-in whose replies are scripted per turn."""

    def __init__(self, replies, session_ref=None, gate=None):
        self.replies = list(replies)
        self.calls = []
        self.session_ref = session_ref
        self.gate = gate
        self.snapshots = []

    async def stream_chat(self, message, history, system_instruction):
        self.calls.append((message, history, system_instruction))
        reply = self.replies.pop(0)
        for fragment in reply:
            if isinstance(fragment, Exception):
                raise fragment
            if self.gate is not None:
                await self.gate.wait()
            yield fragment
            await asyncio.sleep(0)
            if self.session_ref:
                self.snapshots.append(self.session_ref[0].messages[-1].text)


@pytest.fixture
def sample_idea():
    """Fixture providing a sample idea for testing."""
    return Idea(
        id="idea-1-0",
        title="Workout Buddy",
        tagline="Train together",
        description="Shared workout plans for friends",
        difficulty=Difficulty.INTERMEDIATE,
        coreFeatures=[f"Feature {i}" for i in range(10)],
        techStackHighlights=["PostgreSQL", "WebSockets"],
    )


@pytest.fixture
def sample_blueprint():
    """Fixture providing a sample blueprint for testing."""
    return Blueprint(
        databaseSchema="CREATE TABLE users (id BIGINT PRIMARY KEY);" + " -- padding" * 40,
        backendModules=["auth", "workouts"],
        frontendComponents=["WorkoutList", "WorkoutForm"],
        apiEndpoints=[ApiEndpoint(method="GET", path="/api/workouts", description="List workouts")],
        userStories=["As a user I can log a workout"],
        securityStrategy=["JWT"],
        stateManagement="React Query",
        deploymentStrategy=["Docker"],
        externalIntegrations=["Stripe"],
        performanceOptimizations=["Redis"],
        projectStructure="backend/\nfrontend/",
        developmentPhases=["MVP"],
        estimation=Estimation(weeksToMvp=8, complexityScore=40, recommendedTeamSize=2),
        erDiagram="",
        sequenceDiagram="",
    )


def make_session(service, idea, blueprint):
    return ChatSession(service, idea, blueprint, backend_stack="Spring Boot", frontend_stack="React")


class TestChatSession:
    """Tests for ChatSession."""

    def test_new_session_has_single_greeting(self, sample_idea, sample_blueprint):
        session = make_session(FakeChatService([]), sample_idea, sample_blueprint)

        assert len(session.messages) == 1
        assert session.messages[0].id == WELCOME_MESSAGE_ID
        assert session.messages[0].role == Role.ASSISTANT
        assert "Workout Buddy" in session.messages[0].text
        assert session.history() == []

    def test_system_instruction_context(self, sample_idea, sample_blueprint):
        session = make_session(FakeChatService([]), sample_idea, sample_blueprint)

        instruction = session.system_instruction
        assert "App Title: Workout Buddy" in instruction
        assert "PostgreSQL, WebSockets" in instruction
        assert "auth, workouts" in instruction
        assert "WorkoutList, WorkoutForm" in instruction
        assert sample_blueprint.databaseSchema[:SCHEMA_EXCERPT_CHARS] in instruction
        assert sample_blueprint.databaseSchema not in instruction

    def test_turn_streams_monotonically(self, sample_idea, sample_blueprint):
        """Observed reply text only ever grows by appending fragments."""
        session_ref = []
        service = FakeChatService([["Here ", "is ", "the ", "User ", "entity"]], session_ref=session_ref)
        session = make_session(service, sample_idea, sample_blueprint)
        session_ref.append(session)

        async def run():
            stream = session.send_turn("Show me the User entity")
            assert session.is_streaming
            fragments = [fragment async for fragment in stream]
            return stream, fragments

        stream, fragments = asyncio.run(run())

        assert fragments == ["Here ", "is ", "the ", "User ", "entity"]
        assert stream.message.text == "Here is the User entity"
        assert stream.done
        assert not session.is_streaming
        snapshots = service.snapshots
        assert snapshots and snapshots[-1] == "Here is the User entity"
        for earlier, later in zip(snapshots, snapshots[1:]):
            assert later.startswith(earlier) and len(later) > len(earlier)

    def test_user_message_and_placeholder_appended_synchronously(self, sample_idea, sample_blueprint):
        session = make_session(FakeChatService([["ok"]]), sample_idea, sample_blueprint)

        async def run():
            stream = session.send_turn("Hello")
            roles = [m.role for m in session.messages]
            texts = [m.text for m in session.messages]
            await stream.wait()
            return roles, texts

        roles, texts = asyncio.run(run())

        assert roles == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
        assert texts[1:] == ["Hello", ""]
        assert session.messages[-1].text == "ok"

    def test_history_excludes_greeting_and_current_turn(self, sample_idea, sample_blueprint):
        service = FakeChatService([["first reply"], ["second reply"]])
        session = make_session(service, sample_idea, sample_blueprint)

        async def run():
            await session.send_turn("first").wait()
            await session.send_turn("second").wait()

        asyncio.run(run())

        assert service.calls[0][1] == []
        second_history = service.calls[1][1]
        assert [(m.role, m.text) for m in second_history] == [
            (Role.USER, "first"),
            (Role.ASSISTANT, "first reply"),
        ]
        assert service.calls[1][2] == session.system_instruction

    def test_second_turn_rejected_while_streaming(self, sample_idea, sample_blueprint):
        """Single-flight: turns never interleave."""
        async def run():
            gate = asyncio.Event()
            service = FakeChatService([["slow"], ["next"]], gate=gate)
            session = make_session(service, sample_idea, sample_blueprint)
            stream = session.send_turn("first")
            await asyncio.sleep(0)
            with pytest.raises(TurnInFlightError):
                session.send_turn("second")
            gate.set()
            await stream.wait()
            follow_up = session.send_turn("second")
            await follow_up.wait()
            return session, service

        session, service = asyncio.run(run())

        assert [call[0] for call in service.calls] == ["first", "second"]
        assert [m.text for m in session.messages[1:]] == ["first", "slow", "second", "next"]

    def test_blank_message_rejected(self, sample_idea, sample_blueprint):
        service = FakeChatService([])
        session = make_session(service, sample_idea, sample_blueprint)

        async def run():
            with pytest.raises(ValueError):
                session.send_turn("  ")

        asyncio.run(run())
        assert len(session.messages) == 1
        assert service.calls == []

    def test_send_without_event_loop_leaves_session_usable(self, sample_idea, sample_blueprint):
        service = FakeChatService([["Sure"]])
        session = make_session(service, sample_idea, sample_blueprint)

        with pytest.raises(RuntimeError):
            session.send_turn("hello")

        assert [m.id for m in session.messages] == [WELCOME_MESSAGE_ID]
        assert not session.is_streaming

        async def run():
            stream = session.send_turn("again")
            return await stream.wait()

        reply = asyncio.run(run())
        assert reply.text == "Sure"
        assert [m.role for m in session.messages[1:]] == [Role.USER, Role.ASSISTANT]

    def test_stream_failure_replaces_placeholder(self, sample_idea, sample_blueprint):
        """A failed turn ends with the apology and the session stays usable."""
        service = FakeChatService([["partial ", StreamFailure("reset")], ["recovered"]])
        session = make_session(service, sample_idea, sample_blueprint)

        async def run():
            failed = session.send_turn("first")
            fragments = [fragment async for fragment in failed]
            retry = session.send_turn("again")
            await retry.wait()
            return failed, fragments, retry

        failed, fragments, retry = asyncio.run(run())

        assert fragments == ["partial "]
        assert failed.message.text == CHAT_ERROR_TEXT
        assert failed.message.failed
        assert retry.message.text == "recovered"

    def test_stream_is_not_restartable(self, sample_idea, sample_blueprint):
        session = make_session(FakeChatService([["a", "b"]]), sample_idea, sample_blueprint)

        async def run():
            stream = session.send_turn("Hi")
            first = [fragment async for fragment in stream]
            with pytest.raises(RuntimeError):
                stream.__aiter__()
            return first

        assert asyncio.run(run()) == ["a", "b"]

    def test_cancel_keeps_accumulated_text(self, sample_idea, sample_blueprint):
        async def run():
            gate = asyncio.Event()
            gate.set()
            service = FakeChatService([["kept ", "lost"], ["fresh"]], gate=gate)
            session = make_session(service, sample_idea, sample_blueprint)
            stream = session.send_turn("first")
            received = []
            async for fragment in stream:
                received.append(fragment)
                gate.clear()
                stream.cancel()
            await stream.wait()
            assert not session.is_streaming
            gate.set()
            follow_up = session.send_turn("second")
            await follow_up.wait()
            return received, stream, follow_up

        received, stream, follow_up = asyncio.run(run())

        assert received == ["kept "]
        assert stream.message.text == "kept "
        assert not stream.message.failed
        assert follow_up.message.text == "fresh"

    def test_close_cancels_in_flight_turn(self, sample_idea, sample_blueprint):
        async def run():
            gate = asyncio.Event()
            service = FakeChatService([["never"]], gate=gate)
            session = make_session(service, sample_idea, sample_blueprint)
            stream = session.send_turn("Hi")
            await asyncio.sleep(0)
            session.close()
            await stream.wait()
            return session, stream

        session, stream = asyncio.run(run())

        assert stream.done
        assert stream.message.text == ""
        assert not session.is_streaming


if __name__ == "__main__":
    # This allows running the tests directly with python
    import sys
    sys.exit(pytest.main(["-v", __file__]))
