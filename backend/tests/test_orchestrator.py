"""Tests for the session orchestrator: turns, reverts, and history over the session store."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from backend.errors import EmptyTurnError, HistoryIndexError, PersistenceError, SessionNotFoundError
from backend.models.session import Component
from backend.services.orchestrator import orchestrator
from backend.tests.conftest import make_session


@pytest.fixture
def fresh_session(memory_repo, owner_id):
    """Stored session with no component yet."""
    return memory_repo.put(make_session(owner_id=owner_id))


@pytest.fixture
def built_session(memory_repo, owner_id):
    """Stored session whose component has been generated once."""
    current = Component(jsx="export default function Red(){ return <button className='bg-red-500'/>; }")
    return memory_repo.put(make_session(owner_id=owner_id, current=current))


class TestProcessTurn:
    async def test_first_turn(self, memory_repo, mock_generator, owner_id, fresh_session):
        """A first turn generates from scratch and pushes nothing to history."""
        message, component = await orchestrator.process_turn(owner_id, fresh_session.id, "Make a red button")

        assert message.role == "assistant"
        assert message.content == 'I\'ve generated a React component for: "Make a red button"'
        assert component.jsx == mock_generator.generate.return_value.jsx

        stored = memory_repo.rows[fresh_session.id]
        assert stored.component_history == []
        assert [m.role for m in stored.messages] == ["user", "assistant"]
        assert stored.messages[0].content == "Make a red button"
        assert stored.current_component.jsx == component.jsx

        # Fresh generation: no previous component sent to the model
        args = mock_generator.generate.call_args.args
        assert args[0] == "Make a red button"
        assert args[1] is None

    async def test_refinement_turn(self, memory_repo, mock_generator, owner_id, built_session):
        """A second turn refines the live component and archives it."""
        old = built_session.current_component

        message, component = await orchestrator.process_turn(owner_id, built_session.id, "make it blue")

        assert message.content == 'I\'ve updated your component based on your request: "make it blue"'
        stored = memory_repo.rows[built_session.id]
        assert len(stored.component_history) == 1
        assert stored.component_history[0].jsx == old.jsx
        assert stored.current_component.jsx == component.jsx

        previous = mock_generator.generate.call_args.args[1]
        assert previous is not None
        assert previous.jsx == old.jsx

    async def test_recent_messages_include_this_turn(self, memory_repo, mock_generator, owner_id, fresh_session):
        await orchestrator.process_turn(owner_id, fresh_session.id, "hello")

        recent = mock_generator.generate.call_args.args[2]
        assert recent[-1].role == "user"
        assert recent[-1].content == "hello"

    async def test_image_only_turn(self, memory_repo, mock_generator, owner_id, fresh_session):
        image = "data:image/png;base64,iVBORw0KGgo="

        await orchestrator.process_turn(owner_id, fresh_session.id, "", image)

        stored = memory_repo.rows[fresh_session.id]
        assert stored.messages[0].image == image
        assert stored.messages[0].content == ""

    async def test_fallback_component_still_archives(self, memory_repo, mock_generator, owner_id, built_session):
        """A degraded generation still pushes the good version onto history."""
        mock_generator.generate.return_value = Component(
            jsx="export default function ErrorComponent(){ return <h2>AI Service Error</h2>; }"
        )

        message, component = await orchestrator.process_turn(owner_id, built_session.id, "break it")

        assert "AI Service Error" in component.jsx
        assert message.role == "assistant"
        stored = memory_repo.rows[built_session.id]
        assert stored.component_history[-1].jsx == built_session.current_component.jsx

    async def test_single_write_per_turn(self, memory_repo, mock_generator, owner_id, fresh_session):
        await orchestrator.process_turn(owner_id, fresh_session.id, "one")

        assert memory_repo.save_calls == 1

    async def test_empty_turn_rejected_before_any_work(self, memory_repo, mock_generator, owner_id, fresh_session):
        with pytest.raises(EmptyTurnError):
            await orchestrator.process_turn(owner_id, fresh_session.id, "   ")

        mock_generator.generate.assert_not_called()
        assert memory_repo.save_calls == 0
        assert memory_repo.rows[fresh_session.id].messages == []

    async def test_missing_session(self, memory_repo, mock_generator, owner_id):
        with pytest.raises(SessionNotFoundError):
            await orchestrator.process_turn(owner_id, uuid4(), "hello")

        mock_generator.generate.assert_not_called()

    async def test_other_owner_cannot_use_session(self, memory_repo, mock_generator, fresh_session):
        with pytest.raises(SessionNotFoundError):
            await orchestrator.process_turn(uuid4(), fresh_session.id, "hello")

        assert memory_repo.rows[fresh_session.id].messages == []

    async def test_persistence_failure_propagates(self, memory_repo, mock_generator, owner_id, fresh_session):
        """A storage error surfaces and leaves the stored session as it was."""
        memory_repo.save = AsyncMock(side_effect=PersistenceError("Database unavailable."))

        with pytest.raises(PersistenceError):
            await orchestrator.process_turn(owner_id, fresh_session.id, "hello")

        assert memory_repo.rows[fresh_session.id].messages == []

    async def test_session_deleted_mid_turn(self, memory_repo, mock_generator, owner_id, fresh_session):
        async def delete_then_generate(*args):
            del memory_repo.rows[fresh_session.id]
            return Component(jsx="J")

        mock_generator.generate.side_effect = delete_then_generate

        with pytest.raises(SessionNotFoundError):
            await orchestrator.process_turn(owner_id, fresh_session.id, "hello")


class TestRevert:
    async def test_revert_scenario(self, memory_repo, mock_generator, owner_id, fresh_session):
        """Three turns, then revert to the first version."""
        versions = [Component(jsx=f"export default function V{i}(){{}}") for i in range(3)]
        mock_generator.generate.side_effect = versions

        for text in ["first", "second", "third"]:
            await orchestrator.process_turn(owner_id, fresh_session.id, text)

        stored = memory_repo.rows[fresh_session.id]
        assert [c.jsx for c in stored.component_history] == [versions[0].jsx, versions[1].jsx]

        message, component = await orchestrator.revert(owner_id, fresh_session.id, 0)

        assert message.content == "Reverted to a previous component version."
        assert component.jsx == versions[0].jsx
        stored = memory_repo.rows[fresh_session.id]
        assert [c.jsx for c in stored.component_history] == [versions[0].jsx, versions[1].jsx, versions[2].jsx]
        assert stored.current_component.jsx == versions[0].jsx
        assert len(stored.messages) == 7

    async def test_invalid_index_writes_nothing(self, memory_repo, owner_id, built_session):
        before = memory_repo.rows[built_session.id].model_dump_json()

        with pytest.raises(HistoryIndexError):
            await orchestrator.revert(owner_id, built_session.id, 0)

        assert memory_repo.save_calls == 0
        assert memory_repo.rows[built_session.id].model_dump_json() == before

    async def test_out_of_range_keeps_last_accessed(self, memory_repo, owner_id):
        """Rejecting the index must not count as an access either."""
        session = memory_repo.put(
            make_session(owner_id=owner_id, current=Component(jsx="LIVE"), history=[Component(jsx="V0")])
        )
        before = memory_repo.rows[session.id].last_accessed

        with pytest.raises(HistoryIndexError):
            await orchestrator.revert(owner_id, session.id, 7)

        assert memory_repo.rows[session.id].last_accessed == before

    async def test_missing_session(self, memory_repo, owner_id):
        with pytest.raises(SessionNotFoundError):
            await orchestrator.revert(owner_id, uuid4(), 0)


class TestHistory:
    async def test_history_newest_first(self, memory_repo, mock_generator, owner_id, fresh_session):
        versions = [Component(jsx=f"V{i}") for i in range(3)]
        mock_generator.generate.side_effect = versions
        for text in ["a", "b", "c"]:
            await orchestrator.process_turn(owner_id, fresh_session.id, text)

        history = await orchestrator.history(owner_id, fresh_session.id)

        assert [c.jsx for c in history] == ["V2", "V1", "V0"]

    async def test_history_of_new_session_is_empty(self, memory_repo, owner_id, fresh_session):
        assert await orchestrator.history(owner_id, fresh_session.id) == []
