"""Tests for the configuration session state machine."""
import pytest

from conftest import FakeTransport
from junos_lifecycle import session as session_module
from junos_lifecycle.codec.statement import set_statement
from junos_lifecycle.errors import (
    CLEAR_WARNING,
    COMMIT_WARNING,
    UNLOCK_WARNING,
    CommandError,
    ConfigCommitError,
    ConfigLockError,
    ConfigSetError,
    SessionStartError,
    SessionStateError,
)
from junos_lifecycle.session import Session, SessionState
from junos_lifecycle.transport.setfile import SetFileTransport


def app_statements(name="ssh"):
    root = ("applications", "application", name)
    return [
        set_statement(root + ("protocol",), "tcp", origin="protocol"),
        set_statement(root + ("destination-port",), '"22"', origin="destination_port"),
    ]


@pytest.fixture
def session(device):
    return Session(FakeTransport(device))


class TestLifecycle:
    """Tests for state transitions."""

    @pytest.mark.asyncio
    async def test_open_gathers_facts(self, session):
        """Opening reads system information."""
        await session.open()
        assert session.state == SessionState.OPENED
        assert session.system_information.hardware_model == "vsrx"
        await session.close()
        assert session.state == SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_open_twice(self, session):
        """An open session cannot be opened again."""
        await session.open()
        with pytest.raises(SessionStateError):
            await session.open()
        await session.close()

    @pytest.mark.asyncio
    async def test_open_unreachable(self, device, session):
        """Connection failures surface as session start errors."""
        device.unreachable = True
        with pytest.raises(SessionStartError):
            await session.open()
        assert session.state == SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_full_transaction(self, device, session):
        """Lock, submit, commit and unlock apply the statements."""
        async with session:
            await session.lock()
            assert session.state == SessionState.LOCKED
            await session.submit(app_statements())
            warnings = await session.commit("create resource junos_application")
            warnings += await session.unlock()
            assert warnings == []
            assert session.state == SessionState.OPENED
        assert "applications application ssh protocol tcp" in device.config
        assert device.commits == ["create resource junos_application"]
        assert session.transaction.committed
        assert session.transaction.lines[0] == "set applications application ssh protocol tcp"

    @pytest.mark.asyncio
    async def test_close_idempotent(self, device, session):
        """Closing twice closes the transport once."""
        await session.open()
        assert await session.close() == []
        assert await session.close() == []
        assert device.close_calls == 1

    @pytest.mark.asyncio
    async def test_command_requires_open(self, session):
        """Commands need an open session."""
        with pytest.raises(CommandError):
            await session.command("show configuration")


class TestLocking:
    """Tests for candidate locking."""

    @pytest.mark.asyncio
    async def test_double_lock(self, session):
        """Locking twice in one session fails."""
        async with session:
            await session.lock()
            with pytest.raises(ConfigLockError) as exc:
                await session.lock()
            assert "already locked by this session" in exc.value.message

    @pytest.mark.asyncio
    async def test_lock_closed(self, session):
        """Closed session cannot lock."""
        with pytest.raises(ConfigLockError):
            await session.lock()

    @pytest.mark.asyncio
    async def test_lock_held_elsewhere(self, device):
        """Second session's lock is refused without retry."""
        first = Session(FakeTransport(device))
        second = Session(FakeTransport(device))
        async with first, second:
            await first.lock()
            with pytest.raises(ConfigLockError) as exc:
                await second.lock()
            assert "locked by another session" in exc.value.message
            assert device.lock_calls == 2
            assert second.state == SessionState.OPENED

    @pytest.mark.asyncio
    async def test_unlock_not_locked(self, session):
        """Unlocking without a lock is a no-op."""
        async with session:
            assert await session.unlock() == []

    @pytest.mark.asyncio
    async def test_close_releases_lock(self, device, session):
        """Closing a locked session unlocks first."""
        await session.open()
        await session.lock()
        await session.close()
        assert device.unlock_calls == 1
        assert device.lock_holder is None


class TestSubmit:
    """Tests for loading statements."""

    @pytest.mark.asyncio
    async def test_submit_requires_lock(self, session):
        """Submitting without a lock fails."""
        async with session:
            with pytest.raises(ConfigSetError):
                await session.submit(app_statements())

    @pytest.mark.asyncio
    async def test_empty_submit(self, device, session):
        """Nothing to submit does not reach the device."""
        async with session:
            await session.lock()
            assert await session.submit([]) == []
        assert device.loaded == []

    @pytest.mark.asyncio
    async def test_rejected_statement_path(self, device, session):
        """Device rejection carries the attribute path of the statement."""
        device.reject = "destination-port"
        async with session:
            await session.lock()
            with pytest.raises(ConfigSetError) as exc:
                await session.submit(app_statements())
        assert exc.value.path == "destination_port"

    @pytest.mark.asyncio
    async def test_single_statement_path(self, device, session):
        """Single statement is blamed even without a bad element match."""
        device.reject = "protocol"
        async with session:
            await session.lock()
            with pytest.raises(ConfigSetError) as exc:
                await session.submit(app_statements()[:1])
        assert exc.value.path == "protocol"

    @pytest.mark.asyncio
    async def test_rejected_value_path(self, device, session):
        """A rejected value is matched against quoted arguments."""
        device.reject = "22"
        async with session:
            await session.lock()
            with pytest.raises(ConfigSetError) as exc:
                await session.submit(app_statements())
        assert exc.value.path == "destination_port"

    @pytest.mark.asyncio
    async def test_shared_keyword_not_blamed(self, device, session):
        """A keyword every statement shares names no attribute."""
        device.reject = "application"
        async with session:
            await session.lock()
            with pytest.raises(ConfigSetError) as exc:
                await session.submit(app_statements())
        assert exc.value.path is None

    def test_argument_match_wins(self):
        """Arguments are matched before keywords."""
        root = ("applications", "application", "ssh")
        statements = [
            set_statement(root + ("protocol",), "tcp", origin="protocol"),
            set_statement(root + ("description",), '"protocol"', origin="description"),
        ]
        assert session_module._origin_of(statements, "protocol") == "description"
        assert session_module._origin_of(statements, "tcp") == "protocol"

    @pytest.mark.asyncio
    async def test_uncommitted_discarded_on_unlock(self, device, session):
        """Unlock clears changes that were never committed."""
        async with session:
            await session.lock()
            await session.submit(app_statements())
            assert await session.unlock() == []
        assert device.discard_calls == 1
        assert device.config == []

    @pytest.mark.asyncio
    async def test_committed_not_discarded(self, device, session):
        """Committed changes are not cleared on unlock."""
        async with session:
            await session.lock()
            await session.submit(app_statements())
            await session.commit("create")
            await session.unlock()
        assert device.discard_calls == 0


class TestCommit:
    """Tests for commits."""

    @pytest.mark.asyncio
    async def test_commit_requires_lock(self, session):
        """Commit without a lock fails."""
        async with session:
            with pytest.raises(ConfigCommitError):
                await session.commit("x")

    @pytest.mark.asyncio
    async def test_commit_warnings(self, device, session):
        """Warnings of a successful commit are returned."""
        device.commit_warnings = ["statement has no effect"]
        async with session:
            await session.lock()
            await session.submit(app_statements())
            warnings = await session.commit("create")
        assert len(warnings) == 1
        assert warnings[0].summary == COMMIT_WARNING
        assert warnings[0].message == "statement has no effect"

    @pytest.mark.asyncio
    async def test_commit_error_then_unlock_warnings(self, device, session):
        """Failed commit keeps its error; unlock problems are warnings."""
        device.commit_error = "commit failed"
        device.unlock_errors = ["session is not locked"]
        async with session:
            await session.lock()
            await session.submit(app_statements())
            with pytest.raises(ConfigCommitError):
                await session.commit("create")
            warnings = await session.unlock()
        assert [w.summary for w in warnings] == [UNLOCK_WARNING]
        assert device.discard_calls == 1
        assert device.config == []

    @pytest.mark.asyncio
    async def test_commit_confirmed(self, device, monkeypatch):
        """Confirmed commit waits, then confirms with a commit check."""
        pauses = []

        async def no_sleep(seconds):
            pauses.append(seconds)

        monkeypatch.setattr(session_module.asyncio, "sleep", no_sleep)
        session = Session(
            FakeTransport(device), sleep_short_ms=100, commit_confirmed=5, commit_confirmed_wait_s=270.0
        )
        async with session:
            await session.lock()
            await session.submit(app_statements())
            await session.commit("create")
        assert device.commits == ["create", "check"]
        assert pauses == [0.1, 270.0]


class TestDiscardWarnings:
    """Tests for cleanup failures reported as warnings."""

    @pytest.mark.asyncio
    async def test_discard_failure_is_warning(self, device, session, monkeypatch):
        """Discard failure does not raise."""
        async def broken():
            raise ConfigCommitError("rpc timeout")

        async with session:
            await session.lock()
            await session.submit(app_statements())
            monkeypatch.setattr(session.transport, "discard_changes", broken)
            warnings = await session.unlock()
        assert [w.summary for w in warnings] == [CLEAR_WARNING]
        assert "rpc timeout" in warnings[0].message


class TestNonTransactional:
    """Tests for sessions over a set file."""

    @pytest.mark.asyncio
    async def test_setfile_session(self, tmp_path):
        """Statements are appended; commit is local."""
        path = tmp_path / "out.set"
        session = Session(SetFileTransport(str(path)))
        assert session.non_transactional
        async with session:
            await session.lock()
            await session.submit(app_statements())
            assert await session.commit("create") == []
            assert session.transaction.committed
        assert path.read_text().splitlines() == [
            "set applications application ssh protocol tcp",
            'set applications application ssh destination-port "22"',
        ]
        assert session.system_information is None
