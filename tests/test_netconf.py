"""Tests for the NETCONF transport with a stubbed ncclient manager."""
from types import SimpleNamespace

import pytest
from lxml import etree

from junos_lifecycle.config.settings import ProviderSettings
from junos_lifecycle.errors import (
    COMMIT_WARNING,
    CommandError,
    ConfigCommitError,
    ConfigSetError,
    SessionStartError,
)
from junos_lifecycle.transport.netconf import (
    NetconfTransport,
    command_output,
    commit_rpc,
    load_set_rpc,
    parse_reply,
    read_system_information,
    split_rpc_errors,
)

NS = 'xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"'
OK = f"<rpc-reply {NS}><ok/></rpc-reply>"


def rpc_error(message, severity="error", bad=None):
    bad_element = f"<error-info><bad-element>{bad}</bad-element></error-info>" if bad else ""
    return (
        f"<rpc-error><error-severity>{severity}</error-severity>"
        f"<error-message>{message}</error-message>{bad_element}</rpc-error>"
    )


def reply(*body):
    return f"<rpc-reply {NS}>{''.join(body)}</rpc-reply>"


class StubManager:
    """Records dispatched RPCs and answers from a queue."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.sent = []
        self.closed = False

    def dispatch(self, rpc):
        self.sent.append(etree.tostring(rpc).decode())
        return SimpleNamespace(xml=self.replies.pop(0) if self.replies else OK)

    def close_session(self):
        self.closed = True


def transport_with(*replies):
    transport = NetconfTransport(ProviderSettings(host="192.0.2.1"))
    transport._manager = StubManager(*replies)
    return transport


class TestBuilders:
    """Tests for RPC builders."""

    def test_load_set(self):
        """Set lines are sent as one text block."""
        rpc = load_set_rpc(["set snmp contact noc", "delete snmp location"])
        assert rpc.get("action") == "set"
        assert rpc.find("configuration-set").text == "set snmp contact noc\ndelete snmp location"

    def test_commit_plain(self):
        """Plain commit carries the log message only."""
        rpc = commit_rpc("create resource junos_snmp")
        assert rpc.find("log").text == "create resource junos_snmp"
        assert rpc.find("confirmed") is None

    def test_commit_confirmed(self):
        """Confirmed commit carries its timeout."""
        rpc = commit_rpc("update", confirmed_minutes=5)
        assert rpc.find("confirmed") is not None
        assert rpc.find("confirm-timeout").text == "5"


class TestReplies:
    """Tests for reply parsing."""

    def test_split_by_severity(self):
        """Warnings are separated from errors."""
        errors, warnings = split_rpc_errors(parse_reply(reply(
            rpc_error("syntax error", bad="protocl"),
            rpc_error("statement has no effect", severity="warning"),
        )))
        assert errors == ["syntax error (bad element: protocl)"]
        assert warnings == ["statement has no effect"]

    def test_nested_commit_results(self):
        """Errors inside commit-results are found."""
        errors, _ = split_rpc_errors(parse_reply(reply(
            "<commit-results><routing-engine>", rpc_error("commit failed"), "</routing-engine></commit-results>"
        )))
        assert errors == ["commit failed"]

    def test_command_output(self):
        """Configuration output text is returned."""
        text = "\nset snmp contact noc\n"
        assert command_output(parse_reply(reply(f"<configuration-output>{text}</configuration-output>"))) == text
        assert command_output(parse_reply(OK)) == ""

    def test_system_information(self):
        """Device facts are read from the reply."""
        info = read_system_information(parse_reply(reply(
            "<system-information><hardware-model>vsrx</hardware-model>"
            "<os-name>junos</os-name><os-version>23.4R1</os-version>"
            "<host-name>fw1</host-name></system-information>"
        )))
        assert info.hardware_model == "vsrx"
        assert info.os_version == "23.4R1"
        assert info.is_security_platform()
        assert not info.cluster_node


class TestNetconfTransport:
    """Tests for transport methods over a stubbed session."""

    @pytest.mark.asyncio
    async def test_lock_refused(self):
        """Lock error in the reply means refused."""
        transport = transport_with(reply(rpc_error("configuration database locked by: admin")))
        assert await transport.lock() is False
        assert "<lock>" in transport._manager.sent[0]

    @pytest.mark.asyncio
    async def test_lock_granted(self):
        """Clean reply means locked."""
        assert await transport_with(OK).lock() is True

    @pytest.mark.asyncio
    async def test_unlock_errors_returned(self):
        """Unlock errors come back as messages."""
        transport = transport_with(reply(rpc_error("not locked")))
        assert await transport.unlock() == ["not locked"]

    @pytest.mark.asyncio
    async def test_discard_clears_candidate(self):
        """Discard sends delete-config on the candidate."""
        transport = transport_with(OK)
        assert await transport.discard_changes() == []
        assert "<delete-config>" in transport._manager.sent[0]

    @pytest.mark.asyncio
    async def test_load_set_rejected(self):
        """Rejected line raises with the bad element."""
        transport = transport_with(reply(rpc_error("syntax error", bad="protocl")))
        with pytest.raises(ConfigSetError) as exc:
            await transport.load_set(["set applications application ssh protocl tcp"])
        assert exc.value.bad_element == "protocl"

    @pytest.mark.asyncio
    async def test_load_set_warnings(self):
        """Load warnings are returned."""
        transport = transport_with(reply(rpc_error("statement not found", severity="warning")))
        assert await transport.load_set(["delete snmp location"]) == ["statement not found"]

    @pytest.mark.asyncio
    async def test_commit_error_keeps_warnings(self):
        """Commit failure carries the warnings of the same reply."""
        transport = transport_with(reply(
            rpc_error("uncommitted changes will be discarded", severity="warning"),
            rpc_error("commit failed"),
        ))
        with pytest.raises(ConfigCommitError) as exc:
            await transport.commit("create resource junos_snmp")
        assert "commit failed" in exc.value.message
        assert [(w.summary, w.message) for w in exc.value.warnings] == [
            (COMMIT_WARNING, "uncommitted changes will be discarded")
        ]

    @pytest.mark.asyncio
    async def test_commit_check(self):
        """Commit check sends the check RPC."""
        transport = transport_with(OK)
        assert await transport.commit_check() == []
        assert "<check/>" in transport._manager.sent[0]

    @pytest.mark.asyncio
    async def test_command(self):
        """Command output text is returned."""
        transport = transport_with(reply(
            "<configuration-output>\nset protocol tcp\n</configuration-output>"
        ))
        output = await transport.command("show configuration applications | display set")
        assert "set protocol tcp" in output

    @pytest.mark.asyncio
    async def test_command_error(self):
        """Command errors raise."""
        transport = transport_with(reply(rpc_error("syntax error")))
        with pytest.raises(CommandError):
            await transport.command("show configuration bogus")

    @pytest.mark.asyncio
    async def test_no_session(self):
        """RPCs need an open session."""
        transport = NetconfTransport(ProviderSettings(host="192.0.2.1"))
        with pytest.raises(CommandError):
            await transport.command("show version")
        assert await transport.close() == []

    @pytest.mark.asyncio
    async def test_close(self):
        """Close ends the NETCONF session."""
        transport = transport_with()
        stub = transport._manager
        assert await transport.close() == []
        assert stub.closed
        assert transport._manager is None

    @pytest.mark.asyncio
    async def test_open_without_host(self):
        """Missing host fails before connecting."""
        with pytest.raises(SessionStartError):
            await NetconfTransport(ProviderSettings()).open()
