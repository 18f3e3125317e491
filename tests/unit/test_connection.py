"""
Unit tests for dirauth.ldap.connection.

The ldap3 Server/Connection classes are replaced with mocks so the adapter
logic (timeouts, result handling, exception translation) can be checked
without a directory server.
"""

from unittest.mock import MagicMock

import pytest
from ldap3.core.exceptions import (
    LDAPException,
    LDAPInvalidCredentialsResult,
    LDAPResponseTimeoutError,
    LDAPSessionTerminatedByServerError,
    LDAPSocketOpenError,
)

from dirauth.core.exceptions import DirectoryError
from dirauth.core.types import ServerAddress
from dirauth.ldap import connection as connection_module
from dirauth.ldap.connection import Ldap3Connector, translate_ldap_error
from dirauth.ldap.diagnostics import ResultCode


@pytest.fixture
def ldap3_mocks(monkeypatch):
    """Patch ldap3 Server and Connection inside the connector module."""
    server_cls = MagicMock(name="Server")
    conn = MagicMock(name="connection")
    conn.bound = True
    conn.result = {"result": 0, "message": ""}
    conn.response = []
    connection_cls = MagicMock(name="Connection", return_value=conn)

    monkeypatch.setattr(connection_module, "Server", server_cls)
    monkeypatch.setattr(connection_module, "Connection", connection_cls)
    return server_cls, connection_cls, conn


class TestLdap3Connector:
    """Tests for Ldap3Connector / Ldap3Session."""

    def test_timeouts_in_seconds(self, ldap3_mocks):
        server_cls, connection_cls, _ = ldap3_mocks
        connector = Ldap3Connector(connect_timeout_ms=1500, read_timeout_ms=2500)

        with connector.open(ServerAddress("dc1.corp.example", 636)) as session:
            session.bind("CN=svc", "pw")

        _, server_kwargs = server_cls.call_args
        assert server_cls.call_args.args[0] == "dc1.corp.example"
        assert server_kwargs["port"] == 636
        assert server_kwargs["connect_timeout"] == 1.5
        _, conn_kwargs = connection_cls.call_args
        assert conn_kwargs["receive_timeout"] == 2.5
        assert conn_kwargs["user"] == "CN=svc"

    def test_bind_success(self, ldap3_mocks):
        with Ldap3Connector().open(ServerAddress("dc1")) as session:
            result = session.bind("CN=svc", "pw")
        assert result.success

    def test_bind_rejected(self, ldap3_mocks):
        _, _, conn = ldap3_mocks
        conn.result = {"result": 49, "message": "AcceptSecurityContext error, data 52e, v3839"}

        with Ldap3Connector().open(ServerAddress("dc1")) as session:
            result = session.bind("CN=alice", "bad")

        assert not result.success
        assert result.result_code == ResultCode.INVALID_CREDENTIALS
        assert "data 52e" in result.diagnostic_message

    def test_bind_socket_error(self, ldap3_mocks):
        _, _, conn = ldap3_mocks
        conn.bind.side_effect = LDAPSocketOpenError("socket connection error: refused")

        with pytest.raises(DirectoryError) as excinfo:
            with Ldap3Connector().open(ServerAddress("dc1")) as session:
                session.bind("CN=svc", "pw")

        assert excinfo.value.result_code == ResultCode.CONNECT_ERROR

    def test_search_returns_entry_dns(self, ldap3_mocks):
        _, _, conn = ldap3_mocks
        conn.response = [
            {"type": "searchResEntry", "dn": "CN=Alice,DC=corp,DC=example"},
            {"type": "searchResRef", "uri": ["ldap://other/"]},
        ]

        with Ldap3Connector().open(ServerAddress("dc1")) as session:
            session.bind("CN=svc", "pw")
            dns = session.search("DC=corp,DC=example", "(cn=alice)")

        assert dns == ["CN=Alice,DC=corp,DC=example"]
        _, search_kwargs = conn.search.call_args
        assert search_kwargs["search_base"] == "DC=corp,DC=example"
        assert search_kwargs["search_filter"] == "(cn=alice)"

    def test_search_error_code(self, ldap3_mocks):
        _, _, conn = ldap3_mocks

        def failing_search(**kwargs):
            conn.result = {"result": 32, "message": "0000208D: NameErr"}
            return False

        conn.search.side_effect = failing_search

        with pytest.raises(DirectoryError) as excinfo:
            with Ldap3Connector().open(ServerAddress("dc1")) as session:
                session.bind("CN=svc", "pw")
                session.search("DC=missing", "(cn=alice)")

        assert excinfo.value.result_code == ResultCode.NO_SUCH_OBJECT

    def test_search_before_bind(self, ldap3_mocks):
        with pytest.raises(DirectoryError):
            with Ldap3Connector().open(ServerAddress("dc1")) as session:
                session.search("DC=corp", "(cn=a)")

    def test_unbind_on_exit(self, ldap3_mocks):
        _, _, conn = ldap3_mocks
        with Ldap3Connector().open(ServerAddress("dc1")) as session:
            session.bind("CN=svc", "pw")
        conn.unbind.assert_called_once()

    def test_unbind_error_ignored(self, ldap3_mocks):
        _, _, conn = ldap3_mocks
        conn.unbind.side_effect = LDAPSessionTerminatedByServerError("gone")
        with Ldap3Connector().open(ServerAddress("dc1")) as session:
            session.bind("CN=svc", "pw")


class TestTranslateLdapError:
    """Tests for ldap3 exception translation."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (LDAPSocketOpenError("refused"), ResultCode.CONNECT_ERROR),
            (LDAPSessionTerminatedByServerError("closed"), ResultCode.SERVER_DOWN),
            (LDAPResponseTimeoutError("timeout"), ResultCode.TIMEOUT),
            (LDAPException("other"), ResultCode.LOCAL_ERROR),
        ],
    )
    def test_mapping(self, error, code):
        assert translate_ldap_error(error).result_code == code

    def test_operation_result(self):
        error = LDAPInvalidCredentialsResult(result=49, message="data 775")
        translated = translate_ldap_error(error)
        assert translated.result_code == ResultCode.INVALID_CREDENTIALS
        assert translated.diagnostic_message == "data 775"
