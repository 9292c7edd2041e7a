# type: ignore
import copy
import logging
import ssl
import yaml
import pytest
from unittest.mock import MagicMock, patch
from ldap3 import Server, Tls
from utils.ldap_connections import LdapConnections
from utils.ldap_wrapper import LdapWrapper

CONFIG_FILE = "tests/data/test_config.yaml"
BAD_CONFIG_FILE = "tests/data/test_bad_config.yaml"


class TestLdapConnections:
    @classmethod
    def setup_class(self):
        self.args = MagicMock()
        self.config = yaml.safe_load(open(CONFIG_FILE, "r"))
        self.bad_config = yaml.safe_load(open(BAD_CONFIG_FILE, "r"))

    def setup_method(self):
        self.args.op_type = "unit-test-list_scopes"
        self.basic_config = {"config": copy.deepcopy(self.config), "args": self.args}
        self.connections = LdapConnections()
        self.server = Server("dc01.example.com", port=636, use_ssl=True)

    def assert_aborted(self, caplog, call, *args):
        with caplog.at_level(logging.ERROR):
            with patch(
                "utils.utilities.write_monitoring_log"
            ) as mocked_write_monitoring_log:
                with pytest.raises(SystemExit) as exc:
                    call(*args)
        assert exc.value.code == 1
        mocked_write_monitoring_log.assert_called_once_with(
            args[0], False, "unit-test-list_scopes"
        )
        return caplog.text

    def test_tls_from_ad_section(self) -> None:
        self.basic_config["config"]["ad"]["ssl"]["ca_certs_file"] = None
        tls = self.connections._create_tls_object(self.basic_config)
        assert isinstance(tls, Tls)
        assert tls.validate == ssl.CERT_NONE
        assert tls.version == ssl.PROTOCOL_TLS_CLIENT

    def test_tls_unknown_ssl_constant(self, caplog) -> None:
        bad_basic_config = {"config": self.bad_config, "args": self.args}
        text = self.assert_aborted(
            caplog, self.connections._create_tls_object, bad_basic_config
        )
        assert "TLS" in text

    def test_server_uses_ldaps_port(self) -> None:
        tls = Tls(validate=ssl.CERT_NONE)
        server = self.connections._create_server(self.basic_config, tls)
        assert server.host == "dc01.example.com"
        assert server.port == 636
        assert server.ssl is True
        assert server.name == "ldaps://dc01.example.com:636"

    def test_server_invalid_port(self, caplog) -> None:
        self.basic_config["config"]["ad"]["port"] = "not-a-port"
        text = self.assert_aborted(
            caplog, self.connections._create_server, self.basic_config, None
        )
        assert "server object" in text

    def test_connection_is_read_only(self) -> None:
        connection = self.connections._create_connection(self.basic_config, self.server)
        assert connection.read_only is True
        assert connection.user == (
            "CN=svc-group-audit,OU=Service Accounts,DC=example,DC=com"
        )
        assert connection.password == "unit-test-password"
        assert connection.closed

    def test_connection_missing_bind_user(self, caplog) -> None:
        self.basic_config["config"]["ad"].pop("bind_user")
        text = self.assert_aborted(
            caplog, self.connections._create_connection, self.basic_config, self.server
        )
        assert "bind_user" in text

    def test_bind_wraps_connection(self) -> None:
        with patch("utils.ldap_connections.Connection") as mocked_connection:
            returned = self.connections._bind(self.basic_config)
        _, kwargs = mocked_connection.call_args
        assert kwargs["read_only"] is True
        assert mocked_connection.return_value.bind.called
        assert isinstance(returned, LdapWrapper)
        assert returned.ldap_connection is mocked_connection.return_value
        assert returned.page_size == 100

    def test_bind_failure(self, caplog) -> None:
        with patch("utils.ldap_connections.Connection") as mocked_connection:
            mocked_connection.return_value.bind.side_effect = Exception(
                "server down"
            )
            text = self.assert_aborted(caplog, self.connections._bind, self.basic_config)
        assert "server down" in text

    def test_setup_ldap_connection(self) -> None:
        bound = MagicMock()
        bound.result = {"result": 0}
        with patch.object(LdapConnections, "_bind", return_value=bound) as mocked_bind:
            returned = self.connections.setup_ldap_connection(self.basic_config)
        mocked_bind.assert_called_once_with(self.basic_config)
        assert returned is bound

    def test_setup_ldap_connection_rejected(self, caplog) -> None:
        bound = MagicMock()
        bound.result = {"result": 49, "description": "invalidCredentials"}
        with patch.object(LdapConnections, "_bind", return_value=bound):
            text = self.assert_aborted(
                caplog, self.connections.setup_ldap_connection, self.basic_config
            )
        assert "invalidCredentials" in text
