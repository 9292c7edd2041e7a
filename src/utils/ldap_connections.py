"""This module binds the single read-only connection to MS AD.

Every setting comes from the ``ad`` section of the configuration. Any failure
while building or binding the connection is fatal: it is logged, recorded in
the monitoring log and the process exits with status 1.
"""
import ssl
import sys
import utils.utilities as Utilities
from loguru import logger
from typing import Any, NoReturn
from ldap3 import Server, Connection, Tls
from utils.ldap_wrapper import LdapWrapper


def _abort(basic_config: dict[str, Any], message: str, exc: Any) -> NoReturn:
    logger.error(message)
    logger.error(exc)
    Utilities.write_monitoring_log(basic_config, False, basic_config["args"].op_type)
    sys.exit(1)


class LdapConnections:
    """Builds, binds and checks the MS AD connection used by the audit."""

    @staticmethod
    def _ad_config(basic_config: dict[str, Any]) -> dict[str, Any]:
        return basic_config["config"]["ad"]

    def _create_tls_object(self, basic_config: dict[str, Any]) -> Tls:
        """Create the TLS settings from ``ad.ssl``.

        ``validate`` and ``version`` name constants of the ``ssl`` module,
        e.g. ``CERT_REQUIRED`` and ``PROTOCOL_TLS_CLIENT``.

        Returns
        -------
        Tls
            https://ldap3.readthedocs.io/en/latest/ssltls.html
        """
        ssl_config: dict[str, Any] = self._ad_config(basic_config)["ssl"]
        try:
            return Tls(
                validate=getattr(ssl, ssl_config["validate"]),
                version=getattr(ssl, ssl_config["version"]),
                ca_certs_file=ssl_config.get("ca_certs_file"),
            )
        except Exception as exc:
            _abort(basic_config, "Unable to create AD TLS object:", exc)

    def _create_server(self, basic_config: dict[str, Any], tls: Tls) -> Server:
        """Describe the domain controller to connect to."""
        ad_config = self._ad_config(basic_config)
        try:
            return Server(
                ad_config["server"],
                port=ad_config["port"],
                use_ssl=ad_config["ssl"]["enabled"],
                tls=tls,
                get_info=ad_config["get_info"],
            )
        except Exception as exc:
            _abort(basic_config, "Unable to create AD server object:", exc)

    def _create_connection(
        self, basic_config: dict[str, Any], server: Server
    ) -> Connection:
        """Create an unbound, read-only connection for the service account."""
        ad_config = self._ad_config(basic_config)
        try:
            return Connection(
                server,
                user=ad_config["bind_user"],
                password=ad_config["bind_pass"],
                read_only=True,
            )
        except Exception as exc:
            _abort(basic_config, "Unable to create AD connection object:", exc)

    def _bind(self, basic_config: dict[str, Any]) -> LdapWrapper:
        """Bind the service account and wrap the connection.

        Returns
        -------
        LdapWrapper
            https://ldap3.readthedocs.io/en/latest/bind.html
        """
        server = self._create_server(basic_config, self._create_tls_object(basic_config))
        connection = self._create_connection(basic_config, server)
        try:
            connection.bind()
        except Exception as exc:
            _abort(basic_config, "Unable to bind to Active Directory:", exc)
        return LdapWrapper(connection, basic_config)

    def setup_ldap_connection(self, basic_config: dict[str, Any]) -> LdapWrapper:
        """Return a bound connection, or exit when AD rejects the bind."""
        ad_connection = self._bind(basic_config)
        if ad_connection.result["result"] != 0:
            _abort(
                basic_config,
                "The Active Directory connection failed",
                f"Active Directory: {ad_connection.result}",
            )
        logger.debug(f"Bound to {self._ad_config(basic_config)['server']} read-only")
        return ad_connection
