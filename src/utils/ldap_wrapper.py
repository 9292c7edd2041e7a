"""This module is used to wrap the LDAP3 methods the audit relies on.

The audit never writes to the directory, so only the read side of the
connection is exposed.
"""
import copy
from typing import Any
from ldap3 import Connection, SUBTREE, DEREF_ALWAYS


class LdapInterface:
    """LDAP Interface class.

    Acts as the default implementation.
    """

    def __init__(
        self, ldap_connection: Connection, basic_config: dict[str, Any]
    ) -> None:
        """Initialization of the class."""
        self.basic_config = basic_config
        self.page_size: int = basic_config["config"]["ad"]["schema"].get(
            "page_size", 500
        )
        self.ldap_connection: Connection = (
            ldap_connection  # This is an active bound connection!
        )

    @property  # pragma: no cover
    def response(self) -> Any:
        """Setting response."""
        return self.ldap_connection.response

    @property  # pragma: no cover
    def result(self) -> Any:
        """Setting result."""
        return self.ldap_connection.result

    def unbind(self, controls: Any = None) -> None:
        """As specified in RFC4511 the Unbind operation must be tought as the
        "disconnect" operation. It’s name (and that of its Bind counterpart) is for
        historical reason."""
        raise NotImplementedError

    def search(
        self,
        search_base: str,
        search_filter: str,
        search_scope: Any = SUBTREE,
        dereference_aliases: Any = DEREF_ALWAYS,
        attributes: Any = None,
        size_limit: int = 0,
        time_limit: int = 0,
        types_only: bool = False,
        get_operational_attributes: bool = False,
        controls: Any = None,
        paged_size: int | None = None,
        paged_criticality: bool = False,
        paged_cookie: str | None = None,
    ) -> None:
        """The Search operation is used to request a server to return, subject to access
        controls and other restrictions, a set of entries matching a search filter. This
        can be used to read attributes from a single entry, from entries immediately
        subordinate to a particular entry, or from a whole subtree of entries.
        """
        raise NotImplementedError

    def paged_search(
        self,
        search_base: str,
        search_filter: str,
        search_scope: Any = SUBTREE,
        attributes: Any = None,
    ) -> list[dict[str, Any]]:
        """Run a search and collect every page of the response.

        MS AD caps a single response at 1000 entries, so OU and member
        enumeration has to page.
        """
        raise NotImplementedError


class LdapWrapper(LdapInterface):
    """This class is used to override some LDAP3 methods."""

    def unbind(self, controls: Any = None) -> None:
        """As specified in RFC4511 the Unbind operation must be tought as the
        "disconnect" operation. It’s name (and that of its Bind counterpart) is for
        historical reason."""
        kwargs = copy.copy(locals())
        kwargs.pop("self")
        self.ldap_connection.unbind(**kwargs)

    def search(
        self,
        search_base: str,
        search_filter: str,
        search_scope: Any = SUBTREE,
        dereference_aliases: Any = DEREF_ALWAYS,
        attributes: Any = None,
        size_limit: int = 0,
        time_limit: int = 0,
        types_only: bool = False,
        get_operational_attributes: bool = False,
        controls: Any = None,
        paged_size: int | None = None,
        paged_criticality: bool = False,
        paged_cookie: str | None = None,
    ) -> None:
        """The Search operation is used to request a server to return, subject to access
        controls and other restrictions, a set of entries matching a search filter. This
        can be used to read attributes from a single entry, from entries immediately
        subordinate to a particular entry, or from a whole subtree of entries.
        """
        kwargs = copy.copy(locals())
        kwargs.pop("self")
        self.ldap_connection.search(**kwargs)

    def paged_search(
        self,
        search_base: str,
        search_filter: str,
        search_scope: Any = SUBTREE,
        attributes: Any = None,
    ) -> list[dict[str, Any]]:
        """Run a search and collect every page of the response.

        Only search result entries are returned; referrals are dropped.
        """
        entries = self.ldap_connection.extend.standard.paged_search(
            search_base=search_base,
            search_filter=search_filter,
            search_scope=search_scope,
            attributes=attributes,
            paged_size=self.page_size,
            generator=False,
        )
        return [entry for entry in entries if entry.get("type") == "searchResEntry"]
