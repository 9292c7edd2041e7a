"""This module reads OUs, groups and their members from MS AD.

It is the only place that talks LDAP during an analysis run. Everything it
returns is plain data from ``analysis.models``.
"""
from loguru import logger
from typing import Any
from ldap3 import BASE, LEVEL, SUBTREE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars
import utils.utilities as Utilities
from utils.ldap_wrapper import LdapInterface
from analysis.models import (
    ManagerResolution,
    MemberCounts,
    OrganizationalUnit,
    RawGroup,
    ResolvedManager,
    UnresolvedManager,
)

GROUP_ATTRIBUTES = [
    "name",
    "cn",
    "sAMAccountName",
    "description",
    "info",
    "whenCreated",
    "managedBy",
    "mail",
    "groupType",
    "member",
    "memberOf",
]
MANAGER_ATTRIBUTES = ["displayName", "title", "userPrincipalName"]
MEMBER_ATTRIBUTES = ["objectClass", "userAccountControl"]
SEARCH_SCOPES = {"level": LEVEL, "subtree": SUBTREE}


class DirectoryError(Exception):
    """Raised when a directory lookup fails."""


class AdDirectory:
    """Read-only access to the MS AD objects the group audit needs.

    Parameters
    ----------
    basic_config : dict[str, Any]
        A dictionary containing all the basic configuration settings.
    connection : LdapInterface
        A bound and wrapped MS AD connection.
    """

    def __init__(self, basic_config: dict[str, Any], connection: LdapInterface) -> None:
        """Initialization of the class."""
        self.basic_config = basic_config
        self.connection = connection
        schema: dict[str, Any] = basic_config["config"]["ad"]["schema"]
        self.base: str = schema["base"]
        scope_name = str(schema.get("group_search_scope", "level")).lower()
        if scope_name not in SEARCH_SCOPES:
            logger.warning(
                f"Unknown group_search_scope '{scope_name}', using 'level'"
            )
            scope_name = "level"
        self.group_search_scope = SEARCH_SCOPES[scope_name]

    def _paged_search(
        self,
        search_base: str,
        search_filter: str,
        search_scope: Any,
        attributes: list[str],
    ) -> list[dict[str, Any]]:
        """Paged search that turns every failure into a DirectoryError."""
        try:
            entries = self.connection.paged_search(
                search_base,
                search_filter,
                search_scope=search_scope,
                attributes=attributes,
            )
        except LDAPException as exc:
            raise DirectoryError(
                f"Search of '{search_base}' with {search_filter} failed: {exc}"
            ) from exc
        result = self.connection.result
        if result and result.get("result", 0) != 0:
            raise DirectoryError(
                f"Search of '{search_base}' with {search_filter} failed: "
                f"{result.get('description')}"
            )
        return entries

    def _base_search(self, dn: str, attributes: list[str]) -> dict[str, Any]:
        """Read a single object by its distinguished name.

        Returns
        -------
        dict[str, Any]
            The attributes of the object.

        Raises
        ------
        DirectoryError
            The search failed or the object does not exist.
        """
        try:
            self.connection.search(
                dn, "(objectClass=*)", search_scope=BASE, attributes=attributes
            )
        except LDAPException as exc:
            raise DirectoryError(f"Lookup of '{dn}' failed: {exc}") from exc
        if self.connection.result["result"] != 0:
            raise DirectoryError(
                f"Lookup of '{dn}' failed: {self.connection.result['description']}"
            )
        entries = [
            entry
            for entry in self.connection.response or []
            if entry.get("type", "searchResEntry") == "searchResEntry"
        ]
        if not entries:
            raise DirectoryError(f"Lookup of '{dn}' returned no object")
        return entries[0]["attributes"]

    def count_groups(self, scope_dn: str) -> int:
        """Count the groups an OU would contribute to an analysis."""
        return len(
            self._paged_search(
                scope_dn,
                "(objectClass=group)",
                self.group_search_scope,
                ["distinguishedName"],
            )
        )

    def _search_organizational_units(self, attributes: list[str]) -> list[dict[str, Any]]:
        return self._paged_search(
            self.base, "(objectClass=organizationalUnit)", SUBTREE, attributes
        )

    def list_organizational_unit_dns(self) -> list[str]:
        """List the distinguished names of every OU under the configured base."""
        entries = self._search_organizational_units(["distinguishedName"])
        return sorted((entry["dn"] for entry in entries), key=str.lower)

    def list_organizational_units(self) -> list[OrganizationalUnit]:
        """List every OU under the configured base with its group count.

        Every OU costs one extra search to count its groups.

        Examples
        --------
        >>> directory.list_organizational_units()
        [OrganizationalUnit(distinguished_name='OU=Finance,DC=example,DC=com',
        name='Finance', group_count=12)]
        """
        entries = self._search_organizational_units(["name", "ou"])
        units: list[OrganizationalUnit] = []
        for entry in entries:
            dn = entry["dn"]
            attributes = entry.get("attributes", {})
            name = Utilities.first_value(attributes.get("name")) or (
                Utilities.first_value(attributes.get("ou")) or Utilities.rdn_value(dn)
            )
            units.append(
                OrganizationalUnit(
                    distinguished_name=dn,
                    name=str(name),
                    group_count=self.count_groups(dn),
                )
            )
        logger.debug(f"Found {len(units)} organizational units under {self.base}")
        return sorted(units, key=lambda unit: unit.distinguished_name.lower())

    def list_groups(self, scope_dn: str) -> list[RawGroup]:
        """Enumerate the groups of an OU with the attributes the audit needs."""
        entries = self._paged_search(
            scope_dn, "(objectClass=group)", self.group_search_scope, GROUP_ATTRIBUTES
        )
        return [
            RawGroup(distinguished_name=entry["dn"], attributes=dict(entry["attributes"]))
            for entry in entries
        ]

    def resolve_manager(self, reference: str) -> ManagerResolution:
        """Look up the manager of a group.

        Never raises: a reference that cannot be looked up is returned as an
        UnresolvedManager so the raw value is still reported.
        """
        try:
            attributes = self._base_search(reference, MANAGER_ATTRIBUTES)
        except DirectoryError as exc:
            logger.warning(f"Unable to resolve manager '{reference}': {exc}")
            return UnresolvedManager(reference=reference)
        return ResolvedManager(
            reference=reference,
            display_name=str(Utilities.first_value(attributes.get("displayName"))),
            title=str(Utilities.first_value(attributes.get("title"))),
            user_principal_name=str(
                Utilities.first_value(attributes.get("userPrincipalName"))
            ),
        )

    def count_members_by_kind(self, group_dn: str) -> MemberCounts:
        """Count the direct members of a group per object kind.

        Computer objects also carry the ``user`` object class, so they are
        recognised first.
        """
        entries = self._paged_search(
            self.base,
            f"(memberOf={escape_filter_chars(group_dn)})",
            SUBTREE,
            MEMBER_ATTRIBUTES,
        )
        users = groups = computers = disabled = 0
        for entry in entries:
            attributes = entry.get("attributes", {})
            object_classes = [
                str(value).lower()
                for value in Utilities.as_list(attributes.get("objectClass"))
            ]
            if "computer" in object_classes:
                computers += 1
            elif "group" in object_classes:
                groups += 1
            elif "user" in object_classes:
                users += 1
                if Utilities.is_account_disabled(attributes.get("userAccountControl")):
                    disabled += 1
            else:
                logger.debug(f"{group_dn}: Ignoring member {entry.get('dn')}")
        return MemberCounts(
            user_count=users,
            group_count=groups,
            computer_count=computers,
            enabled_user_count=users - disabled,
            disabled_user_count=disabled,
        )

    def fetch_member_of(self, group_dn: str) -> list[str]:
        """Return the groups a group is directly a member of."""
        attributes = self._base_search(group_dn, ["memberOf"])
        return [str(dn) for dn in Utilities.as_list(attributes.get("memberOf"))]
