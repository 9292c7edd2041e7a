"""This module holds the data classes shared by the group health analysis."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union


@dataclass(frozen=True)
class ResolvedManager:
    """A manager reference that was found in the directory."""

    reference: str
    display_name: str = ""
    title: str = ""
    user_principal_name: str = ""

    @property
    def display(self) -> str:
        """Best human readable form of the manager."""
        return self.display_name or self.user_principal_name or self.reference


@dataclass(frozen=True)
class UnresolvedManager:
    """A manager reference that could not be looked up.

    The raw reference is kept so the report still shows who was assigned.
    """

    reference: str

    @property
    def display(self) -> str:
        """Best human readable form of the manager."""
        return self.reference


ManagerResolution = Union[ResolvedManager, UnresolvedManager]


@dataclass(frozen=True)
class OrganizationalUnit:
    """An OU that can be selected for analysis."""

    distinguished_name: str
    name: str
    group_count: int


@dataclass(frozen=True)
class RawGroup:
    """A group as enumerated from an OU, before any processing."""

    distinguished_name: str
    attributes: dict[str, Any]


@dataclass(frozen=True)
class MemberCounts:
    """Direct members of a group split by object kind."""

    user_count: int = 0
    group_count: int = 0
    computer_count: int = 0
    enabled_user_count: int = 0
    disabled_user_count: int = 0

    @property
    def total(self) -> int:
        return self.user_count + self.group_count + self.computer_count


@dataclass
class GroupRecord:
    """One analysed AD group.

    ``total_member_count`` is derived from the three member kinds so it can
    never disagree with them.
    """

    name: str
    sam_account_name: str
    distinguished_name: str
    scope_id: str
    category: str
    scope: str
    created_at: datetime | None
    description: str = ""
    notes: str = ""
    email: str = ""
    user_member_count: int = 0
    group_member_count: int = 0
    computer_member_count: int = 0
    enabled_user_count: int = 0
    disabled_user_count: int = 0
    manager: ManagerResolution | None = None
    ancestor_group_count: int = 0
    direct_parent_count: int = 0
    health_score: int = 100
    health_issues: list[str] = field(default_factory=list)

    @property
    def total_member_count(self) -> int:
        return (
            self.user_member_count + self.group_member_count + self.computer_member_count
        )

    @property
    def has_nested_group_members(self) -> bool:
        return self.group_member_count > 0

    @property
    def manager_display(self) -> str:
        if self.manager is None:
            return ""
        return self.manager.display

    @property
    def manager_reference(self) -> str:
        if self.manager is None:
            return ""
        return self.manager.reference


@dataclass
class ScopeStatistics:
    """Running totals for one selected OU."""

    group_count: int = 0
    enabled_member_count: int = 0
    disabled_member_count: int = 0
    total_member_count: int = 0
    nested_group_total: int = 0
    max_nesting_depth: int = 0

    @property
    def average_nesting(self) -> float:
        if not self.group_count:
            return 0.0
        return self.nested_group_total / self.group_count


@dataclass
class AnalysisResult:
    """Everything a completed analysis run produced."""

    groups: list[GroupRecord]
    scope_stats: dict[str, ScopeStatistics]
    skipped_groups: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.skipped_groups


@dataclass(frozen=True)
class AnalysisCancelled:
    """Returned instead of a result when the run was stopped by the caller."""

    processed_groups: int
    total_groups: int
