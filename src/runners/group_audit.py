"""This module is used to analyse the health of groups in selected OUs."""
from datetime import datetime
from loguru import logger
from typing import Any, Callable, Optional, Protocol
import utils.utilities as Utilities
from analysis.cancellation import CancellationToken
from analysis.health_scorer import score_group
from analysis.membership_graph import resolve_ancestors
from analysis.models import (
    AnalysisCancelled,
    AnalysisResult,
    GroupRecord,
    ManagerResolution,
    MemberCounts,
    OrganizationalUnit,
    RawGroup,
    ScopeStatistics,
)
from analysis.scope_statistics import fold_group_record, seed_scope_statistics

ProgressCallback = Callable[[int, int, str], None]


class Directory(Protocol):
    """The directory capabilities the audit consumes."""

    def list_organizational_units(self) -> list[OrganizationalUnit]:
        ...

    def list_organizational_unit_dns(self) -> list[str]:
        ...

    def list_groups(self, scope_dn: str) -> list[RawGroup]:
        ...

    def resolve_manager(self, reference: str) -> ManagerResolution:
        ...

    def count_members_by_kind(self, group_dn: str) -> MemberCounts:
        ...

    def fetch_member_of(self, group_dn: str) -> list[str]:
        ...


class AuditError(Exception):
    """Raised when an analysis run cannot produce any result."""


class AdGroupAudit:
    """Groups from the selected OU's are inventoried and scored.

    - Every group is walked up its "member-of" chain to measure nesting.
    - Every group gets a 0-100 health score with the issues that lowered it.
    - Per-OU statistics are accumulated for the report.
    - A single failing group is skipped, it never stops the run.

    Parameters
    ----------
    basic_config : dict[str, Any]
        A dictionary containing all the basic configuration settings.
    directory : Directory
        The MS AD client, usually ``utils.ad_directory.AdDirectory``.
    """

    run_status: bool = True
    """The overall run status of the script. Set to false anytime something goes
    wrong."""

    def __init__(self, basic_config: dict[str, Any], directory: Directory) -> None:
        """Initialization of the class."""
        self.basic_config = basic_config
        self.directory = directory

    def list_scopes(self) -> list[OrganizationalUnit]:
        """List the OUs that can be selected for analysis.

        Raises
        ------
        AuditError
            The OUs could not be enumerated.
        """
        try:
            return self.directory.list_organizational_units()
        except Exception as exc:
            logger.error("Unable to enumerate organizational units:")
            logger.error(exc)
            raise AuditError(f"Unable to enumerate organizational units: {exc}") from exc

    def list_scope_ids(self) -> list[str]:
        """List the distinguished names of every OU, without group counts."""
        try:
            return self.directory.list_organizational_unit_dns()
        except Exception as exc:
            logger.error("Unable to enumerate organizational units:")
            logger.error(exc)
            raise AuditError(f"Unable to enumerate organizational units: {exc}") from exc

    def _enumerate_scope_groups(
        self, scope_ids: list[str], scope_stats: dict[str, ScopeStatistics]
    ) -> list[tuple[str, RawGroup]]:
        """Enumerate the groups of every selected OU.

        Parameters
        ----------
        scope_ids
            The distinguished names of the selected OUs.
        scope_stats
            The statistics map to seed with each OU's group count.

        Returns
        -------
        list[tuple[str, RawGroup]]
            Every group paired with the OU it was found in, in OU order. A group
            reachable from several OUs is kept under the first one only.

        Raises
        ------
        AuditError
            One of the OUs could not be enumerated.
        """
        work: list[tuple[str, RawGroup]] = []
        seen: set[str] = set()
        for scope_id in dict.fromkeys(scope_ids):
            try:
                listed = self.directory.list_groups(scope_id)
            except Exception as exc:
                logger.error(f"{scope_id}: Unable to enumerate groups:")
                logger.error(exc)
                raise AuditError(
                    f"Unable to enumerate groups in '{scope_id}': {exc}"
                ) from exc
            groups: list[RawGroup] = []
            for group in listed:
                key = group.distinguished_name.lower()
                if key in seen:
                    logger.warning(
                        f"{scope_id}: {group.distinguished_name} already "
                        "enumerated from an earlier OU, skipping"
                    )
                    continue
                seen.add(key)
                groups.append(group)
            seed_scope_statistics(scope_stats, scope_id, len(groups))
            logger.info(f"{scope_id}: {len(groups)} groups to analyse")
            work.extend((scope_id, group) for group in groups)
        return work

    def _resolve_manager(self, attributes: dict[str, Any]) -> ManagerResolution | None:
        """Resolve the managedBy reference of a group, if there is one."""
        reference = str(Utilities.first_value(attributes.get("managedBy"))).strip()
        if not reference:
            return None
        return self.directory.resolve_manager(reference)

    def _build_group_record(
        self, scope_id: str, raw_group: RawGroup, now: Optional[datetime] = None
    ) -> GroupRecord:
        """Assemble and score the record of a single group.

        Parameters
        ----------
        scope_id
            The OU the group was enumerated from.
        raw_group
            The group as returned by the directory.
        now
            Reference time for the age rule of the health score.

        Returns
        -------
        GroupRecord
            The complete record, including nesting and health.

        Examples
        --------
        >>> self._build_group_record(
            "OU=Finance,DC=example,DC=com",
            RawGroup(
                "CN=fin-ro,OU=Finance,DC=example,DC=com",
                {"name": "fin-ro", "sAMAccountName": "fin-ro", "memberOf": []},
            ),
        )
        GroupRecord(name='fin-ro', ..., health_score=30, health_issues=[
        'Missing description', 'No manager assigned', 'Empty group'])
        """
        attributes = raw_group.attributes
        group_dn = raw_group.distinguished_name
        name = Utilities.first_value(attributes.get("name")) or Utilities.first_value(
            attributes.get("cn")
        )
        category, group_scope = Utilities.decode_group_type(attributes.get("groupType"))
        member_counts = self.directory.count_members_by_kind(group_dn)
        member_of = [str(dn) for dn in Utilities.as_list(attributes.get("memberOf"))]
        ancestors = resolve_ancestors(
            group_dn, self.directory.fetch_member_of, direct_parents=member_of
        )
        record = GroupRecord(
            name=str(name or Utilities.rdn_value(group_dn)),
            sam_account_name=str(Utilities.first_value(attributes.get("sAMAccountName"))),
            distinguished_name=group_dn,
            scope_id=scope_id,
            category=category,
            scope=group_scope,
            created_at=Utilities.parse_ad_timestamp(attributes.get("whenCreated")),
            description=str(Utilities.first_value(attributes.get("description"))),
            notes=str(Utilities.first_value(attributes.get("info"))),
            email=str(Utilities.first_value(attributes.get("mail"))),
            user_member_count=member_counts.user_count,
            group_member_count=member_counts.group_count,
            computer_member_count=member_counts.computer_count,
            enabled_user_count=member_counts.enabled_user_count,
            disabled_user_count=member_counts.disabled_user_count,
            manager=self._resolve_manager(attributes),
            ancestor_group_count=len(ancestors),
            direct_parent_count=len(member_of),
        )
        assessment = score_group(record, now=now)
        record.health_score = assessment.score
        record.health_issues = list(assessment.issues)
        logger.debug(
            f"{record.name}: score {record.health_score}, "
            f"{record.ancestor_group_count} ancestor groups, "
            f"issues {record.health_issues}"
        )
        return record

    def analyze_scopes(
        self,
        scope_ids: list[str],
        cancellation_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
        now: Optional[datetime] = None,
    ) -> AnalysisResult | AnalysisCancelled:
        """Analyse every group in the selected OUs.

        Parameters
        ----------
        scope_ids
            The distinguished names of the selected OUs.
        cancellation_token
            Checked before each group. Once set, the run stops and an
            AnalysisCancelled is returned.
        progress_callback
            Called after each group with the processed count, the total group
            count and the group's distinguished name.
        now
            Reference time for the age rule of the health score.

        Returns
        -------
        AnalysisResult | AnalysisCancelled
            All group records and the per-OU statistics, or the cancellation
            outcome.

        Raises
        ------
        AuditError
            No OU was selected or an OU could not be enumerated.
        """
        if not scope_ids:
            raise AuditError("No organizational units selected")
        self.run_status = True
        scope_stats: dict[str, ScopeStatistics] = {}
        groups: list[GroupRecord] = []
        skipped: list[str] = []

        work = self._enumerate_scope_groups(scope_ids, scope_stats)
        total = len(work)
        logger.info(f"Analysing {total} groups in {len(scope_stats)} OUs")

        for processed, (scope_id, raw_group) in enumerate(work):
            if cancellation_token is not None and cancellation_token.cancelled:
                logger.warning(f"Analysis cancelled after {processed} of {total} groups")
                self.run_status = False
                return AnalysisCancelled(processed_groups=processed, total_groups=total)
            try:
                record = self._build_group_record(scope_id, raw_group, now=now)
            except Exception as exc:
                self.run_status = False
                skipped.append(raw_group.distinguished_name)
                logger.error(f"{raw_group.distinguished_name}: Skipped group:")
                logger.error(exc)
            else:
                groups.append(record)
                fold_group_record(scope_stats, record)
            if progress_callback is not None:
                progress_callback(processed + 1, total, raw_group.distinguished_name)

        logger.info(f"Analysed {len(groups)} groups, skipped {len(skipped)}")
        return AnalysisResult(groups=groups, scope_stats=scope_stats, skipped_groups=skipped)
