# type: ignore
import random
import pytest
from analysis.models import GroupRecord, ScopeStatistics
from analysis.scope_statistics import (
    fold_group_record,
    fold_group_records,
    seed_scope_statistics,
)

FINANCE = "OU=Finance,DC=example,DC=com"
IT = "OU=IT,DC=example,DC=com"


def make_record(scope_id, name, users, disabled, groups=0, computers=0, ancestors=0):
    return GroupRecord(
        name=name,
        sam_account_name=name,
        distinguished_name=f"CN={name},{scope_id}",
        scope_id=scope_id,
        category="Security",
        scope="Global",
        created_at=None,
        user_member_count=users,
        group_member_count=groups,
        computer_member_count=computers,
        enabled_user_count=users - disabled,
        disabled_user_count=disabled,
        ancestor_group_count=ancestors,
    )


RECORDS = [
    make_record(FINANCE, "fin-a", users=10, disabled=2, ancestors=3),
    make_record(IT, "it-a", users=4, disabled=0, computers=6, ancestors=1),
    make_record(FINANCE, "fin-b", users=0, disabled=0, groups=2, ancestors=5),
    make_record(IT, "it-b", users=7, disabled=7, ancestors=0),
    make_record(FINANCE, "fin-c", users=3, disabled=1, computers=1, ancestors=2),
]


def seeded():
    scope_stats = {}
    seed_scope_statistics(scope_stats, FINANCE, 3)
    seed_scope_statistics(scope_stats, IT, 2)
    return scope_stats


class TestScopeStatistics:
    def test_seed_starts_at_zero(self) -> None:
        scope_stats = {}
        stats = seed_scope_statistics(scope_stats, FINANCE, 4)
        assert stats == ScopeStatistics(group_count=4)
        assert scope_stats[FINANCE] is stats

    def test_fold_single_record(self) -> None:
        scope_stats = seeded()
        fold_group_record(scope_stats, RECORDS[0])
        assert scope_stats[FINANCE] == ScopeStatistics(
            group_count=3,
            enabled_member_count=8,
            disabled_member_count=2,
            total_member_count=10,
            nested_group_total=3,
            max_nesting_depth=3,
        )
        assert scope_stats[IT] == ScopeStatistics(group_count=2)

    def test_fold_does_not_change_group_count(self) -> None:
        scope_stats = seeded()
        fold_group_records(scope_stats, RECORDS)
        assert scope_stats[FINANCE].group_count == 3
        assert scope_stats[IT].group_count == 2

    def test_interleaved_scopes(self) -> None:
        scope_stats = fold_group_records(seeded(), RECORDS)
        assert scope_stats[FINANCE] == ScopeStatistics(
            group_count=3,
            enabled_member_count=8 + 0 + 2,
            disabled_member_count=2 + 0 + 1,
            total_member_count=10 + 2 + 4,
            nested_group_total=3 + 5 + 2,
            max_nesting_depth=5,
        )
        assert scope_stats[IT] == ScopeStatistics(
            group_count=2,
            enabled_member_count=4 + 0,
            disabled_member_count=0 + 7,
            total_member_count=10 + 7,
            nested_group_total=1,
            max_nesting_depth=1,
        )

    @pytest.mark.parametrize("seed", range(10))
    def test_order_does_not_matter(self, seed) -> None:
        expected = fold_group_records(seeded(), RECORDS)
        shuffled = list(RECORDS)
        random.Random(seed).shuffle(shuffled)
        assert fold_group_records(seeded(), shuffled) == expected

    def test_unseeded_scope_starts_from_zero(self) -> None:
        scope_stats = {}
        fold_group_record(scope_stats, RECORDS[1])
        assert scope_stats[IT].group_count == 0
        assert scope_stats[IT].total_member_count == 10

    def test_average_nesting(self) -> None:
        scope_stats = fold_group_records(seeded(), RECORDS)
        assert scope_stats[FINANCE].average_nesting == pytest.approx(10 / 3)
        assert ScopeStatistics().average_nesting == 0.0
