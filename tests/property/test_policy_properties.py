"""Property-based checks for reconciliation partitions and sync."""

from __future__ import annotations

from pathlib import Path

import pytest

from scriptgate.errors import UnconfiguredDependencyError
from scriptgate.executor import GatedExecutor
from scriptgate.models import LifecycleScriptGroups, Location
from scriptgate.policy import apply_sync, ensure_configured, reconcile
from tests.helpers.projects import RecordingRunner

hypothesis = pytest.importorskip("hypothesis")
given = hypothesis.given
st = pytest.importorskip("hypothesis.strategies")

_names = st.text(alphabet="abcdefghij-@/", min_size=1, max_size=8)
_group_names = st.lists(_names, unique=True, max_size=8)
_policies = st.dictionaries(keys=_names, values=st.booleans(), max_size=8)


def _groups(names: list[str]) -> LifecycleScriptGroups:
    return LifecycleScriptGroups(
        {
            name: [Location(qualified_name=name, path=Path("/nm") / name, scripts={"install": "x"})]
            for name in names
        }
    )


@given(_group_names, _policies)
def test_partitions_are_disjoint(names: list[str], policy: dict[str, bool]) -> None:
    result = reconcile(_groups(names), policy)

    assert not set(result.missing) & set(result.excess)
    assert not set(result.allowed) & set(result.disallowed)
    assert set(result.allowed) | set(result.disallowed) == set(policy)
    assert not set(result.missing) & set(result.allowed)


@given(_group_names, _policies)
def test_sync_is_idempotent(names: list[str], policy: dict[str, bool]) -> None:
    groups = _groups(names)

    once = apply_sync(policy, reconcile(groups, policy))
    twice = apply_sync(once.policy, reconcile(groups, once.policy))

    assert dict(twice.policy) == dict(once.policy)
    assert twice.changed is False
    assert reconcile(groups, once.policy).missing == ()
    assert reconcile(groups, once.policy).excess == ()


@given(_group_names, _policies)
def test_missing_entries_block_execution(names: list[str], policy: dict[str, bool]) -> None:
    groups = _groups(names)
    result = reconcile(groups, policy)
    runner = RecordingRunner()

    def _guarded_run() -> None:
        ensure_configured(result, groups)
        GatedExecutor(runner).execute(groups, result.allowed, Path("/project"))

    if result.missing:
        with pytest.raises(UnconfiguredDependencyError):
            _guarded_run()
        assert runner.calls == []
    else:
        _guarded_run()
        ran = {path for event, path in runner.calls if path != Path("/project")}
        assert ran == {Path("/nm") / name for name in names if policy.get(name) is True}
