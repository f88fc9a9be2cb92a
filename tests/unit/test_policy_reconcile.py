from __future__ import annotations

from pathlib import Path

from scriptgate.models import LifecycleScriptGroups, Location
from scriptgate.policy import reconcile


def _groups(*names: str) -> LifecycleScriptGroups:
    return LifecycleScriptGroups(
        {
            name: [Location(qualified_name=name, path=Path("/p") / name, scripts={"install": "x"})]
            for name in names
        }
    )


def test_unconfigured_package_is_missing_not_allowed() -> None:
    result = reconcile(_groups("left-pad"), {})

    assert result.missing == ("left-pad",)
    assert result.allowed == ()
    assert result.is_configured is False


def test_partitions_follow_policy_and_scan_order() -> None:
    groups = _groups("zeta", "alpha", "new-dep")
    policy = {"alpha": True, "old-dep": True, "zeta": False, "other": False}

    result = reconcile(groups, policy)

    assert result.allowed == ("alpha", "old-dep")
    assert result.disallowed == ("zeta", "other")
    assert result.missing == ("new-dep",)
    assert result.excess == ("old-dep", "other")


def test_allowed_entries_without_scripts_still_count_as_allowed() -> None:
    result = reconcile(_groups(), {"old-dep": True})

    assert result.allowed == ("old-dep",)
    assert result.excess == ("old-dep",)


def test_non_boolean_values_are_neither_allowed_nor_missing() -> None:
    groups = _groups("truthy", "nulled")
    result = reconcile(groups, {"truthy": "yes", "nulled": None, "one": 1})

    assert result.allowed == ()
    assert result.disallowed == ()
    assert result.missing == ()
    assert result.excess == ("one",)


def test_payload_reports_location_counts() -> None:
    groups = LifecycleScriptGroups(
        {
            "dep": [
                Location(qualified_name="dep", path=Path("/a"), scripts={"install": "x"}),
                Location(qualified_name="dep", path=Path("/b"), scripts={"install": "x"}),
            ]
        }
    )

    payload = reconcile(groups, {"dep": True}).to_payload(groups)

    assert payload["allowed"] == [{"name": "dep", "locations": 2}]
    assert payload["missing"] == []
