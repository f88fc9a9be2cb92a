from __future__ import annotations

import json

import pytest

from scriptgate.errors import ManifestCorruptionError, TreeLoadError
from scriptgate.scanner import scan
from scriptgate.tree import each_node_in_tree, load_tree
from tests.helpers.projects import ProjectBuilder, write_manifest


def test_lockfile_nodes_carry_paths_and_parents(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a")
    project.add_package("node_modules/a/node_modules/b", optional=True)
    project.add_package("node_modules/@scope/c")
    project.write()

    tree = load_tree(project.root)

    assert tree.source == "lockfile"
    assert list(tree.nodes) == [
        "node_modules/@scope/c",
        "node_modules/a",
        "node_modules/a/node_modules/b",
    ]
    nested = tree.nodes["node_modules/a/node_modules/b"]
    assert nested.path == project.root / "node_modules" / "a" / "node_modules" / "b"
    assert nested.parent == "node_modules/a"
    assert nested.optional is True
    assert tree.nodes["node_modules/@scope/c"].name == "@scope/c"


def test_each_node_yields_branch_from_top_level(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a", optional=True)
    project.add_package("node_modules/a/node_modules/b")
    project.write()

    visits = {visit.node.location: visit for visit in each_node_in_tree(load_tree(project.root))}

    branch = [member.location for member in visits["node_modules/a/node_modules/b"].branch]
    assert branch == ["node_modules/a", "node_modules/a/node_modules/b"]
    assert visits["node_modules/a/node_modules/b"].branch_is_optional is True
    assert "" not in visits


def test_link_entries_are_skipped(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a")
    project.packages["node_modules/workspace-lib"] = {"resolved": "packages/lib", "link": True}
    project.write()

    assert list(load_tree(project.root).nodes) == ["node_modules/a"]


def test_aliased_lockfile_entry_uses_real_name(project: ProjectBuilder) -> None:
    project.add_package("node_modules/alias", name="real-package")
    project.write()

    assert load_tree(project.root).nodes["node_modules/alias"].name == "real-package"


def test_disk_walk_without_lockfile(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a")
    project.add_package("node_modules/a/node_modules/b")
    project.add_package("node_modules/@scope/c")
    project.write(lockfile=False)
    (project.root / "node_modules" / ".bin").mkdir()

    tree = load_tree(project.root)

    assert tree.source == "node_modules"
    assert set(tree.nodes) == {
        "node_modules/a",
        "node_modules/a/node_modules/b",
        "node_modules/@scope/c",
    }
    assert tree.nodes["node_modules/a/node_modules/b"].parent == "node_modules/a"


def test_disk_walk_marks_optional_dependencies(project: ProjectBuilder) -> None:
    write_manifest(
        project.root,
        {"name": "p", "version": "0.0.0", "optionalDependencies": {"fsevents": "^2"}},
    )
    write_manifest(project.root / "node_modules" / "fsevents", {"name": "fsevents"})

    tree = load_tree(project.root, use_lockfile=False)

    assert tree.nodes["node_modules/fsevents"].optional is True


def test_lockfile_v1_falls_back_to_disk(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a")
    project.write(lockfile=False)
    (project.root / "package-lock.json").write_text(
        json.dumps({"lockfileVersion": 1, "dependencies": {}}), encoding="utf-8"
    )

    tree = load_tree(project.root)

    assert tree.source == "node_modules"
    assert list(tree.nodes) == ["node_modules/a"]


def test_missing_project_manifest_raises(tmp_path) -> None:
    with pytest.raises(TreeLoadError, match="cannot load project manifest"):
        load_tree(tmp_path)


def test_corrupt_lockfile_raises(project: ProjectBuilder) -> None:
    project.write(lockfile=False)
    (project.root / "package-lock.json").write_text("{", encoding="utf-8")

    with pytest.raises(TreeLoadError, match="failed to parse lockfile"):
        load_tree(project.root)


def test_undecodable_lockfile_raises(project: ProjectBuilder) -> None:
    project.write(lockfile=False)
    (project.root / "package-lock.json").write_bytes(b'{"packages": {"\xff": {}}}')

    with pytest.raises(TreeLoadError, match="failed to parse lockfile"):
        load_tree(project.root)


def test_root_optional_names_do_not_leak_into_nested_installs(project: ProjectBuilder) -> None:
    write_manifest(
        project.root,
        {"name": "p", "version": "0.0.0", "optionalDependencies": {"fsevents": "^2"}},
    )
    write_manifest(
        project.root / "node_modules" / "a",
        {"name": "a", "version": "1.0.0", "dependencies": {"fsevents": "^2"}},
    )
    (project.root / "node_modules" / "a" / "node_modules" / "fsevents").mkdir(parents=True)

    tree = load_tree(project.root, use_lockfile=False)

    assert tree.nodes["node_modules/a/node_modules/fsevents"].optional is False
    with pytest.raises(ManifestCorruptionError, match="required dependency 'fsevents'"):
        scan(tree)


def test_dev_optional_lockfile_entries_are_required(project: ProjectBuilder) -> None:
    project.add_package("node_modules/a", optional=True)
    project.add_package("node_modules/b")
    project.write()
    lock_path = project.root / "package-lock.json"
    lock = json.loads(lock_path.read_text(encoding="utf-8"))
    lock["packages"]["node_modules/b"]["devOptional"] = True
    lock_path.write_text(json.dumps(lock), encoding="utf-8")

    tree = load_tree(project.root)

    assert tree.nodes["node_modules/a"].optional is True
    assert tree.nodes["node_modules/b"].optional is False
