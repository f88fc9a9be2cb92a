from __future__ import annotations

import json

from scriptgate.cli import main
from tests.helpers.projects import ProjectBuilder


def test_list_command_prints_report(project: ProjectBuilder, capsys) -> None:
    project.add_package("node_modules/left-pad", scripts={"postinstall": "x"})
    project.policy = {"old-dep": True}
    project.write()

    exit_code = main(["--project-dir", str(project.root), "list"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "# unconfigured packages!\n- left-pad [1 location(s)]" in out
    assert "- old-dep [0 location(s)]" in out


def test_list_command_json(project: ProjectBuilder, capsys) -> None:
    project.add_package("node_modules/left-pad", scripts={"postinstall": "x"})
    project.policy = {"left-pad": False}
    project.write()

    exit_code = main(["--project-dir", str(project.root), "list", "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["disallowed"] == [{"name": "left-pad", "locations": 1}]
    assert payload["missing"] == []


def test_run_with_unconfigured_dependencies_exits_non_zero(
    project: ProjectBuilder, capsys
) -> None:
    project.add_package("node_modules/left-pad", scripts={"postinstall": "touch ran"})
    project.write()

    exit_code = main(["--project-dir", str(project.root), "run"])

    assert exit_code == 1
    out = capsys.readouterr().out
    assert "packages missing configuration:\n- left-pad [1 location(s)]" in out
    assert not (project.root / "node_modules" / "left-pad" / "ran").exists()


def test_auto_updates_policy(project: ProjectBuilder, capsys) -> None:
    project.add_package("node_modules/left-pad", scripts={"postinstall": "x"})
    project.write()

    exit_code = main(["--project-dir", str(project.root), "auto"])

    assert exit_code == 0
    assert "- left-pad" in capsys.readouterr().out
    assert project.read_manifest()["lavamoat"]["allowScripts"] == {"left-pad": False}


def test_errors_are_reported_on_stderr(project: ProjectBuilder, capsys) -> None:
    project.add_package("node_modules/broken", installed=False)
    project.write()

    exit_code = main(["--project-dir", str(project.root), "list"])

    assert exit_code == 1
    assert "scriptgate: error: manifest missing" in capsys.readouterr().err


def test_invalid_config_file_is_reported(project: ProjectBuilder, capsys) -> None:
    project.write()
    (project.root / ".scriptgate.yaml").write_text("scan_workers: nope\n", encoding="utf-8")

    exit_code = main(["--project-dir", str(project.root), "list"])

    assert exit_code == 1
    assert "invalid configuration" in capsys.readouterr().err


def test_setup_command(project: ProjectBuilder, capsys) -> None:
    project.write()

    exit_code = main(["--project-dir", str(project.root), "setup"])

    assert exit_code == 0
    written = json.loads(capsys.readouterr().out)["written"]
    assert len(written) == 2
