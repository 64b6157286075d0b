"""CLI tests."""

import json

import pytest

from auditagent.main import main, build_parser


def test_defaults():
    args = build_parser().parse_args([])
    assert args.provider == "scaffold"
    assert args.read_scope == "workspace"
    assert args.timeout == 120.0
    assert not args.fail_fast


def test_scaffold_end_to_end(sample_project, capsys):
    code = main(["--project-root", str(sample_project)])

    assert code == 0
    out = capsys.readouterr().out
    assert "Iterations processed: 3" in out
    assert "Source files analyzed: 3" in out

    state = json.loads((sample_project / ".tx3" / "audit" / "state.json").read_text())
    assert [it["status"] for it in state["iterations"]] == ["scaffolded"] * 3
    assert state["provider"]["model"] is None
    assert state["iterations"][0]["next_prompt"]["text"].startswith(
        "Scaffold follow-up placeholder for skill 'state-transition-001'")

    report = (sample_project / ".tx3" / "audit" / "vulnerabilities.md").read_text()
    assert "- *(none)*" in report


def test_custom_outputs_and_extension(sample_project, capsys):
    (sample_project / "main.tx3").write_text("protocol {}\n")
    code = main(["--project-root", str(sample_project), "--ext", ".tx3",
                 "--state-out", "out/s.json", "--report-out", "out/r.md"])

    assert code == 0
    assert "Source files analyzed: 1" in capsys.readouterr().out
    assert (sample_project / "out" / "s.json").is_file()
    assert (sample_project / "out" / "r.md").is_file()


@pytest.mark.parametrize("argv, message", [
    (["--provider", "gemini"], "Unsupported provider"),
    (["--provider", "openai", "--api-key-env", "AUDITAGENT_TEST_UNSET_KEY"],
     "AUDITAGENT_TEST_UNSET_KEY"),
    (["--skills-dir", "no/such/dir"], "not found"),
])
def test_configuration_errors(sample_project, capsys, monkeypatch, argv, message):
    monkeypatch.delenv("AUDITAGENT_TEST_UNSET_KEY", raising=False)

    code = main(["--project-root", str(sample_project), *argv])

    assert code == 1
    captured = capsys.readouterr()
    assert message in captured.err
    assert captured.out == ""
    assert not (sample_project / ".tx3").exists()


def test_invalid_read_scope_is_rejected_by_parser(capsys):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--read-scope", "everything"])


@pytest.mark.parametrize("flag", ["--state-out", "--report-out"])
def test_unwritable_output_is_reported(sample_project, capsys, flag):
    code = main(["--project-root", str(sample_project), flag, "README.md/out"])

    assert code == 1
    captured = capsys.readouterr()
    assert "Failed to write" in captured.err
    assert "README.md" in captured.err
    assert captured.out == ""


def test_unreadable_source_directory_is_reported(sample_project, capsys, deny_directory):
    deny_directory(sample_project / "validators")

    code = main(["--project-root", str(sample_project)])

    assert code == 1
    assert "Failed to read directory" in capsys.readouterr().err
    assert not (sample_project / ".tx3").exists()
