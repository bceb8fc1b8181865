"""Unit tests for the task command group."""

from unittest.mock import patch

import tomlkit
from click.testing import CliRunner

from taskdeck.cli.main import main
from taskdeck.manifest.manifest import Manifest


def _tasks(path, *keys):
    table = tomlkit.parse(path.read_text())
    for key in keys or ("tasks",):
        table = table[key]
    return table.unwrap()


class TestMainCommand:
    """Test the top level command."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_help(self):
        result = self.runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Manage the tasks declared in a project manifest" in result.output

    def test_version(self):
        result = self.runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_verbose_and_quiet_conflict(self):
        result = self.runner.invoke(main, ["--verbose", "--quiet", "task", "list"])
        assert result.exit_code == 2
        assert "Cannot use both --verbose and --quiet" in result.output

    def test_task_help_lists_commands(self):
        result = self.runner.invoke(main, ["task", "--help"])
        assert result.exit_code == 0
        for name in ("add", "remove", "alias", "list"):
            assert name in result.output

    def test_missing_manifest(self, tmp_path):
        result = self.runner.invoke(
            main, ["task", "--manifest-path", str(tmp_path / "none.toml"), "list"]
        )
        assert result.exit_code == 1
        assert "manifest not found" in result.output


class TestAddCommand:
    """Test `task add`."""

    def setup_method(self):
        self.runner = CliRunner()

    def invoke(self, manifest_path, *args):
        return self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), "add", *args]
        )

    def test_add_plain(self, manifest_path):
        result = self.invoke(manifest_path, "lint", "ruff check .")
        assert result.exit_code == 0, result.output
        assert "Added task `lint`: ruff check ." in result.output
        assert _tasks(manifest_path)["lint"] == "ruff check ."

    def test_add_quotes_multiple_tokens(self, manifest_path):
        result = self.invoke(manifest_path, "hello", "echo", "hello world")
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["hello"] == "echo 'hello world'"

    def test_add_passes_dash_arguments(self, manifest_path):
        result = self.invoke(manifest_path, "listing", "ls", "-la")
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["listing"] == "ls -la"

    def test_add_execute(self, manifest_path):
        result = self.invoke(
            manifest_path,
            "serve",
            "python -m http.server",
            "--depends-on",
            "build",
            "--cwd",
            "site",
            "--env",
            "PORT=8000",
            "--env",
            "URL=http://x/?a=b",
            "--clean-env",
        )
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["serve"] == {
            "cmd": "python -m http.server",
            "depends-on": ["build"],
            "cwd": "site",
            "env": {"PORT": "8000", "URL": "http://x/?a=b"},
        }

    def test_add_alias_through_empty_command(self, manifest_path):
        result = self.invoke(
            manifest_path, "all", "", "--depends-on", "build", "--depends-on", "test"
        )
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["all"] == {"depends-on": ["build", "test"]}

    def test_add_platform_and_feature(self, manifest_path):
        result = self.invoke(
            manifest_path, "nvcc", "nvcc main.cu", "--platform", "linux-64", "--feature", "cuda"
        )
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path, "feature", "cuda", "target", "linux-64", "tasks") == {
            "nvcc": "nvcc main.cu"
        }

    def test_add_overwrites(self, manifest_path):
        result = self.invoke(manifest_path, "build", "make")
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["build"] == "make"

    def test_invalid_env_pair(self, manifest_path):
        before = manifest_path.read_text()
        result = self.invoke(manifest_path, "x", "run", "--env", "FOO")
        assert result.exit_code == 2
        assert "no `=` found in `FOO`" in result.output
        assert manifest_path.read_text() == before

    def test_invalid_platform(self, manifest_path):
        result = self.invoke(manifest_path, "x", "run", "--platform", "amiga")
        assert result.exit_code == 2

    def test_invalid_feature(self, manifest_path):
        result = self.invoke(manifest_path, "x", "run", "--feature", "bad name")
        assert result.exit_code == 1
        assert "invalid feature name" in result.output

    def test_name_with_whitespace_rejected(self, manifest_path):
        before = manifest_path.read_text()
        result = self.invoke(manifest_path, "my task", "echo hi")
        assert result.exit_code == 2
        assert "cannot be empty or contain whitespace" in result.output
        assert manifest_path.read_text() == before

    def test_misplaced_dependency_rejected(self, manifest_path):
        """`--depends-on` takes one name, the rest must not become the command."""
        before = manifest_path.read_text()
        result = self.invoke(manifest_path, "ci", "", "--depends-on", "build", "test")
        assert result.exit_code == 2
        assert "pass every dependency with its own --depends-on" in result.output
        assert manifest_path.read_text() == before

    def test_quiet(self, manifest_path):
        result = self.runner.invoke(
            main,
            ["--quiet", "task", "--manifest-path", str(manifest_path), "add", "x", "y"],
        )
        assert result.exit_code == 0
        assert "Added task" not in result.output

    def test_short_alias(self, manifest_path):
        result = self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), "a", "x", "y"]
        )
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path)["x"] == "y"


class TestRemoveCommand:
    """Test `task remove`."""

    def setup_method(self):
        self.runner = CliRunner()

    def invoke(self, manifest_path, *args, command="remove"):
        return self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), command, *args]
        )

    def test_remove(self, manifest_path):
        result = self.invoke(manifest_path, "test")
        assert result.exit_code == 0, result.output
        assert "Removed task `test`" in result.output
        assert list(_tasks(manifest_path)) == ["build"]

    def test_remove_missing_warns_and_keeps_file(self, manifest_path):
        before = manifest_path.read_text()
        result = self.invoke(manifest_path, "ghost")
        assert result.exit_code == 0
        assert result.output.count("does not exist") == 1
        assert "Task `ghost` does not exist for the `default` feature" in result.output
        assert manifest_path.read_text() == before

    def test_remove_missing_on_platform(self, manifest_path):
        result = self.invoke(manifest_path, "build", "--platform", "linux-64")
        assert result.exit_code == 0
        assert "Task 'build' does not exist on linux-64" in result.output

    def test_remove_from_feature(self, manifest_path):
        result = self.invoke(manifest_path, "train", "--feature", "cuda")
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path, "feature", "cuda", "tasks") == {}

    def test_batch_checks_before_removing(self, manifest_path):
        result = self.invoke(manifest_path, "build", "ghost", "phantom", "test")
        assert result.exit_code == 0, result.output
        assert result.output.count("does not exist") == 2
        last_warning = result.output.rindex("does not exist")
        assert last_warning < result.output.index("Removed task `build`")
        assert result.output.index("Removed task `build`") < result.output.index(
            "Removed task `test`"
        )
        assert _tasks(manifest_path) == {}

    def test_saves_after_every_removal(self, manifest_path):
        with patch.object(Manifest, "save", autospec=True) as save:
            result = self.invoke(manifest_path, "build", "ghost", "test")
        assert result.exit_code == 0, result.output
        assert save.call_count == 2

    def test_rm_alias(self, manifest_path):
        result = self.invoke(manifest_path, "build", command="rm")
        assert result.exit_code == 0, result.output
        assert "build" not in _tasks(manifest_path)

    def test_requires_a_name(self, manifest_path):
        result = self.invoke(manifest_path)
        assert result.exit_code == 2


class TestAliasCommand:
    """Test `task alias`."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_alias(self, manifest_path):
        result = self.runner.invoke(
            main,
            ["task", "--manifest-path", str(manifest_path), "alias", "all", "build", "test"],
        )
        assert result.exit_code == 0, result.output
        assert "Added alias `all`: depends-on = ['build', 'test']" in result.output
        assert _tasks(manifest_path)["all"] == {"depends-on": ["build", "test"]}

    def test_alias_on_platform(self, manifest_path):
        result = self.runner.invoke(
            main,
            [
                "task",
                "--manifest-path",
                str(manifest_path),
                "@",
                "ci",
                "build",
                "--platform",
                "win-64",
            ],
        )
        assert result.exit_code == 0, result.output
        assert _tasks(manifest_path, "target", "win-64", "tasks")["ci"] == {
            "depends-on": ["build"]
        }

    def test_alias_name_with_whitespace_rejected(self, manifest_path):
        before = manifest_path.read_text()
        result = self.runner.invoke(
            main,
            [
                "task",
                "--manifest-path",
                str(manifest_path),
                "alias",
                "all of it",
                "build",
            ],
        )
        assert result.exit_code == 2
        assert manifest_path.read_text() == before

    def test_alias_requires_dependencies(self, manifest_path):
        result = self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), "alias", "all"]
        )
        assert result.exit_code == 2


class TestListCommand:
    """Test `task list`."""

    def setup_method(self):
        self.runner = CliRunner()

    def invoke(self, manifest_path, *args):
        return self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), "list", *args]
        )

    def test_list_compatible_environments(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path)
        assert result.exit_code == 0, result.output
        assert "Tasks that can run on this machine:" in result.output
        assert "build, fmt, test" in result.output
        assert "train" not in result.output

    def test_list_includes_cuda_when_available(
        self, manifest_path, linux_machine, monkeypatch
    ):
        monkeypatch.setenv("TASKDECK_OVERRIDE_CUDA", "12.4")
        result = self.invoke(manifest_path, "--machine-readable")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "build fmt test train"

    def test_machine_readable(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path, "--machine-readable")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "build fmt test"

    def test_machine_readable_sorted(self, tmp_path, linux_machine):
        path = tmp_path / "taskdeck.toml"
        path.write_text('[tasks]\nb = "b"\na = "a"\nc = "c"\n')
        result = self.invoke(path, "--machine-readable")
        assert result.output.strip() == "a b c"

    def test_explicit_environment(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path, "--environment", "cuda", "--machine-readable")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "build test train"

    def test_unknown_environment(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path, "-e", "nope")
        assert result.exit_code == 1
        assert "unknown environment 'nope'" in result.output
        assert "Tasks that can run" not in result.output

    def test_machine_readable_goes_to_stdout_only(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path, "--machine-readable")
        assert result.exit_code == 0, result.output
        assert result.stdout == "build fmt test\n"
        assert result.stderr == ""

    def test_machine_readable_splits_into_task_names(
        self, manifest_path, linux_machine
    ):
        self.runner.invoke(
            main,
            ["task", "--manifest-path", str(manifest_path), "add", "my task", "echo"],
        )
        self.runner.invoke(
            main,
            ["task", "--manifest-path", str(manifest_path), "add", "other", "echo"],
        )
        result = self.invoke(manifest_path, "--machine-readable")
        assert result.exit_code == 0, result.output
        assert result.stdout.split() == ["build", "fmt", "other", "test"]

    def test_listing_on_stdout_and_messages_on_stderr(self, tmp_path, linux_machine):
        path = tmp_path / "taskdeck.toml"
        path.write_text("")
        result = self.invoke(path)
        assert result.stdout == ""
        assert "No tasks found" in result.stderr

        path.write_text('[tasks]\nbuild = "make"\n')
        result = self.invoke(path)
        assert result.stdout.startswith("Tasks that can run on this machine:\n")
        assert result.stderr == ""

    def test_summary(self, manifest_path, linux_machine):
        result = self.invoke(manifest_path, "--summary")
        assert result.exit_code == 0, result.output
        assert "Tasks per environment:" in result.output
        lines = result.output.splitlines()
        assert "default : build, test" in lines
        assert "cuda    : build, test, train" in lines
        assert "lint    : fmt" in lines

    def test_no_tasks(self, tmp_path, linux_machine):
        path = tmp_path / "taskdeck.toml"
        path.write_text('[workspace]\nname = "empty"\n')
        result = self.invoke(path)
        assert result.exit_code == 0
        assert "No tasks found" in result.output

    def test_ls_alias(self, manifest_path, linux_machine):
        result = self.runner.invoke(
            main, ["task", "--manifest-path", str(manifest_path), "ls", "--machine-readable"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "build fmt test"
