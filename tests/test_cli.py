"""
Tests for the command line interface.
"""

import logging
from unittest.mock import patch

import pytest

import localsetup
from localsetup.cli import CLI, main
from localsetup.core.exceptions import InstallStepError


class TestArgumentParsing:
    """Test CLI argument parsing."""

    def test_localdir(self, tmp_path):
        args = CLI().parse_args([str(tmp_path)])

        assert args.localdir == tmp_path
        assert args.config is None
        assert not args.verbose

    def test_options(self, tmp_path):
        args = CLI().parse_args(["-v", "--config", "tools.yaml", str(tmp_path)])

        assert args.verbose
        assert str(args.config) == "tools.yaml"

    @pytest.mark.parametrize("argv", [[], ["one", "two"]])
    def test_wrong_argument_count_exits_1(self, argv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            CLI().parse_args(argv)

        assert exc_info.value.code == 1
        assert "usage: local-setup" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            CLI().parse_args(["--version"])

        assert exc_info.value.code == 0
        output = capsys.readouterr().out.strip()
        assert output == f"local-setup {localsetup.__version__}"


class TestRun:
    """Test CLI.run()."""

    def test_success(self, tmp_path):
        with patch("localsetup.cli.runner.run") as mock_run:
            assert CLI().run([str(tmp_path)]) == 0

        config = mock_run.call_args[0][0]
        assert config.localdir == tmp_path

    def test_config_file_and_environment(self, tmp_path, monkeypatch):
        tools = tmp_path / "tools.yaml"
        tools.write_text("tools:\n  - name: yarn\n    version: '1.22.15'\n")
        monkeypatch.setenv("LOCAL_ENV_EXCLUDE", "nothing")

        with patch("localsetup.cli.runner.run") as mock_run:
            assert CLI().run(["--config", str(tools), str(tmp_path / "local")]) == 0

        config = mock_run.call_args[0][0]
        assert [t.manifest_name for t in config.tools] == ["yarn-v1.22.15.tar.gz"]
        assert config.exclude.pattern == "nothing"

    def test_install_failure_returns_1(self, tmp_path, caplog):
        error = InstallStepError("node.tar.xz", "install", RuntimeError("boom"))

        # basicConfig(force=True) would drop the caplog handler
        with patch("localsetup.cli.runner.run", side_effect=error), patch.object(
            CLI, "_configure_logging"
        ):
            with caplog.at_level(logging.ERROR):
                assert CLI().run([str(tmp_path)]) == 1

        assert "Failed to install node.tar.xz: boom" in caplog.text

    def test_config_error_returns_1(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOCAL_ENV_EXCLUDE", "(")

        with patch("localsetup.cli.runner.run") as mock_run:
            assert CLI().run([str(tmp_path)]) == 1

        mock_run.assert_not_called()

    def test_keyboard_interrupt(self, tmp_path):
        with patch("localsetup.cli.runner.run", side_effect=KeyboardInterrupt):
            assert CLI().run([str(tmp_path)]) == 130


class TestMain:
    """Test main() entry point."""

    def test_exit_code(self, tmp_path):
        with patch("sys.argv", ["local-setup", str(tmp_path)]), patch(
            "localsetup.cli.runner.run"
        ):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
