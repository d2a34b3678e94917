"""Tests for dockerdev.utils module."""
import logging

import pytest
import sh
from unittest.mock import patch, MagicMock

from dockerdev import utils
from dockerdev.errors import CommandFailed


class ExitCodeThree(sh.ErrorReturnCode):
    exit_code = 3


def test_command_exists_when_command_found():
    """Test command_exists returns True when command is found."""
    with patch('shutil.which', return_value='/usr/bin/docker'):
        assert utils.command_exists('docker') is True


def test_command_exists_when_command_not_found():
    """Test command_exists returns False when command not found."""
    with patch('shutil.which', return_value=None):
        assert utils.command_exists('nonexistent') is False


def test_get_real_user_when_sudo():
    """Test get_real_user returns SUDO_USER when running with sudo."""
    with patch.dict('os.environ', {'SUDO_USER': 'testuser', 'USER': 'root'}):
        assert utils.get_real_user() == 'testuser'


def test_get_real_user_when_not_sudo():
    """Test get_real_user returns USER when not running with sudo."""
    with patch.dict('os.environ', {'USER': 'normaluser'}, clear=True):
        assert utils.get_real_user() == 'normaluser'


class TestRunCommand:
    """Tests for structured external command invocation."""

    @patch('dockerdev.utils.sh')
    def test_returns_captured_output(self, mock_sh):
        """Test the command's stdout is returned as a string."""
        mock_sh.Command.return_value.return_value = "web  running\n"

        output = utils.run_command('docker-compose', 'ps')

        assert output == "web  running\n"
        mock_sh.Command.assert_called_once_with('docker-compose')
        mock_sh.Command.return_value.assert_called_once_with('ps', _decode_errors="replace")

    @patch('dockerdev.utils.sh')
    def test_sudo_prefixes_the_program(self, mock_sh):
        """Test sudo runs as its own program with the given argv after it."""
        utils.run_command('service', 'docker', 'start', sudo=True)

        mock_sh.Command.assert_called_once_with('sudo')
        mock_sh.Command.return_value.assert_called_once_with('service', 'docker', 'start', _decode_errors="replace")

    @patch('dockerdev.utils.sh')
    def test_captured_output_is_decoded_leniently(self, mock_sh):
        """Test invalid bytes in output are replaced instead of raising."""
        utils.run_command('dory', 'status')

        assert mock_sh.Command.return_value.call_args.kwargs == {'_decode_errors': 'replace'}

    @patch('dockerdev.utils.sh')
    def test_interactive_runs_in_foreground(self, mock_sh):
        """Test interactive commands are run with _fg and nothing is captured."""
        output = utils.run_command('docker-compose', 'build', '--pull', interactive=True)

        assert output == ""
        mock_sh.Command.return_value.assert_called_once_with('build', '--pull', _fg=True)

    @patch('dockerdev.utils.sh')
    def test_missing_program_raises_command_failed(self, mock_sh):
        """Test a program missing from PATH is reported with exit code 127."""
        mock_sh.CommandNotFound = sh.CommandNotFound
        mock_sh.ErrorReturnCode = sh.ErrorReturnCode
        mock_sh.Command.side_effect = sh.CommandNotFound('dory')

        with pytest.raises(CommandFailed) as exc_info:
            utils.run_command('dory', 'status')

        assert exc_info.value.exit_code == 127
        assert exc_info.value.command == ['dory', 'status']

    @patch('dockerdev.utils.sh')
    def test_nonzero_exit_raises_command_failed(self, mock_sh):
        """Test a non-zero exit keeps the command's exit code."""
        mock_sh.CommandNotFound = sh.CommandNotFound
        mock_sh.ErrorReturnCode = sh.ErrorReturnCode
        mock_sh.Command.return_value.side_effect = ExitCodeThree('docker ps', b'', b'denied')

        with pytest.raises(CommandFailed) as exc_info:
            utils.run_command('docker', 'ps')

        assert exc_info.value.exit_code == 3
        assert "docker ps" in str(exc_info.value)


def test_log_info(capsys):
    """Test log_info outputs formatted message."""
    utils.log_info("Test message")
    captured = capsys.readouterr()
    assert "[INFO] Test message\n" == captured.out


def test_log_action(capsys):
    """Test log_action outputs indented message."""
    utils.log_action("Building docker images")
    captured = capsys.readouterr()
    assert "  -> Building docker images\n" == captured.out


def test_log_warning(capsys):
    """Test log_warning outputs a warning line."""
    utils.log_warning("Copy failed")
    captured = capsys.readouterr()
    assert "[WARN] Copy failed\n" == captured.out


def test_log_error_goes_to_stderr(capsys):
    """Test log_error writes to stderr."""
    utils.log_error("Step failed")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[ERROR] Step failed\n" == captured.err


@patch('dockerdev.utils.logging.basicConfig')
def test_setup_logging_reads_level_from_environment(mock_basic_config):
    """Test setup_logging honours DOCKER_DEV_LOG_LEVEL."""
    with patch.dict('os.environ', {'DOCKER_DEV_LOG_LEVEL': 'debug'}):
        utils.setup_logging()

    assert mock_basic_config.call_args.kwargs['level'] == logging.DEBUG


@patch('dockerdev.utils.logging.basicConfig')
def test_setup_logging_defaults_to_warning(mock_basic_config):
    """Test an unknown or missing level falls back to WARNING."""
    with patch.dict('os.environ', {'DOCKER_DEV_LOG_LEVEL': 'chatty'}):
        utils.setup_logging()

    assert mock_basic_config.call_args.kwargs['level'] == logging.WARNING
