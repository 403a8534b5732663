"""Tests for the command-line entry point."""

from unittest import mock

import pytest
from click.testing import CliRunner

from freee_oauth.cli import main
from freee_oauth.exceptions import AuthorizationTimeoutError, TokenStorageError

ENV = {"FREEE_CLIENT_ID": "env_id", "FREEE_CLIENT_SECRET": "env_secret"}


@pytest.fixture
def cli_runner():
    return CliRunner()


class TestMain:
    """Tests for the freee-oauth command."""

    @mock.patch("freee_oauth.cli.AuthorizationRunner")
    def test_success_exits_zero(self, mock_runner, cli_runner, valid_token):
        mock_runner.return_value.run.return_value = valid_token

        result = cli_runner.invoke(main, env=ENV)

        assert result.exit_code == 0
        config = mock_runner.call_args[0][0]
        assert config.client_id == "env_id"
        assert config.client_secret == "env_secret"

    @mock.patch("freee_oauth.cli.AuthorizationRunner")
    def test_missing_config_exits_nonzero(self, mock_runner, cli_runner):
        result = cli_runner.invoke(
            main, env={"FREEE_CLIENT_ID": None, "FREEE_CLIENT_SECRET": None}
        )

        assert result.exit_code == 1
        assert "FREEE_CLIENT_ID and FREEE_CLIENT_SECRET must be set" in result.output
        mock_runner.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [AuthorizationTimeoutError("authorization timeout (300 seconds)"), TokenStorageError("disk full")],
    )
    @mock.patch("freee_oauth.cli.AuthorizationRunner")
    def test_flow_failure_exits_nonzero(self, mock_runner, error, cli_runner):
        mock_runner.return_value.run.side_effect = error

        result = cli_runner.invoke(main, env=ENV)

        assert result.exit_code == 1
        assert f"Error: {error}" in result.output

    def test_rejects_arguments(self, cli_runner):
        result = cli_runner.invoke(main, ["--verbose"], env=ENV)

        assert result.exit_code != 0
