"""Tests for the command line entry point."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from ec2manager.cli import EC2ManagerCLI, create_manager, main
from ec2manager.cli.main import (
    handle_api_error,
    handle_connection_error,
    handle_credentials_error,
    handle_runtime_error,
    handle_value_error,
    resolve_region,
)
from ec2manager.constants import DEFAULT_REGION, EXIT_CONFIG_ERROR, EXIT_ERROR
from ec2manager.core.config import ConfigLoader
from ec2manager.providers import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)
from ec2manager.providers.aws.errors import handle_aws_errors


def test_resolve_region_prefers_argument() -> None:
    assert resolve_region("eu-west-1") == "eu-west-1"


def test_resolve_region_from_environment(aws_credentials, monkeypatch) -> None:
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")

    assert resolve_region(None) == "ap-southeast-2"


def test_resolve_region_falls_back_to_default() -> None:
    with patch("ec2manager.cli.main.boto3.session.Session") as mock_session:
        mock_session.return_value.region_name = None

        assert resolve_region(None) == DEFAULT_REGION


def test_create_manager_loads_instances(aws_credentials, write_config, config_file) -> None:
    write_config({"filter": "web", "refresh_interval_seconds": 30})

    with mock_aws():
        manager = create_manager("us-east-1", ConfigLoader(config_file))

    assert manager.filter == "web"
    assert manager.refresh_interval == 30
    assert manager.visible == []
    assert manager.last_refreshed is not None
    assert manager.cache.type_map
    assert manager.tasks.pricing_available is True


def test_create_manager_rejects_invalid_config(write_config, config_file) -> None:
    write_config({"t_family_credit": "turbo"})

    with pytest.raises(ValueError, match="t_family_credit"):
        create_manager("us-east-1", ConfigLoader(config_file), boto3_client_factory=MagicMock())


def test_run_opens_dashboard_and_saves_config(config_file) -> None:
    manager = MagicMock()

    with (
        patch("ec2manager.cli.main.create_manager", return_value=manager) as mock_create,
        patch("ec2manager.cli.main.InstanceManagerTUI") as mock_tui,
    ):
        EC2ManagerCLI().run(region="eu-west-1", config=str(config_file))

    region, loader, factory = mock_create.call_args.args
    assert region == "eu-west-1"
    assert loader.config_path == config_file
    assert factory is None
    mock_tui.assert_called_once()
    assert mock_tui.call_args.args[0] is manager
    mock_tui.return_value.run.assert_called_once()
    manager.save_config.assert_called_once()


class TestErrorHandlers:
    """Tests for friendly error output and exit codes."""

    def test_credentials_error(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            handle_credentials_error(debug_mode=False)

        assert exc_info.value.code == EXIT_ERROR
        assert "AWS credentials not found" in capsys.readouterr().err

    def test_unauthorized_lists_permissions(self, capsys) -> None:
        error = ProviderAPIError("UnauthorizedOperation: no", "UnauthorizedOperation")

        with pytest.raises(SystemExit) as exc_info:
            handle_api_error(error, debug_mode=False)

        assert exc_info.value.code == EXIT_ERROR
        err = capsys.readouterr().err
        assert "Insufficient IAM permissions" in err
        assert "ec2:ModifyInstanceAttribute" in err

    def test_expired_token(self, capsys) -> None:
        with pytest.raises(SystemExit):
            handle_api_error(ProviderAPIError("expired", "ExpiredToken"), debug_mode=False)

        assert "have expired" in capsys.readouterr().err

    def test_generic_api_error(self, capsys) -> None:
        with pytest.raises(SystemExit):
            handle_api_error(ProviderAPIError("Throttling: slow down", "Throttling"), False)

        assert "AWS API error: Throttling: slow down" in capsys.readouterr().err

    def test_connection_error(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            handle_connection_error(ProviderConnectionError("unreachable"), False)

        assert exc_info.value.code == EXIT_ERROR
        assert "Cannot reach AWS: unreachable" in capsys.readouterr().err

    def test_value_error_uses_config_exit_code(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            handle_value_error(ValueError("bad interval"), False)

        assert exc_info.value.code == EXIT_CONFIG_ERROR
        assert "Configuration error: bad interval" in capsys.readouterr().err

    def test_runtime_error(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            handle_runtime_error(RuntimeError("disk"), False)

        assert exc_info.value.code == EXIT_ERROR

    def test_debug_mode_reraises(self) -> None:
        with pytest.raises(ValueError, match="bad interval"):
            try:
                raise ValueError("bad interval")
            except ValueError as e:
                handle_value_error(e, debug_mode=True)


class TestMain:
    @pytest.mark.parametrize(
        "error,code",
        [
            (ProviderCredentialsError("none"), EXIT_ERROR),
            (ProviderAPIError("Throttling: slow", "Throttling"), EXIT_ERROR),
            (ProviderConnectionError("offline"), EXIT_ERROR),
            (ValueError("bad config"), EXIT_CONFIG_ERROR),
            (RuntimeError("broken"), EXIT_ERROR),
        ],
    )
    def test_exit_codes(self, monkeypatch, error, code) -> None:
        monkeypatch.delenv("EC2MANAGER_DEBUG", raising=False)

        with patch("ec2manager.cli.main.fire.Fire", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == code

    def test_expired_token_prints_login_guidance(self, monkeypatch, capsys) -> None:
        """Test an expired session token reaches the re-login advice."""
        monkeypatch.delenv("EC2MANAGER_DEBUG", raising=False)

        def expired_run(*args, **kwargs) -> None:
            with handle_aws_errors():
                raise ClientError(
                    {"Error": {"Code": "ExpiredToken", "Message": "token expired"}},
                    "DescribeInstances",
                )

        with patch("ec2manager.cli.main.fire.Fire", side_effect=expired_run):
            with pytest.raises(SystemExit) as exc_info:
                main()

        err = capsys.readouterr().err
        assert exc_info.value.code == EXIT_ERROR
        assert "AWS credentials have expired" in err
        assert "aws sso login" in err
        assert "credentials not found" not in err

    def test_debug_env_shows_traceback(self, monkeypatch) -> None:
        monkeypatch.setenv("EC2MANAGER_DEBUG", "1")

        with patch("ec2manager.cli.main.fire.Fire", side_effect=RuntimeError("broken")):
            with pytest.raises(RuntimeError, match="broken"):
                main()
