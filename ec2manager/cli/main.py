"""CLI entry point for ec2manager."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import boto3
import fire

from ec2manager.constants import (
    DEFAULT_REGION,
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    LOG_FILE_NAME,
)
from ec2manager.core.cache import EntityCache
from ec2manager.core.config import ConfigLoader
from ec2manager.core.events import EventChannel
from ec2manager.core.machine import InstanceManager
from ec2manager.core.tasks import TaskOrchestrator
from ec2manager.logging import TaskFormatter
from ec2manager.providers import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)
from ec2manager.providers.aws import EC2Manager, PricingService
from ec2manager.providers.aws.utils import get_aws_credentials_error_message
from ec2manager.tui import InstanceManagerTUI

logger = logging.getLogger(__name__)


def resolve_region(region: str | None) -> str:
    """Pick the region from the CLI, then the AWS environment, then the default."""
    if region:
        return region

    return boto3.session.Session().region_name or DEFAULT_REGION


def create_manager(
    region: str,
    config_loader: ConfigLoader,
    boto3_client_factory: Callable[..., Any] | None = None,
) -> InstanceManager:
    """Wire the providers, channel, workers and state machine together.

    Parameters
    ----------
    region : str
        AWS region to manage
    config_loader : ConfigLoader
        Configuration store
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client

    Returns
    -------
    InstanceManager
        Manager with its initial instance list loaded

    Raises
    ------
    ValueError
        If the configuration is invalid
    ProviderError
        If the initial instance listing fails
    """
    config = config_loader.load_config()
    compute = EC2Manager(region=region, boto3_client_factory=boto3_client_factory)
    pricing = PricingService(region=region, boto3_client_factory=boto3_client_factory)
    channel = EventChannel()
    tasks = TaskOrchestrator(compute, pricing, channel)
    manager = InstanceManager(config, EntityCache(), tasks, channel, config_loader=config_loader)

    logger.info("Loading instances in %s...", region)
    manager.bootstrap()
    return manager


class EC2ManagerCLI:
    """Command line interface for the EC2 instance dashboard.

    Parameters
    ----------
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    """

    def __init__(self, boto3_client_factory: Callable[..., Any] | None = None) -> None:
        self._boto3_client_factory = boto3_client_factory

    def run(
        self,
        region: str | None = None,
        config: str | None = None,
        verbose: bool = False,
    ) -> None:
        """Open the interactive dashboard.

        Parameters
        ----------
        region : str | None
            AWS region override
        config : str | None
            Path to the YAML configuration file
        verbose : bool
            Enable debug logging
        """
        if verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        config_loader = ConfigLoader(config)
        manager = create_manager(
            resolve_region(region), config_loader, self._boto3_client_factory
        )

        app = InstanceManagerTUI(manager, log_path=Path.home() / LOG_FILE_NAME, verbose=verbose)
        app.run()

        manager.save_config()


def handle_credentials_error(debug_mode: bool) -> None:
    """Handle provider credentials error.

    Parameters
    ----------
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(get_aws_credentials_error_message(), file=sys.stderr)
    sys.exit(EXIT_ERROR)


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> None:
    """Handle provider API error with context-specific messages.

    Parameters
    ----------
    error : ProviderAPIError
        The API error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    error_code = error.error_code

    if error_code == "UnauthorizedOperation":
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print("Your AWS credentials don't have the required permissions.", file=sys.stderr)
        print("Contact your AWS administrator to grant:", file=sys.stderr)
        print("  - ec2:DescribeInstances, ec2:DescribeInstanceTypes", file=sys.stderr)
        print(
            "  - ec2:StartInstances, ec2:StopInstances, ec2:RebootInstances",
            file=sys.stderr,
        )
        print(
            "  - ec2:ModifyInstanceAttribute, ec2:ModifyInstanceCreditSpecification",
            file=sys.stderr,
        )
        print("  - ec2:DescribeSpotPriceHistory, pricing:GetProducts", file=sys.stderr)
    elif error_code in ["ExpiredToken", "RequestExpired", "ExpiredTokenException"]:
        print("AWS credentials have expired\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  aws sso login           # If using AWS SSO", file=sys.stderr)
        print("  aws configure           # Re-configure credentials", file=sys.stderr)
    else:
        print(f"AWS API error: {error}", file=sys.stderr)

    sys.exit(EXIT_ERROR)


def handle_connection_error(error: ProviderConnectionError, debug_mode: bool) -> None:
    """Handle a failure to reach the AWS endpoints.

    Raises
    ------
    ProviderConnectionError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Cannot reach AWS: {error}", file=sys.stderr)
    print("Check your network connection and the selected region.", file=sys.stderr)
    sys.exit(EXIT_ERROR)


def handle_value_error(error: ValueError, debug_mode: bool) -> None:
    if debug_mode:
        raise

    print(f"Configuration error: {error}", file=sys.stderr)
    sys.exit(EXIT_CONFIG_ERROR)


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> None:
    if debug_mode:
        raise

    print(f"Unexpected error: {error}", file=sys.stderr)
    sys.exit(EXIT_ERROR)


def main() -> None:
    """Entry point for Fire CLI with graceful error handling.

    Logging goes to stderr until the dashboard takes over the terminal and
    redirects it to the log file. Set EC2MANAGER_DEBUG=1 to get tracebacks
    instead of the friendly error messages.
    """
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(TaskFormatter("%(message)s"))

    logging.basicConfig(level=logging.INFO, handlers=[stderr_handler])

    for boto_module in ["botocore", "boto3", "urllib3"]:
        logging.getLogger(boto_module).setLevel(logging.WARNING)

    debug_mode = os.environ.get("EC2MANAGER_DEBUG") == "1"

    try:
        fire.Fire(EC2ManagerCLI().run, name="ec2manager")
    except ProviderCredentialsError:
        handle_credentials_error(debug_mode)
    except ProviderAPIError as e:
        handle_api_error(e, debug_mode)
    except ProviderConnectionError as e:
        handle_connection_error(e, debug_mode)
    except ValueError as e:
        handle_value_error(e, debug_mode)
    except RuntimeError as e:
        handle_runtime_error(e, debug_mode)
