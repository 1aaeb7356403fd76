"""Translation of botocore errors into provider exceptions."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ec2manager.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

logger = logging.getLogger(__name__)

CREDENTIAL_ERROR_CODES = frozenset(
    (
        "AuthFailure",
        "InvalidClientTokenId",
        "UnrecognizedClientException",
    )
)


@contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Convert botocore exceptions raised inside the block.

    Yields
    ------
    None
        Control to the wrapped block

    Raises
    ------
    ProviderCredentialsError
        If credentials are missing or rejected
    ProviderAPIError
        If the AWS API returns an error response, expired tokens included
    ProviderConnectionError
        If the AWS endpoint cannot be reached
    """
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ProviderCredentialsError(str(e)) from e
    except ClientError as e:
        error = e.response.get("Error", {}) if e.response else {}
        code = error.get("Code", "")
        message = error.get("Message", str(e))

        if code in CREDENTIAL_ERROR_CODES:
            raise ProviderCredentialsError(message) from e

        logger.debug("AWS API error %s: %s", code, message)
        raise ProviderAPIError(f"{code}: {message}" if code else message, code) from e
    except EndpointConnectionError as e:
        raise ProviderConnectionError(str(e)) from e
    except BotoCoreError as e:
        raise ProviderConnectionError(str(e)) from e
