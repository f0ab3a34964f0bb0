"""Notification broker backed by Amazon SNS mobile push."""
import asyncio
import functools
import json
import logging
from typing import Any, Dict, Optional, Protocol

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..errors import DeliveryError, DependencyUnavailable

logger = logging.getLogger(__name__)

# botocore errors meaning SNS could not be reached at all
CONNECTIVITY_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


class Broker(Protocol):
    """Remote capability that creates device endpoints and delivers messages."""

    async def create_platform_endpoint(self, application_arn: str, token: str) -> str:
        """Register a push-network token and return the endpoint reference."""

    async def publish(
        self,
        endpoint_arn: str,
        protocol: str,
        body: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Deliver one message to an endpoint and return the delivery id."""


class SnsBroker:
    """Broker using boto3's SNS client.

    boto3 is blocking, so calls run in the loop's default executor.
    """

    def __init__(self, region: str, endpoint_url: Optional[str] = None, client=None):
        self._client = client or boto3.client(
            "sns",
            region_name=region,
            endpoint_url=endpoint_url,
        )

    async def _call(self, operation: str, **params) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        method = getattr(self._client, operation)
        try:
            return await loop.run_in_executor(None, functools.partial(method, **params))
        except ClientError as e:
            error = e.response.get("Error", {})
            message = error.get("Message") or str(e)
            logger.warning(f"SNS {operation} failed: {error.get('Code')} {message}")
            raise DeliveryError(message) from e
        except CONNECTIVITY_ERRORS as e:
            logger.error(f"SNS {operation} unavailable: {e}")
            raise DependencyUnavailable(f"Broker unavailable: {e}") from e
        except BotoCoreError as e:
            # Client-side failures such as parameter validation affect one message only
            logger.warning(f"SNS {operation} rejected locally: {e}")
            raise DeliveryError(str(e)) from e

    async def create_platform_endpoint(self, application_arn: str, token: str) -> str:
        """Create (or look up) the SNS endpoint for a registration token."""
        data = await self._call(
            "create_platform_endpoint",
            PlatformApplicationArn=application_arn,
            Token=token,
        )
        return data["EndpointArn"]

    async def publish(
        self,
        endpoint_arn: str,
        protocol: str,
        body: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Publish a protocol-specific message to one endpoint."""
        params = {
            "TargetArn": endpoint_arn,
            "Message": json.dumps({protocol: body}),
            "MessageStructure": "json",
        }
        if attributes:
            params["MessageAttributes"] = attributes
        data = await self._call("publish", **params)
        return data["MessageId"]
