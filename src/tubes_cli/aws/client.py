"""AWS operations used by the tubes workflows.

This module wraps the EC2, CloudFormation and IAM APIs behind the handful of
calls Boot and Destroy need: image lookup, keypairs, stack upsert/wait/delete,
stack resource discovery and IAM access keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import (
    AlreadyExistsError,
    NotFoundError,
    ProviderError,
    TimeoutError,
    provider_error_from,
)
from ..shared.logging import get_logger
from . import templates
from .arn import parse_arn
from .clock import Clock, SystemClock
from .pundit import STACK_NOT_FOUND, StatusPundit
from .resources import BaseStackResources

if TYPE_CHECKING:
    from ..config import AWSConfig

log = get_logger(__name__)

DEFAULT_WAIT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 5.0

# Amazon's VPC NAT images
NAT_BOX_FILTERS: list[dict[str, Any]] = [
    {"Name": "owner-alias", "Values": ["amazon"]},
    {"Name": "name", "Values": ["amzn-ami-vpc-nat-hvm*"]},
    {"Name": "architecture", "Values": ["x86_64"]},
    {"Name": "virtualization-type", "Values": ["hvm"]},
    {"Name": "block-device-mapping.volume-type", "Values": ["standard"]},
]

# Logical ID -> BaseStackResources field
_RESOURCE_FIELDS = {
    templates.VPC_ID: "vpc_id",
    templates.BOSH_SUBNET_ID: "bosh_subnet_id",
    templates.BOSH_SECURITY_GROUP_ID: "bosh_security_group",
    templates.BOSH_USER_ID: "bosh_user",
    templates.NAT_INSTANCE_ID: "nat_instance_id",
    templates.BOSH_DIRECTOR_IP_ID: "bosh_director_ip",
}

_KEYPAIR_DUPLICATE = "InvalidKeyPair.Duplicate"
_KEYPAIR_NOT_FOUND = "InvalidKeyPair.NotFound"


def _error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


def _is_stack_missing(err: ClientError) -> bool:
    message = err.response.get("Error", {}).get("Message", "")
    return _error_code(err) == "ValidationError" and "does not exist" in message


class AWSClient:
    """Synchronous AWS client for stacks, images, keypairs and access keys."""

    def __init__(
        self,
        ec2: Any,
        cloudformation: Any,
        iam: Any,
        clock: Clock | None = None,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """Initialize the client.

        Args:
            ec2: boto3 EC2 client (or anything with the same methods)
            cloudformation: boto3 CloudFormation client
            iam: boto3 IAM client
            clock: Time source for wait_for_stack (default: SystemClock)
            wait_timeout: Seconds wait_for_stack waits before giving up
            poll_interval: Seconds between stack status polls
        """
        self.ec2 = ec2
        self.cloudformation = cloudformation
        self.iam = iam
        self.clock = clock or SystemClock()
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval

    @classmethod
    def from_config(
        cls,
        config: AWSConfig,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> AWSClient:
        """Build boto3 clients from static credentials.

        Args:
            config: Region, credentials and per-service endpoint overrides
            wait_timeout: Seconds wait_for_stack waits before giving up
            poll_interval: Seconds between stack status polls
        """
        session = boto3.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
        )
        overrides = config.endpoint_overrides

        def client(service: str) -> Any:
            return session.client(service, endpoint_url=overrides.get(service))

        return cls(
            ec2=client("ec2"),
            cloudformation=client("cloudformation"),
            iam=client("iam"),
            wait_timeout=wait_timeout,
            poll_interval=poll_interval,
        )

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    def latest_image_id(self, filters: list[dict[str, Any]]) -> str:
        """Return the most recently created image matching filters.

        CreationDate is an ISO-8601 string and is compared as a string.

        Raises:
            NotFoundError: If no image matches
            ProviderError: If the API call fails
        """
        try:
            response = self.ec2.describe_images(Filters=filters)
        except (ClientError, BotoCoreError) as e:
            raise provider_error_from(e) from e

        images = response.get("Images", [])
        if not images:
            raise NotFoundError(
                message="no images found matching filters", data={"filters": filters}
            )

        latest = max(images, key=lambda image: image.get("CreationDate", ""))
        return latest["ImageId"]

    def get_latest_nat_box_ami_id(self) -> str:
        """Return the latest Amazon VPC NAT box AMI."""
        return self.latest_image_id(NAT_BOX_FILTERS)

    # -------------------------------------------------------------------------
    # Keypairs
    # -------------------------------------------------------------------------

    def create_key_pair(self, name: str) -> bytes:
        """Create an EC2 keypair and return its PEM private key.

        The private key is only available from this call.

        Raises:
            AlreadyExistsError: If a keypair with this name exists
            ProviderError: For any other API failure
        """
        try:
            response = self.ec2.create_key_pair(KeyName=name)
        except ClientError as e:
            if _error_code(e) == _KEYPAIR_DUPLICATE:
                raise AlreadyExistsError(message=str(e), code=_KEYPAIR_DUPLICATE) from e
            raise provider_error_from(e) from e
        except BotoCoreError as e:
            raise provider_error_from(e) from e

        log.debug("keypair created", key_name=name, fingerprint=response.get("KeyFingerprint"))
        return response["KeyMaterial"].encode()

    def delete_key_pair(self, name: str) -> None:
        """Delete an EC2 keypair. A missing keypair is not an error."""
        try:
            self.ec2.delete_key_pair(KeyName=name)
        except ClientError as e:
            if _error_code(e) == _KEYPAIR_NOT_FOUND:
                log.debug("keypair already absent", key_name=name)
                return
            raise provider_error_from(e) from e
        except BotoCoreError as e:
            raise provider_error_from(e) from e

    # -------------------------------------------------------------------------
    # Stacks
    # -------------------------------------------------------------------------

    def _describe_stack(self, name: str) -> dict[str, Any] | None:
        """Describe a stack, or None if it does not exist."""
        try:
            response = self.cloudformation.describe_stacks(StackName=name)
        except ClientError as e:
            if _is_stack_missing(e):
                return None
            raise provider_error_from(e) from e
        except BotoCoreError as e:
            raise provider_error_from(e) from e

        stacks = response.get("Stacks", [])
        return stacks[0] if stacks else None

    def upsert_stack(self, name: str, template: str, parameters: dict[str, str]) -> None:
        """Create the stack if it does not exist, otherwise update it.

        Provider errors, including "No updates are to be performed", are
        passed through as ProviderError.
        """
        cf_parameters = [
            {"ParameterKey": key, "ParameterValue": value} for key, value in parameters.items()
        ]
        kwargs = {
            "StackName": name,
            "TemplateBody": template,
            "Parameters": cf_parameters,
            "Capabilities": ["CAPABILITY_IAM"],
        }

        existing = self._describe_stack(name)
        try:
            if existing is None:
                log.info("creating stack", stack=name)
                self.cloudformation.create_stack(**kwargs)
            else:
                log.info("updating stack", stack=name, status=existing.get("StackStatus"))
                self.cloudformation.update_stack(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise provider_error_from(e) from e

    def stack_status(self, name: str) -> str:
        """Current status of a stack, STACK_NOT_FOUND if it does not exist."""
        stack = self._describe_stack(name)
        if stack is None:
            return STACK_NOT_FOUND
        return stack["StackStatus"]

    def wait_for_stack(self, name: str, pundit: StatusPundit) -> None:
        """Poll the stack until the pundit says it is complete.

        Polls every poll_interval seconds. An API error while polling aborts
        immediately; there is no retry.

        Raises:
            ProviderError: If the stack completes in an unhealthy status
            TimeoutError: If wait_timeout elapses first
        """
        deadline = self.clock.monotonic() + self.wait_timeout
        attempt = 0

        while True:
            attempt += 1
            status = self.stack_status(name)
            log.debug("stack status", stack=name, status=status, attempt=attempt)

            if pundit.is_complete(status):
                if pundit.is_healthy(status):
                    return
                raise ProviderError(
                    message=f"stack {name} finished with unhealthy status {status}",
                    code=status,
                )

            if self.clock.monotonic() >= deadline:
                raise TimeoutError(
                    message=(
                        f"timed out after {self.wait_timeout:g}s waiting for stack {name}, "
                        f"last status {status}"
                    ),
                    code=status,
                )

            self.clock.sleep(self.poll_interval)

    def delete_stack(self, name: str) -> None:
        """Request stack deletion. Deleting a missing stack succeeds."""
        try:
            self.cloudformation.delete_stack(StackName=name)
        except ClientError as e:
            if _is_stack_missing(e):
                log.debug("stack already absent", stack=name)
                return
            raise provider_error_from(e) from e
        except BotoCoreError as e:
            raise provider_error_from(e) from e

    def get_stack_resources(self, name: str) -> BaseStackResources:
        """Discover the base stack's resources by logical ID.

        Raises:
            NotFoundError: If the stack or an expected logical ID is missing
            ProviderError: If an API call fails
        """
        stack = self._describe_stack(name)
        if stack is None:
            raise NotFoundError(message=f"stack {name} not found")

        try:
            arn = parse_arn(stack["StackId"])
        except ValueError as e:
            raise ProviderError(message=str(e)) from e

        try:
            response = self.cloudformation.describe_stack_resources(StackName=name)
        except (ClientError, BotoCoreError) as e:
            raise provider_error_from(e) from e

        physical_ids = {
            r["LogicalResourceId"]: r.get("PhysicalResourceId", "")
            for r in response.get("StackResources", [])
        }

        resources = BaseStackResources(account_id=arn.account_id, region=arn.region)
        for logical_id, field_name in _RESOURCE_FIELDS.items():
            if not physical_ids.get(logical_id):
                raise NotFoundError(
                    message=f"stack {name} is missing expected resource {logical_id}",
                    data={"logical_id": logical_id},
                )
            setattr(resources, field_name, physical_ids[logical_id])

        resources.bosh_subnet_az = self._subnet_availability_zone(resources.bosh_subnet_id)
        return resources

    def _subnet_availability_zone(self, subnet_id: str) -> str:
        try:
            response = self.ec2.describe_subnets(SubnetIds=[subnet_id])
        except (ClientError, BotoCoreError) as e:
            raise provider_error_from(e) from e

        subnets = response.get("Subnets", [])
        if not subnets:
            raise NotFoundError(message=f"subnet {subnet_id} not found")
        return subnets[0]["AvailabilityZone"]

    # -------------------------------------------------------------------------
    # IAM
    # -------------------------------------------------------------------------

    def create_access_key(self, user_name: str) -> tuple[str, str]:
        """Create an IAM access key for a user.

        Returns:
            Tuple of (access_key_id, secret_access_key).
        """
        try:
            response = self.iam.create_access_key(UserName=user_name)
        except (ClientError, BotoCoreError) as e:
            raise provider_error_from(e) from e

        access_key = response["AccessKey"]
        log.debug("access key created", user=user_name, access_key_id=access_key["AccessKeyId"])
        return access_key["AccessKeyId"], access_key["SecretAccessKey"]
