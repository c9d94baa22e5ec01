"""Boot, Destroy and Show workflows.

Each workflow runs its steps in a fixed order and stops at the first
failure, re-raising that step's exception unchanged. Nothing already done is
undone: after a failed Boot the operator cleans up (usually with Destroy)
and runs Boot again.

Each step's progress line is reported as the step starts; no line for a
later step (nor "Finished") appears once a step has failed.
"""

from __future__ import annotations

import re
from typing import BinaryIO, Protocol

import click

from .aws.pundit import DeletePundit, StatusPundit, UpsertPundit
from .aws.resources import BaseStackResources
from .aws.templates import BASE_STACK_TEMPLATE, KEY_NAME_PARAMETER, NAT_AMI_PARAMETER
from .errors import AlreadyProvisionedError, ValidationError
from .manifest.builder import ManifestBuilder
from .shared.logging import get_logger
from .store import DIRECTOR_MANIFEST, SSH_KEY, ConfigStore

log = get_logger(__name__)

NAME_PATTERN = "^[a-zA-Z0-9-]+$"
_NAME_RE = re.compile(NAME_PATTERN)


class CloudClient(Protocol):
    """The AWS operations the workflows need."""

    def get_latest_nat_box_ami_id(self) -> str: ...

    def upsert_stack(self, name: str, template: str, parameters: dict[str, str]) -> None: ...

    def wait_for_stack(self, name: str, pundit: StatusPundit) -> None: ...

    def delete_stack(self, name: str) -> None: ...

    def get_stack_resources(self, name: str) -> BaseStackResources: ...

    def create_key_pair(self, name: str) -> bytes: ...

    def delete_key_pair(self, name: str) -> None: ...

    def create_access_key(self, user_name: str) -> tuple[str, str]: ...


class Reporter(Protocol):
    """Receives human-readable progress lines."""

    def report(self, message: str) -> None: ...


class EchoReporter:
    """Write progress lines to stderr."""

    def report(self, message: str) -> None:
        click.echo(message, err=True)


def validate_name(name: str) -> None:
    """Check an environment name.

    Raises:
        ValidationError: If name has characters other than letters, digits and dashes
    """
    if not _NAME_RE.fullmatch(name):
        raise ValidationError(
            message=f"invalid name: must match pattern {NAME_PATTERN}", data={"name": name}
        )


class Application:
    """Orchestrates one environment's lifecycle."""

    def __init__(
        self,
        aws_client: CloudClient,
        config_store: ConfigStore,
        manifest_builder: ManifestBuilder,
        reporter: Reporter,
        result_writer: BinaryIO,
    ):
        """Initialize the application.

        Args:
            aws_client: Cloud operations
            config_store: The environment's local state
            manifest_builder: Produces the director manifest
            reporter: Receives progress lines
            result_writer: Binary sink for command results (Show)
        """
        self.aws_client = aws_client
        self.config_store = config_store
        self.manifest_builder = manifest_builder
        self.reporter = reporter
        self.result_writer = result_writer

    def boot(self, name: str) -> None:
        """Provision a fresh environment.

        Steps: check the store is empty, create and store the SSH keypair,
        find the NAT AMI, upsert and wait for the base stack, discover its
        resources, create the director's access key, build and store the
        manifest.

        Raises:
            ValidationError: Bad name; nothing else happens
            AlreadyProvisionedError: The config store is not empty
            Any error from the step that failed, unchanged
        """
        validate_name(name)

        if not self.config_store.is_empty():
            raise AlreadyProvisionedError()

        bound = log.bind(environment=name)
        bound.info("boot started")

        self.reporter.report("Creating keypair")
        pem = self.aws_client.create_key_pair(name)
        self.config_store.set(SSH_KEY, pem)

        self.reporter.report("Looking for latest AWS NAT box AMI...")
        ami_id = self.aws_client.get_latest_nat_box_ami_id()
        self.reporter.report(f'Latest NAT box AMI is "{ami_id}"')

        self.reporter.report("Upserting stack...")
        self.aws_client.upsert_stack(
            name,
            BASE_STACK_TEMPLATE,
            {NAT_AMI_PARAMETER: ami_id, KEY_NAME_PARAMETER: name},
        )
        self.aws_client.wait_for_stack(name, UpsertPundit())
        self.reporter.report("Stack update complete")

        resources = self.aws_client.get_stack_resources(name)
        bound.info("stack resources discovered", bosh_user=resources.bosh_user)
        access_key, secret_key = self.aws_client.create_access_key(resources.bosh_user)

        self.reporter.report("Generating BOSH init manifest")
        manifest = self.manifest_builder.build(name, resources, access_key, secret_key)
        self.config_store.set(DIRECTOR_MANIFEST, manifest)

        bound.info("boot finished")
        self.reporter.report("Finished")

    def destroy(self, name: str) -> None:
        """Tear down an environment's cloud resources.

        Deletes the stack, waits for the deletion to settle, then deletes the
        keypair. The local config store is left in place.

        Raises:
            ValidationError: Bad name; nothing else happens
            Any error from the step that failed, unchanged
        """
        validate_name(name)
        bound = log.bind(environment=name)
        bound.info("destroy started")

        self.reporter.report("Deleting stack")
        self.aws_client.delete_stack(name)
        self.aws_client.wait_for_stack(name, DeletePundit())
        self.reporter.report("Delete complete")

        self.reporter.report("Deleting keypair")
        self.aws_client.delete_key_pair(name)

        bound.info("destroy finished")
        self.reporter.report("Finished")

    def show(self, name: str) -> None:
        """Write the environment's SSH private key to the result writer."""
        validate_name(name)
        pem = self.config_store.get(SSH_KEY)
        self.result_writer.write(pem)
        self.result_writer.flush()
