"""Fixtures for end-to-end CLI tests against a faked AWS backend.

FakeAWSBackend keeps keypairs, images and stacks in memory and exposes
ec2/cloudformation/iam objects with the boto3 method names and response
shapes AWSClient uses. Errors are real botocore ClientErrors, so AWSClient's
error mapping is exercised too.
"""

import uuid
from unittest.mock import patch

import httpx
import pytest
from botocore.exceptions import ClientError
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tubes_cli.aws.client import AWSClient
from tubes_cli.manifest.boshio import AWS_CPI_RELEASE, AWS_STEMCELL, BOSH_RELEASE, BoshIOClient

ACCOUNT_ID = "123456789012"
REGION = "us-west-2"

OPERATOR_ENV = {
    "AWS_DEFAULT_REGION": REGION,
    "AWS_ACCESS_KEY_ID": "some-access-key-id",
    "AWS_SECRET_ACCESS_KEY": "some-secret-access-key",
}


def new_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def client_error(code, message, operation):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeAWSBackend:
    """In-memory EC2, CloudFormation and IAM."""

    def __init__(self):
        self.calls: list[str] = []
        self.key_pairs: dict[str, str] = {"some-existing-name": "some-existing-pem-data"}
        self.images = [
            {"ImageId": "ami-0ld", "CreationDate": "2013-10-10T22:35:35.000Z"},
            {"ImageId": "ami-f00d", "CreationDate": "2016-02-01T10:00:00.000Z"},
        ]
        self.stacks: dict[str, dict] = {}
        self.access_keys: list[tuple[str, str, str]] = []

        self.ec2 = _Service(self, "ec2")
        self.cloudformation = _Service(self, "cloudformation")
        self.iam = _Service(self, "iam")

    def log(self, service: str, action: str) -> None:
        self.calls.append(f"{service}.{action}")

    # EC2

    def create_key_pair(self, KeyName):
        if KeyName in self.key_pairs:
            raise client_error(
                "InvalidKeyPair.Duplicate",
                f"The keypair '{KeyName}' already exists.",
                "CreateKeyPair",
            )
        pem = new_pem()
        self.key_pairs[KeyName] = pem
        return {"KeyName": KeyName, "KeyFingerprint": "some-key-fingerprint", "KeyMaterial": pem}

    def delete_key_pair(self, KeyName):
        self.key_pairs.pop(KeyName, None)
        return {}

    def describe_images(self, Filters):
        return {"Images": list(self.images)}

    def describe_subnets(self, SubnetIds):
        return {"Subnets": [{"SubnetId": s, "AvailabilityZone": f"{REGION}a"} for s in SubnetIds]}

    # CloudFormation

    def _missing(self, name, operation):
        return client_error("ValidationError", f"Stack with id {name} does not exist", operation)

    def describe_stacks(self, StackName):
        stack = self.stacks.get(StackName)
        if stack is None:
            raise self._missing(StackName, "DescribeStacks")

        status = stack["StackStatus"]
        response = {"Stacks": [dict(stack)]}
        # Each poll moves an in-progress stack one step on
        if status == "DELETE_IN_PROGRESS":
            del self.stacks[StackName]
        elif status.endswith("_IN_PROGRESS"):
            stack["StackStatus"] = status.replace("_IN_PROGRESS", "_COMPLETE")
        return response

    def create_stack(self, StackName, TemplateBody, Parameters, Capabilities):
        stack_arn = f"arn:aws:cloudformation:{REGION}:{ACCOUNT_ID}:stack"
        stack_id = f"{stack_arn}/{StackName}/{uuid.uuid4()}"
        self.stacks[StackName] = {
            "StackName": StackName,
            "StackId": stack_id,
            "StackStatus": "CREATE_IN_PROGRESS",
            "Parameters": Parameters,
        }
        return {"StackId": stack_id}

    def update_stack(self, StackName, TemplateBody, Parameters, Capabilities):
        stack = self.stacks[StackName]
        stack["StackStatus"] = "UPDATE_IN_PROGRESS"
        return {"StackId": stack["StackId"]}

    def delete_stack(self, StackName):
        if StackName in self.stacks:
            self.stacks[StackName]["StackStatus"] = "DELETE_IN_PROGRESS"
        return {}

    def describe_stack_resources(self, StackName):
        if StackName not in self.stacks:
            raise self._missing(StackName, "DescribeStackResources")
        physical = {
            "VPC": "vpc-12345678",
            "BOSHSubnet": "subnet-12345678",
            "BOSHSecurityGroup": "sg-12345678",
            "BOSHDirectorUser": f"{StackName}-BOSHDirectorUser-ABCDEF",
            "NATInstance": "i-12345678",
            "BOSHDirectorIP": "52.0.0.1",
        }
        return {
            "StackResources": [
                {"LogicalResourceId": logical, "PhysicalResourceId": physical_id}
                for logical, physical_id in physical.items()
            ]
        }

    # IAM

    def create_access_key(self, UserName):
        access_key_id = f"AKIA{uuid.uuid4().hex[:16].upper()}"
        secret = uuid.uuid4().hex
        self.access_keys.append((UserName, access_key_id, secret))
        return {
            "AccessKey": {
                "UserName": UserName,
                "AccessKeyId": access_key_id,
                "SecretAccessKey": secret,
                "Status": "Active",
            }
        }


class _Service:
    """Routes boto3-style calls to the backend and logs them."""

    def __init__(self, backend: FakeAWSBackend, name: str):
        self._backend = backend
        self._name = name

    def __getattr__(self, method):
        handler = getattr(self._backend, method)

        def call(**kwargs):
            action = "".join(part.title() for part in method.split("_"))
            self._backend.log(self._name, action)
            return handler(**kwargs)

        return call


CATALOG = {
    f"/api/v1/releases/{BOSH_RELEASE}": [
        {"name": BOSH_RELEASE, "version": "255.8", "url": "https://bosh.io/d/bosh", "sha1": "a1"}
    ],
    f"/api/v1/releases/{AWS_CPI_RELEASE}": [
        {"name": AWS_CPI_RELEASE, "version": "52", "url": "https://bosh.io/d/cpi", "sha1": "b2"}
    ],
    f"/api/v1/stemcells/{AWS_STEMCELL}": [
        {
            "name": AWS_STEMCELL,
            "version": "3232.6",
            "light": {"url": "https://bosh.io/d/light", "sha1": "c3"},
        }
    ],
}


def catalog_handler(request: httpx.Request) -> httpx.Response:
    body = CATALOG.get(request.url.path)
    if body is None:
        return httpx.Response(404)
    return httpx.Response(200, json=body)


class InstantClock:
    """Advances virtual time on sleep without blocking."""

    def __init__(self):
        self.now = 0.0

    def sleep(self, seconds):
        self.now += seconds

    def monotonic(self):
        return self.now


@pytest.fixture
def operator_env():
    return dict(OPERATOR_ENV)


@pytest.fixture
def backend():
    return FakeAWSBackend()


@pytest.fixture
def fake_cloud(backend, tmp_path, monkeypatch):
    """Point the CLI at the fake backend and a mocked bosh.io.

    Runs from a temp working directory with an empty ~/.tubes config.
    """
    monkeypatch.chdir(tmp_path)
    for var in ("TUBES_WAIT_TIMEOUT", "TUBES_POLL_INTERVAL", "TUBES_BOSHIO_URL"):
        monkeypatch.delenv(var, raising=False)

    def from_config(config, wait_timeout, poll_interval):
        return AWSClient(
            ec2=backend.ec2,
            cloudformation=backend.cloudformation,
            iam=backend.iam,
            clock=InstantClock(),
            wait_timeout=wait_timeout,
            poll_interval=poll_interval,
        )

    def boshio(base_url):
        return BoshIOClient(base_url, transport=httpx.MockTransport(catalog_handler))

    with (
        patch("tubes_cli.config.get_config_path", return_value=tmp_path / "no-config.yaml"),
        patch("tubes_cli.main.AWSClient.from_config", side_effect=from_config),
        patch("tubes_cli.main.BoshIOClient", side_effect=boshio),
    ):
        yield backend
