"""AWS package for provisioning the base stack.

This package provides:
1. Status pundits deciding when a stack has settled
2. An injectable clock for the stack wait loop
3. The base stack template and its typed resources
4. AWSClient, wrapping EC2, CloudFormation and IAM
"""

from .arn import ARN, parse_arn
from .client import NAT_BOX_FILTERS, AWSClient
from .clock import Clock, SystemClock
from .pundit import STACK_NOT_FOUND, DeletePundit, StatusPundit, UpsertPundit
from .resources import BaseStackResources
from .templates import BASE_STACK_TEMPLATE, KEY_NAME_PARAMETER, NAT_AMI_PARAMETER

__all__ = [
    # Client
    "AWSClient",
    "NAT_BOX_FILTERS",
    # Pundits
    "StatusPundit",
    "UpsertPundit",
    "DeletePundit",
    "STACK_NOT_FOUND",
    # Clock
    "Clock",
    "SystemClock",
    # ARN
    "ARN",
    "parse_arn",
    # Base stack
    "BASE_STACK_TEMPLATE",
    "NAT_AMI_PARAMETER",
    "KEY_NAME_PARAMETER",
    "BaseStackResources",
]
