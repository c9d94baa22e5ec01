"""Typed view of the base stack's resources."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BaseStackResources:
    """Resources discovered from the base stack.

    account_id and region come from the stack ARN; bosh_subnet_az from the
    subnet itself. Everything else is a physical resource ID.
    """

    account_id: str = ""
    region: str = ""
    vpc_id: str = ""
    bosh_subnet_id: str = ""
    bosh_subnet_az: str = ""
    bosh_security_group: str = ""
    bosh_user: str = ""
    nat_instance_id: str = ""
    bosh_director_ip: str = ""
