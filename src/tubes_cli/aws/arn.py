"""Amazon Resource Name parsing.

See http://docs.aws.amazon.com/general/latest/gr/aws-arns-and-namespaces.html
"""

from __future__ import annotations

from dataclasses import dataclass

_NUM_PARTS = 6


@dataclass(frozen=True)
class ARN:
    """Components of an ARN."""

    partition: str
    service: str
    region: str
    account_id: str
    resource: str


def parse_arn(arn: str) -> ARN:
    """Parse an ARN string into its component fields.

    The resource part may itself contain colons; it is kept intact.

    Raises:
        ValueError: If the string has fewer than six colon-separated parts
            or does not start with "arn".
    """
    parts = arn.split(":", _NUM_PARTS - 1)
    if len(parts) < _NUM_PARTS or parts[0] != "arn":
        raise ValueError(f"malformed ARN {arn!r}")
    return ARN(
        partition=parts[1],
        service=parts[2],
        region=parts[3],
        account_id=parts[4],
        resource=parts[5],
    )
