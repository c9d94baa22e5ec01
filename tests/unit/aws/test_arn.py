"""Unit tests for ARN parsing."""

import pytest

from tubes_cli.aws.arn import ARN, parse_arn


@pytest.mark.cli_unit
class TestParseARN:
    """Tests for parse_arn."""

    def test_stack_arn(self):
        """Test a CloudFormation stack ID splits into its parts."""
        arn = parse_arn(
            "arn:aws:cloudformation:us-west-2:123456789012:stack/some-env/"
            "1a2b3c4d-0000-1111-2222-333344445555"
        )

        assert arn == ARN(
            partition="aws",
            service="cloudformation",
            region="us-west-2",
            account_id="123456789012",
            resource="stack/some-env/1a2b3c4d-0000-1111-2222-333344445555",
        )

    def test_resource_keeps_colons(self):
        """Test colons inside the resource part are preserved."""
        arn = parse_arn("arn:aws:logs:us-east-1:123456789012:log-group:my-group:*")

        assert arn.resource == "log-group:my-group:*"

    def test_empty_region(self):
        """Test global services with no region parse."""
        arn = parse_arn("arn:aws:iam::123456789012:user/bosh")

        assert arn.region == ""
        assert arn.account_id == "123456789012"

    @pytest.mark.parametrize("value", ["", "arn:aws:iam", "not:an:arn:at:all:x"])
    def test_malformed(self, value):
        """Test malformed strings are rejected."""
        with pytest.raises(ValueError, match="malformed ARN"):
            parse_arn(value)
