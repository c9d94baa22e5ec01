"""CloudFormation template for the base stack.

The base stack holds the network, the NAT egress box and the IAM user the
BOSH director will act as. It takes two parameters: the NAT box AMI and the
name of the SSH keypair.
"""

from __future__ import annotations

from typing import Any

import yaml

# Logical IDs the application relies on; see resources.BaseStackResources
VPC_ID = "VPC"
BOSH_SUBNET_ID = "BOSHSubnet"
BOSH_SECURITY_GROUP_ID = "BOSHSecurityGroup"
BOSH_USER_ID = "BOSHDirectorUser"
NAT_INSTANCE_ID = "NATInstance"
BOSH_DIRECTOR_IP_ID = "BOSHDirectorIP"

NAT_AMI_PARAMETER = "NATInstanceAMI"
KEY_NAME_PARAMETER = "KeyName"

VPC_CIDR = "10.0.0.0/16"
BOSH_SUBNET_CIDR = "10.0.0.0/24"
INTERNAL_SUBNET_CIDR = "10.0.16.0/20"


def _ref(name: str) -> dict[str, str]:
    return {"Ref": name}


def _tags(name: str) -> list[dict[str, Any]]:
    return [{"Key": "Name", "Value": {"Fn::Join": ["-", [_ref("AWS::StackName"), name]]}}]


def _bosh_user_policy() -> dict[str, Any]:
    return {
        "PolicyName": "bosh-director",
        "PolicyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": [
                        "ec2:AssociateAddress",
                        "ec2:AttachVolume",
                        "ec2:CreateVolume",
                        "ec2:DeleteSnapshot",
                        "ec2:DeleteVolume",
                        "ec2:Describe*",
                        "ec2:DetachVolume",
                        "ec2:CreateSnapshot",
                        "ec2:CreateTags",
                        "ec2:RunInstances",
                        "ec2:TerminateInstances",
                        "ec2:RegisterImage",
                        "ec2:DeregisterImage",
                    ],
                    "Resource": "*",
                },
                {
                    "Effect": "Allow",
                    "Action": ["elasticloadbalancing:*"],
                    "Resource": "*",
                },
            ],
        },
    }


def build_base_stack_template() -> dict[str, Any]:
    """Build the base stack template as a dict."""
    resources: dict[str, Any] = {
        VPC_ID: {
            "Type": "AWS::EC2::VPC",
            "Properties": {"CidrBlock": VPC_CIDR, "Tags": _tags("vpc")},
        },
        "InternetGateway": {
            "Type": "AWS::EC2::InternetGateway",
            "Properties": {"Tags": _tags("igw")},
        },
        "GatewayAttachment": {
            "Type": "AWS::EC2::VPCGatewayAttachment",
            "Properties": {
                "VpcId": _ref(VPC_ID),
                "InternetGatewayId": _ref("InternetGateway"),
            },
        },
        BOSH_SUBNET_ID: {
            "Type": "AWS::EC2::Subnet",
            "Properties": {
                "VpcId": _ref(VPC_ID),
                "CidrBlock": BOSH_SUBNET_CIDR,
                "Tags": _tags("bosh"),
            },
        },
        "PublicRouteTable": {
            "Type": "AWS::EC2::RouteTable",
            "Properties": {"VpcId": _ref(VPC_ID), "Tags": _tags("public")},
        },
        "PublicRoute": {
            "Type": "AWS::EC2::Route",
            "DependsOn": "GatewayAttachment",
            "Properties": {
                "RouteTableId": _ref("PublicRouteTable"),
                "DestinationCidrBlock": "0.0.0.0/0",
                "GatewayId": _ref("InternetGateway"),
            },
        },
        "BOSHSubnetRouteTableAssociation": {
            "Type": "AWS::EC2::SubnetRouteTableAssociation",
            "Properties": {
                "SubnetId": _ref(BOSH_SUBNET_ID),
                "RouteTableId": _ref("PublicRouteTable"),
            },
        },
        "NATSecurityGroup": {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {
                "VpcId": _ref(VPC_ID),
                "GroupDescription": "NAT box",
                "SecurityGroupIngress": [
                    {"IpProtocol": "-1", "CidrIp": VPC_CIDR},
                ],
                "Tags": _tags("nat"),
            },
        },
        NAT_INSTANCE_ID: {
            "Type": "AWS::EC2::Instance",
            "DependsOn": "GatewayAttachment",
            "Properties": {
                "ImageId": _ref(NAT_AMI_PARAMETER),
                "InstanceType": "t2.micro",
                "KeyName": _ref(KEY_NAME_PARAMETER),
                "SourceDestCheck": False,
                "NetworkInterfaces": [
                    {
                        "DeviceIndex": "0",
                        "SubnetId": _ref(BOSH_SUBNET_ID),
                        "AssociatePublicIpAddress": True,
                        "GroupSet": [_ref("NATSecurityGroup")],
                    }
                ],
                "Tags": _tags("nat"),
            },
        },
        "InternalSubnet": {
            "Type": "AWS::EC2::Subnet",
            "Properties": {
                "VpcId": _ref(VPC_ID),
                "CidrBlock": INTERNAL_SUBNET_CIDR,
                "AvailabilityZone": {"Fn::GetAtt": [BOSH_SUBNET_ID, "AvailabilityZone"]},
                "Tags": _tags("internal"),
            },
        },
        "InternalRouteTable": {
            "Type": "AWS::EC2::RouteTable",
            "Properties": {"VpcId": _ref(VPC_ID), "Tags": _tags("internal")},
        },
        "InternalRoute": {
            "Type": "AWS::EC2::Route",
            "Properties": {
                "RouteTableId": _ref("InternalRouteTable"),
                "DestinationCidrBlock": "0.0.0.0/0",
                "InstanceId": _ref(NAT_INSTANCE_ID),
            },
        },
        "InternalSubnetRouteTableAssociation": {
            "Type": "AWS::EC2::SubnetRouteTableAssociation",
            "Properties": {
                "SubnetId": _ref("InternalSubnet"),
                "RouteTableId": _ref("InternalRouteTable"),
            },
        },
        BOSH_SECURITY_GROUP_ID: {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {
                "VpcId": _ref(VPC_ID),
                "GroupDescription": "BOSH director",
                "SecurityGroupIngress": [
                    {"IpProtocol": "tcp", "FromPort": 22, "ToPort": 22, "CidrIp": "0.0.0.0/0"},
                    {"IpProtocol": "tcp", "FromPort": 6868, "ToPort": 6868, "CidrIp": "0.0.0.0/0"},
                    {
                        "IpProtocol": "tcp",
                        "FromPort": 25555,
                        "ToPort": 25555,
                        "CidrIp": "0.0.0.0/0",
                    },
                    {"IpProtocol": "-1", "CidrIp": VPC_CIDR},
                ],
                "Tags": _tags("bosh"),
            },
        },
        BOSH_DIRECTOR_IP_ID: {
            "Type": "AWS::EC2::EIP",
            "DependsOn": "GatewayAttachment",
            "Properties": {"Domain": "vpc"},
        },
        BOSH_USER_ID: {
            "Type": "AWS::IAM::User",
            "Properties": {"Policies": [_bosh_user_policy()]},
        },
    }

    return {
        "AWSTemplateFormatVersion": "2010-09-09",
        "Description": "tubes base stack: network, NAT box and BOSH director user",
        "Parameters": {
            NAT_AMI_PARAMETER: {
                "Type": "AWS::EC2::Image::Id",
                "Description": "AMI for the NAT box",
            },
            KEY_NAME_PARAMETER: {
                "Type": "AWS::EC2::KeyPair::KeyName",
                "Description": "SSH keypair for the NAT box and the director",
            },
        },
        "Resources": resources,
    }


BASE_STACK_TEMPLATE = yaml.safe_dump(
    build_base_stack_template(), default_flow_style=False, sort_keys=False
)
