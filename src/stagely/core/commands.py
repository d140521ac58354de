"""Argument-vector builders for the aws, kops and kubectl collaborators.

Every function here is **pure**: it only assembles a ``list[str]`` that
the :class:`~stagely.core.protocols.CommandRunner` executes.  Keeping the
exact command lines in one place makes them trivially unit-testable.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

AWS = "aws"
KOPS = "kops"
KUBECTL = "kubectl"

# Fixed sizing of the staging cluster.
MASTER_COUNT = 1
NODE_COUNT = 2
INSTANCE_TYPE = "t3.micro"

# S3 rejects an explicit LocationConstraint for the default region.
_DEFAULT_S3_REGION = "us-east-1"

_BUCKET_ENCRYPTION = {
    "Rules": [
        {"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}},
    ],
}


# ---------------------------------------------------------------------------
# aws
# ---------------------------------------------------------------------------

def aws_configure_get(key: str, profile: str) -> list[str]:
    return [AWS, "configure", "get", key, "--profile", profile]


def aws_describe_availability_zones(region: str) -> list[str]:
    return [AWS, "ec2", "describe-availability-zones", "--region", region]


def aws_create_bucket(bucket: str, region: str) -> list[str]:
    args = [AWS, "s3api", "create-bucket", "--bucket", bucket, "--region", region]
    if region != _DEFAULT_S3_REGION:
        args += ["--create-bucket-configuration", f"LocationConstraint={region}"]
    return args


def aws_enable_bucket_versioning(bucket: str) -> list[str]:
    return [
        AWS, "s3api", "put-bucket-versioning",
        "--bucket", bucket,
        "--versioning-configuration", "Status=Enabled",
    ]


def aws_enable_bucket_encryption(bucket: str) -> list[str]:
    return [
        AWS, "s3api", "put-bucket-encryption",
        "--bucket", bucket,
        "--server-side-encryption-configuration", json.dumps(_BUCKET_ENCRYPTION),
    ]


def aws_remove_bucket(bucket_url: str) -> list[str]:
    return [AWS, "s3", "rb", bucket_url, "--force"]


# ---------------------------------------------------------------------------
# kops
# ---------------------------------------------------------------------------

def kops_create_cluster(cluster_name: str, zones: Sequence[str]) -> list[str]:
    return [
        KOPS, "create", "cluster",
        "--zones", ",".join(zones),
        "--master-count", str(MASTER_COUNT),
        f"--master-size={INSTANCE_TYPE}",
        "--node-count", str(NODE_COUNT),
        f"--node-size={INSTANCE_TYPE}",
        cluster_name,
    ]


def kops_update_cluster(cluster_name: str) -> list[str]:
    return [KOPS, "update", "cluster", "--name", cluster_name, "--yes"]


def kops_validate_cluster(cluster_name: str) -> list[str]:
    return [KOPS, "validate", "cluster", "--name", cluster_name]


def kops_delete_cluster(cluster_name: str) -> list[str]:
    return [KOPS, "delete", "cluster", cluster_name, "--yes"]


# ---------------------------------------------------------------------------
# kubectl
# ---------------------------------------------------------------------------

def kubectl_apply(manifest: str) -> list[str]:
    return [KUBECTL, "apply", "-f", manifest]


def kubectl_load_balancer_hostname(service: str, namespace: str) -> list[str]:
    return [
        KUBECTL, "get", "service", service,
        "--namespace", namespace,
        "-o", "jsonpath={.status.loadBalancer.ingress[0].hostname}",
    ]


# ---------------------------------------------------------------------------
# local scripts
# ---------------------------------------------------------------------------

def clear_store_script(script: str, state_store: str) -> list[str]:
    return ["sh", script, state_store]
