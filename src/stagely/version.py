"""Single source of truth for the stagely version string."""

from __future__ import annotations

__version__: str = "0.3.0"

__description__: str = (
    "Create, tear down and deploy to a staging Kubernetes cluster on AWS "
    "using the aws, kops and kubectl CLIs."
)
