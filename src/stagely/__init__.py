"""stagely — staging-cluster orchestration on AWS.

Drives the aws, kops and kubectl command-line tools with a strict
layered architecture.
"""

from stagely.version import __version__

__all__: list[str] = ["__version__"]
