"""Factories for the boto3 clients used by jobs and credential lookup.

Clients are built with botocore retries disabled, so every job call is
attempted exactly once. Instances are cached by
:class:`slack_command_bridge.runtime.AppRuntime`.
"""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config

_SINGLE_ATTEMPT = Config(retries={"max_attempts": 1, "mode": "standard"})


def build_client(service: str, *, region: str, config: Config | None = None) -> Any:
    """Create a boto3 client for *service* in *region*."""

    return boto3.client(service, region_name=region, config=config or _SINGLE_ATTEMPT)


def build_lambda_client(region: str) -> Any:
    """Create the Lambda client used by direct jobs."""

    return build_client("lambda", region=region, config=_SINGLE_ATTEMPT.merge(Config(read_timeout=900)))


def build_stepfunctions_client(region: str) -> Any:
    """Create the Step Functions client used by workflow jobs."""

    return build_client("stepfunctions", region=region)


def build_secretsmanager_client(region: str) -> Any:
    """Create the Secrets Manager client used to read Slack credentials."""

    return build_client("secretsmanager", region=region)
