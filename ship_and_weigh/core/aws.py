from __future__ import annotations

from typing import Any

import boto3

from .settings import S, Settings


def ddb_table(config: Settings = S) -> Any:
    session = boto3.session.Session(region_name=config.aws_region or "us-east-1")
    return session.resource("dynamodb").Table(config.table_name)
