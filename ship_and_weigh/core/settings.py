from __future__ import annotations

import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) not in ("0", "false", "False", "")


@dataclass(frozen=True)
class Settings:
    # AWS
    aws_region: str = os.environ.get("AWS_REGION", "us-east-1")

    # DynamoDB single table holding settings and recipients
    table_name: str = os.environ.get("SHIP_AND_WEIGH_TABLE", "ship_and_weigh")

    # Settings specification override (JSON file); empty means built-in default
    settings_spec_path: str = os.environ.get("SETTINGS_SPEC_PATH", "")

    # HTTP surface
    api_prefix: str = os.environ.get("API_PREFIX", "/sg-ship-and-weigh-api/v1").rstrip("/")
    admin_capability: str = os.environ.get("ADMIN_CAPABILITY", "manage_options")

    # Cognito (optional wiring; dev fallback otherwise)
    cognito_user_pool_id: str = os.environ.get("COGNITO_USER_POOL_ID", "")
    cognito_region: str = os.environ.get("COGNITO_REGION", "")
    cognito_app_client_id: str = os.environ.get("COGNITO_APP_CLIENT_ID", "")
    cognito_expected_token_use: str = os.environ.get("COGNITO_EXPECTED_TOKEN_USE", "access")

    # Anti-forgery nonces (HMAC)
    nonce_secret: str = os.environ.get("NONCE_SECRET", "")
    nonce_lifetime_seconds: int = int(os.environ.get("NONCE_LIFETIME_SECONDS", str(24 * 3600)))

    # EasyPost
    easypost_api_key: str = os.environ.get("EASYPOST_API_KEY", "")
    easypost_base_url: str = os.environ.get("EASYPOST_BASE_URL", "https://api.easypost.com/v2").rstrip("/")
    easypost_timeout_seconds: float = float(os.environ.get("EASYPOST_TIMEOUT_SECONDS", "15"))

    # Server (uvicorn)
    host: str = os.environ.get("HOST", "0.0.0.0")
    port: int = int(os.environ.get("PORT", "8000"))

    # Diagnostics
    debug: bool = _flag("DEBUG", "0")
    audit_log_enabled: bool = _flag("AUDIT_LOG_ENABLED", "1")
    metrics_enabled: bool = _flag("METRICS_ENABLED", "1")


S = Settings()
