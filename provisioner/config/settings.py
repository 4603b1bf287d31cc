"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_REQUEST_TIMEOUT = 10.0


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            print(f"[settings] ✓ Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Platform (identity + record stores)
    platform_url: str = ""
    service_role_key: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # HTTP surface
    api_token: str = ""
    cors_allow_origin: str = "*"

    # Audit
    audit_log_signing_key: str = ""

    @property
    def platform_configured(self) -> bool:
        """True when both the platform URL and the service-role key are known."""
        return bool(self.platform_url and self.service_role_key)


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _parse_timeout(raw: str | None) -> float:
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"PLATFORM_REQUEST_TIMEOUT must be a number of seconds, got {raw!r}")
    if value <= 0:
        raise RuntimeError("PLATFORM_REQUEST_TIMEOUT must be positive")
    return value


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # ─────────────────────────────────────────────────────────────────────────
    # Secrets: /run/secrets > environment variables > demo defaults
    # ─────────────────────────────────────────────────────────────────────────
    service_role_key = _load_secret_from_file("supabase_service_role_key", "SUPABASE_SERVICE_ROLE_KEY")
    if service_role_key:
        os.environ["SUPABASE_SERVICE_ROLE_KEY"] = service_role_key
    service_role_key = _get_or_generate(
        "SUPABASE_SERVICE_ROLE_KEY",
        demo_default=(os.environ.get("SUPABASE_SERVICE_ROLE_KEY_DEMO") or "demo-service-role-key"),
        required=False,
        demo_mode=demo_mode,
    )

    api_token = _load_secret_from_file("provisioning_api_token", "PROVISIONING_API_TOKEN") or ""
    if not api_token and not demo_mode:
        print("[settings] ⚠️ PROVISIONING_API_TOKEN not set; provisioning endpoints are unauthenticated")

    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY")
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key
    elif demo_mode:
        demo_key = os.environ.get("AUDIT_LOG_SIGNING_KEY_DEMO", "demo-audit-signing-key-change-in-production")
        os.environ["AUDIT_LOG_SIGNING_KEY"] = demo_key
        audit_log_signing_key = demo_key
        print(f"[demo-mode] Using demo AUDIT_LOG_SIGNING_KEY: {demo_key[:20]}...")

    # Platform
    platform_url = _get_or_generate(
        "SUPABASE_URL",
        demo_default="http://127.0.0.1:54321",
        required=False,
        demo_mode=demo_mode,
    ).rstrip("/")
    request_timeout = _parse_timeout(os.environ.get("PLATFORM_REQUEST_TIMEOUT"))

    cors_allow_origin = os.environ.get("CORS_ALLOW_ORIGIN", "*").strip() or "*"

    if not (platform_url and service_role_key):
        print("[settings] ⚠️ SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing; provisioning requests will fail")

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; platform={platform_url}; timeout={request_timeout}s")

    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        platform_url=platform_url,
        service_role_key=service_role_key,
        request_timeout=request_timeout,
        api_token=api_token,
        cors_allow_origin=cors_allow_origin,
        audit_log_signing_key=audit_log_signing_key or "",
    )
