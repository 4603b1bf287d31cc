"""Gunicorn configuration file with secret loading.

Secret Loading Priority (post_fork hook):
1. /run/secrets (Docker secrets), read by provisioner.config.settings
2. Azure Key Vault direct access (fallback when /run/secrets is empty)
   → Only triggered when AZURE_USE_KEYVAULT=true
   → Requires the `azure` extra (azure-identity, azure-keyvault-secrets)
"""
import os
from pathlib import Path

wsgi_app = "provisioner.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
# Worst case: every store call of a large batch hits the platform timeout.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "300"))


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Loads platform secrets into the environment before the app factory
    runs in the worker, unless Docker secrets are already mounted.
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.info("DEMO_MODE=true: skipping Azure Key Vault secret loading")
        return

    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets (using cached secrets)")
            return

    use_kv = os.environ.get("AZURE_USE_KEYVAULT", "false").lower() == "true"
    if not use_kv:
        worker.log.info("Skipping Azure Key Vault direct access (AZURE_USE_KEYVAULT=false)")
        return

    try:
        from azure.identity import DefaultAzureCredential
        from azure.keyvault.secrets import SecretClient
    except ImportError:
        worker.log.error("Azure Key Vault requested but azure-keyvault-secrets not installed")
        return

    vault_name = os.environ.get("AZURE_KEY_VAULT_NAME")
    if not vault_name:
        worker.log.error("AZURE_KEY_VAULT_NAME required when AZURE_USE_KEYVAULT=true")
        return

    vault_uri = f"https://{vault_name}.vault.azure.net"
    secret_client = SecretClient(vault_url=vault_uri, credential=DefaultAzureCredential())

    # Map environment variables to Key Vault secret names
    secret_mapping = {
        "SUPABASE_SERVICE_ROLE_KEY": os.environ.get(
            "AZURE_SECRET_SUPABASE_SERVICE_ROLE_KEY", "supabase-service-role-key"
        ),
        "PROVISIONING_API_TOKEN": os.environ.get("AZURE_SECRET_PROVISIONING_API_TOKEN", "provisioning-api-token"),
        "AUDIT_LOG_SIGNING_KEY": os.environ.get("AZURE_SECRET_AUDIT_LOG_SIGNING_KEY", "audit-log-signing-key"),
    }

    for env_name, secret_name in secret_mapping.items():
        if os.environ.get(env_name):  # Skip if already set
            continue
        secret_name = secret_name.strip()
        if not secret_name:
            continue
        try:
            secret = secret_client.get_secret(secret_name)
            os.environ[env_name] = secret.value
            worker.log.info(f"Loaded secret '{secret_name}' into {env_name}")
        except Exception as exc:
            worker.log.error(f"Failed to load secret '{secret_name}': {exc}")

    worker.log.info("Azure Key Vault secrets loaded")
