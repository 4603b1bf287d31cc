"""School account provisioning service.

To use the Flask app:
    from provisioner.flask_app import create_app

To use the provisioning core directly:
    from provisioner.core.provisioning_service import build_service
"""
# Note: flask_app is not imported by default so that the CLI and the core
# can be used without building the web application.
