"""HTTP layer: blueprints, CORS helpers and error handlers."""
