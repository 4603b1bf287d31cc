"""Error handlers for the application (JSON bodies only)."""
from flask import jsonify
from werkzeug.exceptions import HTTPException


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return jsonify({"error": "Bad Request", "message": _description(error)}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        return jsonify({"error": "Method Not Allowed", "message": _description(error)}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        """Handle request bodies above MAX_CONTENT_LENGTH."""
        return jsonify({"error": "Payload Too Large", "message": "Request body exceeds the configured limit"}), 413

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": str(error)}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": str(error)}), 500


def _description(error) -> str:
    return getattr(error, "description", None) or str(error)
