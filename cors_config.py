# CORS configuration
from flask_cors import CORS


ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def configure_cors(app):
    # Public crawl/source endpoints are called from the browser dashboard and edge clients
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ALLOWED_HEADERS,
        }
    }, send_wildcard=True)
    return app
