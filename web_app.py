#!/usr/bin/env python3
"""
Flask entry point for the news crawl pipeline.
Endpoints: crawl trigger, news source registry, health.
"""

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging
import os
from datetime import datetime
from typing import Any

from dotenv import load_dotenv

from cors_config import configure_cors
from factfeed.config import CrawlSettings
from factfeed.crawl.orchestrator import build_orchestrator
from factfeed.crawl.request import CrawlRequest
from factfeed.errors import ConfigurationFailure
from factfeed.sources.registry import default_news_sources

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _parse_bool(value: Any, default: bool = False) -> bool:
    """Parse truthy query parameters safely."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


app = Flask(__name__)
app = configure_cors(app)
app.json.sort_keys = False
app.config['RATELIMIT_ENABLED'] = _parse_bool(os.environ.get('RATELIMIT_ENABLED'), default=True)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "100 per hour"],
    storage_uri="memory://"
)
limiter.init_app(app)


@app.route('/api/crawl-news', methods=['POST'])
@limiter.limit("10 per minute")
def crawl_news():
    """Crawl the requested (or default) sources and upsert their articles.

    Body: {"sources"?: [url, ...], "limit"?: number}
    """
    settings = CrawlSettings.from_env()
    try:
        orchestrator = build_orchestrator(settings)
    except ConfigurationFailure as e:
        logger.error(f"crawl-news configuration error: {e}")
        return jsonify({'error': str(e)}), 500

    try:
        crawl_request = CrawlRequest.from_body(request.get_json(silent=True))
        report = orchestrator.run(crawl_request.sources, crawl_request.limit)
        diagnostics = _parse_bool(request.args.get('diagnostics'))
        return jsonify(report.to_dict(include_diagnostics=diagnostics))
    except Exception as e:
        logger.error(f"crawl-news error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@app.route('/api/news-sources', methods=['GET'])
def news_sources():
    """Registry of known news sources, optionally filtered by ?category="""
    try:
        category = (request.args.get('category') or '').strip().lower()
        sources = [
            s.to_dict() for s in default_news_sources()
            if not category or (s.category or '').lower() == category
        ]
        return jsonify({'news_sources': sources})
    except Exception as e:
        logger.error(f"news-sources error: {e}", exc_info=True)
        return jsonify({'error': 'failed_to_load_sources'}), 500


@app.route('/api/health')
@limiter.exempt
def health_check():
    """API health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'version': '1.0.0'
    })


# Main execution block - MUST be at the very end after all routes are defined
if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    debug = os.environ.get('FLASK_ENV') == 'development'

    logger.info(f"Starting crawl API on port {port}")
    logger.info(f"Debug mode: {debug}")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        threaded=True
    )
