"""
Main Routes

FLOW OVERVIEW
- / [GET]
  • Service banner.
- /health [GET]
  • JSON health check.
- /metrics [GET]
  • Prometheus exposition.
"""

from datetime import datetime

from flask import Blueprint, Response, jsonify

from ..utils.prom_metrics import CONTENT_TYPE_LATEST, metrics_latest

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def home():
    return jsonify({'service': 'KM Foundation Portal API', 'status': 'running'})


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    return jsonify({'status': 'healthy', 'timestamp': datetime.utcnow().isoformat()})


@main_bp.route('/metrics')
def metrics():
    """Expose Prometheus metrics"""
    output = metrics_latest()
    return Response(output, mimetype=CONTENT_TYPE_LATEST)
