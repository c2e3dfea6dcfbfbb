from flask import Flask, request, jsonify
from flask_cors import CORS
import logging
import os

import batch_runner
from breach_checker import BreachChecker
from hash_query import HashQuery
from pwned_config import CheckerConfig
from pwned_errors import CacheIOError, InvalidHashError, TransportError

logger = logging.getLogger(__name__)

app = Flask(__name__)
# One checker per process so every request shares the same prefix locks
app.config["BREACH_CHECKER"] = BreachChecker(CheckerConfig.from_env())

CORS(app)


def get_checker():
    return app.config["BREACH_CHECKER"]


@app.after_request
def add_security_headers(response):
    """Injects production-grade security headers."""
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains; preload'
    # JSON only, nothing should ever be loaded from a response
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    return response


@app.errorhandler(InvalidHashError)
def invalid_hash(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(TransportError)
def upstream_failed(e):
    logger.warning("range lookup failed: %s", e)
    return jsonify({"error": "Upstream range lookup failed"}), 502


@app.errorhandler(CacheIOError)
def cache_failed(e):
    logger.error("partition cache failed: %s", e)
    return jsonify({"error": "Partition cache unavailable"}), 500


@app.route('/api/pwned/<hash_value>')
def pwned(hash_value):
    # Only the 5 char prefix is forwarded upstream, the suffix is matched here
    query = HashQuery.parse(hash_value)
    found = get_checker().check(query)
    return jsonify({"hash": str(query), "found": found})


@app.route('/api/pwned', methods=['POST'])
def pwned_batch():
    data = request.get_json(silent=True) or {}
    hashes = data.get('hashes')
    if not isinstance(hashes, list) or not all(isinstance(h, str) for h in hashes):
        return jsonify({"error": "Expected a JSON list of hashes under 'hashes'"}), 400

    queries = batch_runner.read_hashes(hashes)
    checker = get_checker()
    results = batch_runner.run_batch(checker, queries, checker.config.max_in_flight)
    return jsonify({"results": [r.to_dict() for r in results]})


@app.route('/health')
def health():
    return "OK", 200


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    # Use PORT env for Render/Heroku compatibility
    port = int(os.environ.get("PORT", 5000))
    app.run(host='0.0.0.0', port=port)
