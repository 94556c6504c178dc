from __future__ import annotations
from typing import Any
from flask import Flask, request, jsonify, Response

import os
import json
import logging
import time
from collections import deque, defaultdict
from pathlib import Path
from urllib.parse import parse_qsl

from dashboard.api.session import ChartSession, SessionFailed, SessionNotReady, new_session
from dashboard.config.env import get_series_config
from dashboard.explain.llm_client import ExplanationError
from dashboard.explain.service import explain_point
from dashboard.ingestion.quickstats_client import UpstreamError, fetch_records, proxy_get

logger = logging.getLogger(__name__)

API_DIR = Path(__file__).resolve().parent

app = Flask(__name__, static_folder=str(API_DIR / "static"), static_url_path="/static")

SESSION: ChartSession = new_session()

# Configuration helpers (overridable via app.config in tests)

def _get_api_key() -> str | None:
    if 'API_KEY' in app.config:
        return app.config.get('API_KEY')
    return os.environ.get('API_KEY')


def _get_rate_limit() -> tuple[int, float]:
    n = app.config.get('RATE_LIMIT_N')
    w = app.config.get('RATE_LIMIT_WINDOW_SEC')
    if n is None:
        n = int(os.environ.get('RATE_LIMIT_N', '5'))
    if w is None:
        w = float(os.environ.get('RATE_LIMIT_WINDOW_SEC', '1.0'))
    return int(n), float(w)


def _get_session() -> ChartSession:
    return app.config.get('SESSION') or SESSION


def _session_fetcher():
    params = parse_qsl(get_series_config().query)
    return lambda: fetch_records(params)


_recent: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=100))


def _client_ip() -> str:
    xff = request.headers.get('X-Forwarded-For')
    if xff:
        return xff.split(',')[0].strip()
    return request.remote_addr or 'anon'


def _check_api_key():
    api_key = _get_api_key()
    if api_key:
        provided = request.headers.get('X-API-Key')
        if provided != api_key:
            return jsonify({'error': 'unauthorized'}), 401
    return None


def _check_rate_limit(key: str):
    n, window = _get_rate_limit()
    if n <= 0:
        return None
    now = time.time()
    dq = _recent[key]
    while dq and now - dq[0] > window:
        dq.popleft()
    if len(dq) >= n:
        retry = max(0.0, window - (now - dq[0]))
        resp = jsonify({'error': 'rate_limited'})
        resp.status_code = 429
        resp.headers['Retry-After'] = f"{retry:.2f}"
        return resp
    dq.append(now)
    return None


@app.before_request
def _log_auth_and_rate_limit():
    logger.info("Incoming request: %s %s", request.method, request.path)
    # The proxy and the page stay open; explanation and series routes can be keyed.
    # The bundled page sends no key, so API_KEY is for headless deployments.
    if request.path.startswith(('/explain', '/series')):
        unauthorized = _check_api_key()
        if unauthorized is not None:
            return unauthorized
        # Each explanation costs an inference call, each refresh an upstream fetch
        if request.method == 'POST' and request.path in ('/explain', '/series/refresh'):
            rl = _check_rate_limit(f"{_client_ip()} {request.path}")
            if rl is not None:
                return rl
    return None


@app.get('/')
def index():
    return app.send_static_file('index.html')


@app.get('/usda/<path:subpath>')
def usda_proxy(subpath: str):
    try:
        upstream = proxy_get(subpath, list(request.args.items(multi=True)))
    except UpstreamError as e:
        return jsonify({'error': str(e)}), 502
    return Response(upstream.body, status=upstream.status, content_type=upstream.content_type)


@app.post('/explain')
def post_explain():
    payload = request.get_json(force=True, silent=True) or {}
    date = payload.get('date')
    price = payload.get('price')
    if not date or price is None or price == '':
        return jsonify({'error': 'Missing required parameters'}), 400
    try:
        price = float(price)
    except (TypeError, ValueError):
        return jsonify({'error': 'price must be a number'}), 400
    try:
        result = explain_point(str(date), price, _get_session().cache)
    except ExplanationError as e:
        return jsonify({'error': str(e)}), 500
    return jsonify({'explanation': result.text, 'cached': result.cached})


@app.post('/series/refresh')
def post_refresh():
    session = _get_session()
    background = not app.config.get('SYNC_FETCH', False)
    seq = session.refresh(_session_fetcher(), background=background)
    return jsonify({'seq': seq, 'state': session.state}), 202


@app.get('/series')
def get_series():
    session = _get_session()
    timeframe = request.args.get('timeframe') or get_series_config().default_timeframe
    try:
        view = session.view(timeframe)
    except SessionNotReady:
        return jsonify({'error': 'not_ready'}), 409
    except SessionFailed as e:
        return jsonify({'error': e.code, 'detail': e.detail}), 503
    body: dict[str, Any] = view.to_dict()
    body['requested'] = timeframe
    body['seq'] = session.committed_seq
    return jsonify(body)


@app.get('/series/status')
def get_series_status():
    return jsonify(_get_session().status())


@app.get('/openapi.json')
def get_openapi():
    try:
        spec = json.loads((API_DIR / 'openapi.json').read_text())
    except (OSError, ValueError):
        return jsonify({'error': 'openapi_not_found'}), 404
    return jsonify(spec)


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
    port = int(os.environ.get('PORT', '5000'))
    logger.info("Proxy server running on port %d", port)
    app.run(host='0.0.0.0', port=port)


if __name__ == '__main__':
    main()
