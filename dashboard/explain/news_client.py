from __future__ import annotations
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode
import logging

import requests

from dashboard.config.env import ExplainConfig, get_explain_config

logger = logging.getLogger(__name__)


def build_news_url(date: str, cfg: Optional[ExplainConfig] = None) -> str:
    cfg = cfg or get_explain_config()
    params = {
        "q": cfg.news_query,
        "from": date,
        "to": date,
        "sortBy": "relevancy",
        "apiKey": cfg.news_api_key or "",
    }
    return f"{cfg.news_base_url}?{urlencode(params)}"


def summarize_articles(payload: Dict[str, Any], limit: int = 3) -> str:
    """Top `limit` articles as '- title: description' lines; '' when there are none."""
    articles = payload.get("articles") if isinstance(payload, dict) else None
    if not articles:
        return ""
    lines: List[str] = []
    for a in articles[:limit]:
        lines.append(f"- {a.get('title')}: {a.get('description')}")
    return "\n".join(lines)


def fetch_news_summary(date: str, cfg: Optional[ExplainConfig] = None) -> str:
    """Headline summary for `date`. News is optional context, so failures yield ''."""
    cfg = cfg or get_explain_config()
    try:
        resp = requests.get(build_news_url(date, cfg), timeout=cfg.timeout)
        payload = resp.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("News search failed for %s: %s", date, e)
        return ""
    return summarize_articles(payload, cfg.headline_limit)
