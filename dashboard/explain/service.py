from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging

from dashboard.config.env import ExplainConfig, get_explain_config
from dashboard.explain.cache import ExplanationCache
from dashboard.explain.llm_client import build_prompt, generate
from dashboard.explain.news_client import fetch_news_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Explanation:
    text: str
    cached: bool = False


def explain_point(date: str, price: float, cache: ExplanationCache, cfg: Optional[ExplainConfig] = None) -> Explanation:
    """Explain one chart point (label + value).

    Cache hit -> stored text. Otherwise: news headlines for that date, prompt,
    inference, then store. ExplanationError from the model propagates.
    """
    hit = cache.get(date, price)
    if hit is not None:
        return Explanation(text=hit, cached=True)
    cfg = cfg or get_explain_config()
    news = fetch_news_summary(date, cfg)
    text = generate(build_prompt(date, price, news, cfg), cfg)
    cache.put(date, price, text)
    logger.info("Explained point %s = %s", date, price)
    return Explanation(text=text)
