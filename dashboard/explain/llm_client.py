from __future__ import annotations
from typing import Any, Dict, Optional
import logging

import requests

from dashboard.config.env import ExplainConfig, get_explain_config

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation found."


class ExplanationError(RuntimeError):
    pass


def format_price(price: float) -> str:
    return f"{float(price):g}"


def build_prompt(date: str, price: float, news_summary: str = "", cfg: Optional[ExplainConfig] = None) -> str:
    cfg = cfg or get_explain_config()
    return (
        f"On {date}, {cfg.subject} were ${format_price(price)} {cfg.unit}. "
        "Analyze potential factors such as seasonal trends, supply chain issues, feed costs, "
        "economic conditions, weather events, and market demand. "
        f"Recent news: {news_summary}"
    )


def build_inference_payload(prompt: str, cfg: Optional[ExplainConfig] = None) -> Dict[str, Any]:
    cfg = cfg or get_explain_config()
    return {
        "inputs": prompt,
        "parameters": {"max_new_tokens": cfg.max_new_tokens, "temperature": cfg.temperature},
    }


def parse_generated_text(result: Any) -> str:
    if isinstance(result, list) and result and isinstance(result[0], dict):
        text = result[0].get("generated_text")
        if text:
            return text
    return NO_EXPLANATION


def generate(prompt: str, cfg: Optional[ExplainConfig] = None) -> str:
    """Run the prompt through the hosted text-generation model."""
    cfg = cfg or get_explain_config()
    url = f"{cfg.inference_base_url}/{cfg.model}"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {cfg.hf_api_key or ''}",
    }
    try:
        resp = requests.post(url, json=build_inference_payload(prompt, cfg), headers=headers, timeout=cfg.timeout)
    except requests.exceptions.RequestException as e:
        raise ExplanationError(f"Hugging Face API error: {e}") from e
    if not resp.ok:
        logger.error("Inference call failed: %s %s", resp.status_code, resp.reason)
        raise ExplanationError(f"Hugging Face API error: {resp.reason}")
    try:
        return parse_generated_text(resp.json())
    except ValueError:
        return NO_EXPLANATION
