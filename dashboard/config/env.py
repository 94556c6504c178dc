from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DATE_CONVENTIONS = ("period", "load_time")


@dataclass(frozen=True)
class QuickStatsConfig:
    api_key: Optional[str] = None
    base_url: str = "https://quickstats.nass.usda.gov/api"
    timeout: float = 30.0


def get_quickstats_config() -> QuickStatsConfig:
    return QuickStatsConfig(
        api_key=os.getenv("USDA_API_KEY") or None,
        base_url=os.getenv("QUICKSTATS_BASE_URL", "https://quickstats.nass.usda.gov/api").rstrip("/"),
        timeout=float(os.getenv("QUICKSTATS_TIMEOUT", "30")),
    )


@dataclass(frozen=True)
class SeriesConfig:
    date_convention: str = "period"  # period|load_time
    default_timeframe: str = "5Y"
    query: str = "commodity_desc=EGGS&year__GE=2015&year__LE=2025&format=JSON"


def get_series_config() -> SeriesConfig:
    convention = os.getenv("SERIES_DATE_CONVENTION", "period").strip().lower()
    if convention not in DATE_CONVENTIONS:
        raise ValueError(f"SERIES_DATE_CONVENTION must be one of {DATE_CONVENTIONS}, got {convention!r}")
    return SeriesConfig(
        date_convention=convention,
        default_timeframe=os.getenv("SERIES_DEFAULT_TIMEFRAME", "5Y"),
        query=os.getenv("SERIES_QUERY", SeriesConfig.query),
    )


@dataclass(frozen=True)
class ExplainConfig:
    news_api_key: Optional[str] = None
    hf_api_key: Optional[str] = None
    model: str = "mistralai/mistral-7b-instruct"
    news_base_url: str = "https://newsapi.org/v2/everything"
    inference_base_url: str = "https://api-inference.huggingface.co/models"
    news_query: str = "egg prices"
    subject: str = "egg prices"
    unit: str = "per dozen"
    max_new_tokens: int = 100
    temperature: float = 0.7
    headline_limit: int = 3
    timeout: float = 30.0


def get_explain_config() -> ExplainConfig:
    return ExplainConfig(
        news_api_key=os.getenv("NEWS_API_KEY") or None,
        hf_api_key=os.getenv("HF_API_KEY") or None,
        model=os.getenv("HF_MODEL", ExplainConfig.model),
        news_query=os.getenv("EXPLAIN_NEWS_QUERY", ExplainConfig.news_query),
        subject=os.getenv("EXPLAIN_SUBJECT", ExplainConfig.subject),
        unit=os.getenv("EXPLAIN_UNIT", ExplainConfig.unit),
        max_new_tokens=int(os.getenv("EXPLAIN_MAX_NEW_TOKENS", "100")),
        temperature=float(os.getenv("EXPLAIN_TEMPERATURE", "0.7")),
    )
