"""Point explanations: news context + hosted LLM, cached per chart point.

- cache.py: explicit (label, value) keyed cache
- news_client.py / llm_client.py: outbound calls and their payload shapes
- service.py: composes the two into one explanation
"""
