"""LLM integration layer.

This package is intentionally small:
- No prompt/output logging (customer questions may contain personal data).
- Configured once from settings via `get_llm_config`.
- Treated as a stateless function by callers.
"""
