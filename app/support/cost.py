"""Cost estimation from a static pricing table.

Prices are USD per million tokens (prompt/completion), approximating OpenRouter list
prices for common model families.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class ModelPrice:
    prompt_per_million: float
    completion_per_million: float

    def estimate(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (prompt_tokens / 1_000_000) * self.prompt_per_million + (
            completion_tokens / 1_000_000
        ) * self.completion_per_million


# Declaration order matters: the first key contained in the model id wins, so
# "gpt-4-turbo" is priced as "gpt-4".
MODEL_PRICING: Mapping[str, ModelPrice] = {
    "gpt-4": ModelPrice(30.0, 60.0),
    "gpt-4-turbo": ModelPrice(10.0, 30.0),
    "gpt-3.5-turbo": ModelPrice(0.5, 1.5),
    "claude-3-opus": ModelPrice(15.0, 75.0),
    "claude-3-sonnet": ModelPrice(3.0, 15.0),
    "claude-3-haiku": ModelPrice(0.25, 1.25),
}

DEFAULT_PRICING_KEY = "gpt-3.5-turbo"


def resolve_pricing(model: str) -> ModelPrice:
    for key, price in MODEL_PRICING.items():
        if key in model:
            return price
    return MODEL_PRICING[DEFAULT_PRICING_KEY]


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimated USD cost of one completion."""
    return resolve_pricing(model).estimate(prompt_tokens, completion_tokens)
