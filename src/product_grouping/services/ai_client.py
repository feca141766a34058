"""Client for the AI grouping collaborator.

Talks to an OpenAI-compatible chat completions endpoint and turns its
answer into ordinary Clusters, so AI suggestions go through the same
filter and merge path as similarity suggestions.
"""

import json
import logging
from typing import Any

import httpx

from product_grouping.config import settings
from product_grouping.core.exceptions import GroupingError, SuggestionSourceError
from product_grouping.schemas.grouping import Cluster, ProductCandidate

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that groups grocery products based on "
    "similarity. Return valid JSON only."
)

PROMPT_TEMPLATE = """You are a product grouping assistant. Your task is to analyze product names within the same category and group products that represent the same item.

CATEGORY: {category}

PRODUCTS:
{products}

RULES:
1. Group products that are the same item but with different spelling/variants.
   Example: "Zucchini", "Zuccini", "Green Zucchini" -> group "Zucchini"
2. Use the shortest possible name as the groupName.
3. Products with a higher occurrence count should be weighted higher in analysis.
4. Be conservative - if unsure, do not create a group.
5. Provide a confidence score from 0-100 for each suggestion.

RETURN FORMAT (JSON):
{{
  "suggestions": [
    {{
      "groupName": "product_name",
      "products": ["original1", "original2"],
      "confidence": 85,
      "reasoning": "Explanation of why these products belong together"
    }}
  ]
}}"""


def build_prompt(category: str, candidates: list[ProductCandidate]) -> str:
    products = [{"name": c.name, "occurrences": c.occurrences} for c in candidates]
    return PROMPT_TEMPLATE.format(
        category=category, products=json.dumps(products, indent=2, ensure_ascii=False)
    )


def parse_suggestions(payload: Any) -> list[Cluster]:
    """Convert the model's JSON into clusters, skipping malformed entries.

    An entry needs a non-empty ``groupName`` and at least two distinct
    product names. Confidence (0-100) becomes a score in [0, 1].
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("suggestions"), list):
        raise SuggestionSourceError(details={"reason": "missing_suggestions"})

    clusters: list[Cluster] = []
    skipped = 0
    for entry in payload["suggestions"]:
        cluster = _parse_entry(entry)
        if cluster is None:
            skipped += 1
        else:
            clusters.append(cluster)

    if skipped:
        logger.warning("Skipped malformed AI suggestions", extra={"skipped_count": skipped})
    return clusters


def _parse_entry(entry: Any) -> Cluster | None:
    if not isinstance(entry, dict):
        return None

    name = entry.get("groupName")
    products = entry.get("products")
    if not isinstance(name, str) or not name.strip() or not isinstance(products, list):
        return None

    members = list(dict.fromkeys(p for p in products if isinstance(p, str) and p.strip()))
    if len(members) < 2:
        return None

    try:
        confidence = float(entry.get("confidence", 0))
    except (TypeError, ValueError):
        return None
    score = min(max(confidence / 100, 0.0), 1.0)

    reasoning = entry.get("reasoning")
    return Cluster(
        members=members,
        suggested_name=name.strip(),
        score=score,
        source="ai",
        reasoning=reasoning if isinstance(reasoning, str) else None,
    )


class AISuggestionClient:
    """Asks the AI collaborator for grouping suggestions.

    Args:
        base_url: API base URL (``/chat/completions`` is appended)
        api_key: Bearer token for the API
        model: Model name sent with each request
        http_client: Optional preconfigured httpx.AsyncClient (used in tests)
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.ai_suggest_url or "").rstrip("/")
        self.api_key = api_key or settings.ai_api_key
        self.model = model or settings.ai_model
        self._client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def suggest_groups(
        self, category: str, candidates: list[ProductCandidate]
    ) -> list[Cluster]:
        """Get suggested clusters for products of one category.

        Raises:
            GroupingError: AI_002 when no endpoint or key is configured
            SuggestionSourceError: On transport, HTTP or decoding failure
        """
        if not self.configured:
            raise GroupingError("AI_002", http_status=503)

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(category, candidates)},
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        logger.info(
            "Requesting AI suggestions",
            extra={"category": category, "candidates": len(candidates)},
        )
        try:
            if self._client is not None:
                response = await self._client.post(
                    f"{self.base_url}/chat/completions", json=body, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=settings.ai_timeout_seconds) as client:
                    response = await client.post(
                        f"{self.base_url}/chat/completions", json=body, headers=headers
                    )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            payload = json.loads(content)
        except httpx.HTTPStatusError as e:
            logger.error(
                "AI gateway returned an error",
                extra={"status_code": e.response.status_code},
            )
            raise SuggestionSourceError(details={"status_code": e.response.status_code}) from e
        except httpx.HTTPError as e:
            logger.error("AI gateway unreachable", extra={"error_type": type(e).__name__})
            raise SuggestionSourceError(details={"reason": "transport"}) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("AI response could not be decoded", extra={"error_type": type(e).__name__})
            raise SuggestionSourceError(details={"reason": "decode"}) from e

        return parse_suggestions(payload)
