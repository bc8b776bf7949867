"""Image analysis service - asks a multimodal model to describe an inventory item.

Models are reached through OpenRouter's OpenAI-compatible API. Each quality
profile maps to one model. Models that support structured output get a strict
JSON schema; the rest get the shape spelled out in the prompt and their reply
is scavenged for JSON.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from openai import APIError, AsyncOpenAI
from pydantic import ValidationError

from boxbox.config import Settings, settings
from boxbox.schemas.analysis import ItemAnalysis

log = logging.getLogger(__name__)

PROMPT = (
    "Analyze this image and extract inventory information. Identify the item, "
    "provide a brief description of the item and its condition, and estimate "
    "the quantity visible."
)

TEXT_MODE_INSTRUCTIONS = """Return STRICT JSON only, in this exact shape:
{
  "name": "short name of the item",
  "description": "one or two sentences",
  "quantity": 1
}
- "quantity" is a positive number.
- Do not add any other keys."""

ITEM_JSON_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "The name or title of the item"},
        "description": {
            "type": "string",
            "description": "A brief description of the item and its condition",
        },
        "quantity": {"type": "number", "description": "Estimated quantity visible in the image"},
    },
    "required": ["name", "description", "quantity"],
    "additionalProperties": False,
}

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class AnalysisError(Exception):
    """The model could not be reached or its reply was unusable."""


@dataclass(frozen=True)
class ModelProfile:
    """A quality tier resolved to a concrete model."""
    name: str
    model: str
    structured_output: bool


def resolve_profile(profile: str, config: Settings = settings) -> ModelProfile:
    """Map a profile name (fast/balanced/high) to its model."""
    models = {
        "fast": config.ANALYSIS_MODEL_FAST,
        "balanced": config.ANALYSIS_MODEL_BALANCED,
        "high": config.ANALYSIS_MODEL_HIGH,
    }
    if profile not in models:
        raise ValueError(f"Unknown analysis profile: {profile}")
    model = models[profile]
    return ModelProfile(
        name=profile,
        model=model,
        structured_output=model not in config.ANALYSIS_TEXT_MODE_MODELS,
    )


def extract_json_text(reply: str) -> str:
    """Pull the JSON payload out of a free-text reply.

    The first fenced code block wins; without one the whole trimmed reply is used.
    """
    match = _FENCED_BLOCK.search(reply)
    if match:
        return match.group(1).strip()
    return reply.strip()


def parse_analysis(raw: str) -> ItemAnalysis:
    """Parse and validate a JSON reply."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise AnalysisError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisError("Model reply is not a JSON object")
    try:
        return ItemAnalysis.model_validate(data)
    except ValidationError as e:
        raise AnalysisError(f"Model reply failed validation: {e.error_count()} error(s)") from e


class ItemAnalyzer:
    """Runs one analysis request per call. No retries."""

    def __init__(self, client: AsyncOpenAI, config: Settings = settings):
        self.client = client
        self.config = config

    async def analyze(self, image: str, profile: str = "fast") -> ItemAnalysis:
        target = resolve_profile(profile, self.config)
        log.info("Analyzing item image profile=%s model=%s structured=%s",
                 target.name, target.model, target.structured_output)

        if target.structured_output:
            raw = await self._complete(target.model, self._messages(image, PROMPT), {
                "type": "json_schema",
                "json_schema": {"name": "inventory_item", "schema": ITEM_JSON_SCHEMA, "strict": True},
            })
        else:
            prompt = f"{PROMPT}\n\n{TEXT_MODE_INSTRUCTIONS}"
            raw = extract_json_text(await self._complete(target.model, self._messages(image, prompt)))

        analysis = parse_analysis(raw)
        log.info("Analysis complete model=%s name=%r quantity=%s", target.model, analysis.name, analysis.quantity)
        return analysis

    @staticmethod
    def _messages(image: str, prompt: str) -> list:
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image}},
                ],
            }
        ]

    async def _complete(self, model: str, messages: list, response_format: Optional[dict] = None) -> str:
        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        if response_format is not None:
            kwargs["response_format"] = response_format
        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except APIError as e:
            log.error("Model request failed model=%s: %s", model, e)
            raise AnalysisError(f"Model request failed: {e}") from e

        if not completion.choices:
            raise AnalysisError("Model returned no choices")
        content = completion.choices[0].message.content
        if not content or not content.strip():
            raise AnalysisError("Model returned an empty reply")
        return content


def create_analyzer(config: Settings = settings) -> Optional[ItemAnalyzer]:
    """Build an analyzer from settings, or None when no API key is configured."""
    if not config.OPENROUTER_API_KEY:
        return None
    client = AsyncOpenAI(
        api_key=config.OPENROUTER_API_KEY,
        base_url=config.OPENROUTER_BASE_URL,
        timeout=config.ANALYSIS_TIMEOUT_SECONDS,
        max_retries=0,
    )
    return ItemAnalyzer(client, config)
