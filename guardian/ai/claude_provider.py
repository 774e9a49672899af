"""Guardian - Anthropic Claude Provider."""

import json
from typing import Optional

from anthropic import AsyncAnthropic

from guardian.ai.base_provider import AIProvider
from guardian.config import Settings, get_settings
from guardian.core.logging import get_logger

logger = get_logger("ai.claude")

SYSTEM_PROMPT = """You are a performance-marketing analyst reviewing one ad campaign.

The data you receive was pre-computed by a deterministic analyzer. Your job is
INTERPRETATION and RECOMMENDATION, not arithmetic.

RULES:

1. NEVER recompute, round, or modify numeric values. Quote them as given.
2. Use the "currency" field exactly as provided. Never convert currency.
3. If "status" is "insufficient_data", say so and stop. Do NOT fabricate analysis.
4. Treat "warningSignals" as the primary evidence; address the highest severity first.
5. Respect "creativeFatigue.confidence": hedge when it is "low".
6. When "dailyTruncated" is true, only the most recent days are included.
7. Do NOT introduce numbers that are not in the data.

FORMAT:
- One-line verdict first (scale / hold / fix creative / cut budget)
- Then bullet points with evidence
- Keep it under 400 words
"""


class ClaudeProvider(AIProvider):
    """Anthropic Claude provider for campaign commentary."""

    def __init__(self, settings: Settings | None = None, client=None):
        self.settings = settings or get_settings()
        if client is not None:
            self.client = client
        elif self.settings.anthropic_api_key:
            self.client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        else:
            self.client = None

    def is_available(self) -> bool:
        return self.client is not None

    async def generate_analysis(
        self, context: dict, question: Optional[str] = None
    ) -> str:
        if not self.is_available():
            raise RuntimeError("Claude provider not configured")

        data_block = json.dumps(context, indent=2, ensure_ascii=False)

        if question:
            user_prompt = (
                f'The user asks: "{question}"\n\n'
                f"Answer using ONLY the campaign data below.\n\n"
                f"Data:\n{data_block}"
            )
        else:
            user_prompt = f"Assess this campaign and recommend next steps:\n\n{data_block}"

        try:
            response = await self.client.messages.create(
                model=self.settings.anthropic_model,
                max_tokens=1200,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": user_prompt},
                ],
            )
            return (
                response.content[0].text
                if response.content
                else "No analysis generated."
            )
        except Exception as e:
            logger.error(f"Claude generation failed: {e}")
            raise
