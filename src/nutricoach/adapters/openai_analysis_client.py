"""OpenAI Responses API client for meal text analysis."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from nutricoach.services.nutrition import AnalysisClient


@dataclass
class OpenAIAnalysisClient(AnalysisClient):
    """Analysis client backed by OpenAI structured outputs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAnalysisClient":
        """Create an OpenAI analysis client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def extract(
        self,
        *,
        model: str,
        text: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Parse a meal description into the food items schema."""
        response = await self.client.responses.create(
            model=model,
            instructions=prompt,
            input=text,
            text={
                "format": {
                    "type": "json_schema",
                    "name": "meal_analysis",
                    "strict": True,
                    "schema": schema,
                }
            },
            store=False,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
