"""
Best-effort illustrative images for news headlines.

Uses the OpenAI Images API when enabled and keyed. Every failure path,
including a disabled provider, yields None: images are cosmetic.
"""
import asyncio
from typing import Optional

import openai

from api_budget import daily_budget

IMAGE_PROMPT = (
    "Editorial illustration for a financial news headline, clean, no text, "
    "no logos, muted dark palette: {title}"
)


class ImageEnrichmentClient:
    def __init__(self, api_key: str = "", model: str = "dall-e-3", enabled: bool = True, timeout: float = 60.0):
        self.model = model
        self.timeout = timeout
        self.client = openai.OpenAI(api_key=api_key) if (api_key and enabled) else None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def generate_image(self, title: str) -> Optional[str]:
        if self.client is None or not title:
            return None
        if not daily_budget.spend("openai_images"):
            return None
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.images.generate,
                    model=self.model,
                    prompt=IMAGE_PROMPT.format(title=title[:300]),
                    n=1,
                    size="1024x1024",
                ),
                timeout=self.timeout,
            )
            data = getattr(response, "data", None) or []
            if not data:
                return None
            first = data[0]
            url = getattr(first, "url", None)
            if url:
                return url
            b64 = getattr(first, "b64_json", None)
            return f"data:image/png;base64,{b64}" if b64 else None
        except asyncio.TimeoutError:
            print(f"[IMAGES] Timed out generating image for: {title[:60]}")
            return None
        except Exception as e:
            print(f"[IMAGES] Image generation failed: {e}")
            return None
