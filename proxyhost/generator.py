import html
import logging
from typing import Optional

from openai import OpenAI

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = "Generate full HTML pages."
FALLBACK_HTML = "<h1>AI generation failed</h1>"


# ---------- GENERATOR ----------

class SiteGenerator:
    """Asks a chat model for a complete HTML page."""

    def __init__(self, model: str = "gpt-4o-mini", use_mock: bool = True,
                 client: Optional[OpenAI] = None):
        self.model = model
        self.use_mock = use_mock
        self._client = client

    @property
    def client(self) -> OpenAI:
        # created lazily so mock mode never needs OPENAI_API_KEY
        if self._client is None:
            self._client = OpenAI()
        return self._client

    def generate(self, prompt: str) -> str:
        if self.use_mock:
            # deterministic page built from the prompt
            return (
                "<!DOCTYPE html>\n<html>\n<head><title>Generated site</title></head>\n"
                f"<body>\n<h1>{html.escape(prompt)}</h1>\n</body>\n</html>\n"
            )

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        content = response.choices[0].message.content if response.choices else None

        if not content or not content.strip():
            logger.warning(f"Model {self.model} returned no content")
            return FALLBACK_HTML

        return content.strip()
