import io
import logging
import re
from typing import List, Optional

import openai
from PyPDF2 import PdfReader
from reviewdesk.database.config import settings
from reviewdesk.llm.utils import retry_llm_operation

logger = logging.getLogger(__name__)

# Only the head of a paper is sent to the model
MAX_PROMPT_CHARS = 6000

INSIGHTS_SYSTEM_PROMPT = (
    "Read the following research paper text and provide 3-5 concise bullet-point "
    "insights summarizing its ideas and methods."
)

BULLET_SPLIT = re.compile(r"\n|•|-")


def extract_text(content: bytes, filename: str) -> str:
    """
    Readable text of an uploaded paper, truncated to MAX_PROMPT_CHARS.

    PDFs go through PyPDF2; anything else is decoded as UTF-8.
    """
    if filename.lower().endswith(".pdf"):
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
        text = " ".join(pages)
    else:
        text = content.decode("utf-8", errors="replace")
    return text[:MAX_PROMPT_CHARS]


def parse_insights(summary_text: Optional[str]) -> List[str]:
    """Split a model reply on newlines and bullet markers, dropping blanks."""
    if not summary_text:
        return []
    parts = (part.strip() for part in BULLET_SPLIT.split(summary_text))
    return [part for part in parts if part]


class InsightExtractor:
    """Generates bullet insights for a paper with an OpenAI chat model."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.INSIGHT_MODEL
        self._client: Optional[openai.OpenAI] = None

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    @retry_llm_operation(max_retries=2, delay=1.0)
    def generate(self, text: str) -> List[str]:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            max_tokens=300,
            temperature=0.4,
        )
        return parse_insights(completion.choices[0].message.content)

    def extract(self, content: bytes, filename: str) -> List[str]:
        text = extract_text(content, filename)
        logger.info(f"Generating insights for {filename} from {len(text)} chars")
        return self.generate(text)


insight_extractor = InsightExtractor()
