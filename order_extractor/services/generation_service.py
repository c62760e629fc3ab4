"""Text generation service backed by OpenAI through LangChain.
"""
import logging
import os
from typing import Protocol

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from ..config import MODEL_CONFIG
from ..exceptions import GenerationError

logger = logging.getLogger(__name__)


class GenerationService(Protocol):
    """Single request/response text generation capability."""

    def generate(self, prompt: str) -> str: ...


class OpenAIGenerationService:
    """Generates structured extraction responses with an OpenAI chat model."""

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the chat model.

        Args:
            api_key: OpenAI key, defaults to the OPENAI_API_KEY environment variable

        """
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.llm = ChatOpenAI(
            model=str(MODEL_CONFIG["extraction_model"]),
            temperature=float(MODEL_CONFIG["temperature"]),
            max_tokens=int(MODEL_CONFIG["max_tokens"]),
            timeout=float(MODEL_CONFIG["timeout"]),
            max_retries=0,
            api_key=api_key,
            model_kwargs={"response_format": {"type": "json_object"}},
        )

        # The prompt is passed as a variable so JSON braces inside it are
        # not read as template fields
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "You extract structured order data and reply with JSON only."),
                ("user", "{prompt}"),
            ]
        )
        self.chain = prompt | self.llm | StrOutputParser()

    def generate(self, prompt: str) -> str:
        """Send one prompt and return the raw response text.

        Raises:
            GenerationError: On any client, network or timeout failure

        """
        try:
            return self.chain.invoke({"prompt": prompt})
        except Exception as e:
            raise GenerationError(f"Generation request failed: {e!s}") from e


def create_generation_service() -> OpenAIGenerationService | None:
    """Create the default generation service, or None when not configured."""
    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY not set, generative extraction will be simulated")
        return None
    return OpenAIGenerationService()
