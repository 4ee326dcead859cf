"""
gemini_client.py

Talks to Gemini through LangChain for the numerology insight endpoints.
This module:
 - Sends prompts from prompts.py to the primary model, retrying once on the fallback model.
 - Cleans and validates JSON replies against the schemas in schemas.py.
 - Runs the chat companion, either as a single reply or as a stream of text fragments.
"""

import logging
import os
from contextlib import aclosing
from typing import AsyncIterator, Callable, Dict, Optional, Sequence, Type, TypeVar

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage
from langchain_core.output_parsers import PydanticOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, ValidationError

from numerology import NumerologyProfile
from prompts import (
    build_chat_prompt,
    build_chat_prompt_with_context,
    build_compatibility_fallback,
    build_compatibility_prompt,
    build_daily_energy_prompt,
    build_personality_prompt,
)
from schemas import (
    ChatMessage,
    ChatResponse,
    ChatUserProfile,
    CompatibilityInsight,
    DailyEnergy,
    PersonalityInsight,
    SessionContext,
)

logger = logging.getLogger(__name__)

# -----------------------------
# Configuration
# -----------------------------
PRIMARY_MODEL = "gemini-2.5-pro"
FALLBACK_MODEL = "gemini-flash-latest"
CHAT_MODEL = "gemini-2.5-pro"
TEMPERATURE_DEFAULT = 0.7

SchemaT = TypeVar("SchemaT", bound=BaseModel)
ModelFactory = Callable[[str], BaseChatModel]


# -----------------------------
# Errors
# -----------------------------
class GatewayError(Exception):
    """Base class for failures turning a model reply into a result."""


class EmptyResponseError(GatewayError):
    """The model answered without any text."""


class SchemaMismatchError(GatewayError, ValueError):
    """The reply parsed as JSON but not into the expected shape."""


# -----------------------------
# Reply helpers
# -----------------------------
def message_text(message: BaseMessage) -> str:
    """Extracts plain text from a message or chunk; content may be a string or a list of parts."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def clean_json_response(raw_text: str) -> str:
    """Strips Markdown code fences the model may wrap around its JSON."""
    clean_json = raw_text.strip()
    if clean_json.startswith("```json"):
        clean_json = clean_json[7:]
    if clean_json.startswith("```"):
        clean_json = clean_json[3:]
    if clean_json.endswith("```"):
        clean_json = clean_json[:-3]
    return clean_json.strip()


def parse_json_reply(raw_text: str, schema: Type[SchemaT]) -> SchemaT:
    """
    Cleans and parses a JSON reply through a PydanticOutputParser. Malformed
    JSON raises OutputParserException; valid JSON of the wrong shape raises
    SchemaMismatchError.
    """
    parser = PydanticOutputParser(pydantic_object=schema)
    try:
        return parser.parse(clean_json_response(raw_text))
    except OutputParserException as e:
        if isinstance(e.__cause__, ValidationError):
            raise SchemaMismatchError(f"Reply does not match {schema.__name__}: {e.__cause__}") from e
        raise


# -----------------------------
# Gateway
# -----------------------------
class GeminiGateway:
    def __init__(
        self,
        api_key: str = "",
        model_factory: Optional[ModelFactory] = None,
        temperature: float = TEMPERATURE_DEFAULT,
        primary_model: str = PRIMARY_MODEL,
        fallback_model: str = FALLBACK_MODEL,
        chat_model: str = CHAT_MODEL,
    ):
        self.api_key = api_key
        self.temperature = temperature
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.chat_model = chat_model
        self._model_factory = model_factory or self._create_gemini_model
        self._models: Dict[str, BaseChatModel] = {}

    @classmethod
    def from_env(cls, **kwargs) -> "GeminiGateway":
        return cls(api_key=os.getenv("GEMINI_API_KEY", ""), **kwargs)

    def _create_gemini_model(self, model_name: str) -> BaseChatModel:
        return ChatGoogleGenerativeAI(model=model_name, google_api_key=self.api_key, temperature=self.temperature)

    def get_model(self, model_name: str) -> BaseChatModel:
        """Models are built on first use, so a bad credential fails inside the call path."""
        if model_name not in self._models:
            self._models[model_name] = self._model_factory(model_name)
        return self._models[model_name]

    async def _generate(self, model_name: str, prompt: str) -> str:
        llm = self.get_model(model_name)
        response = await llm.ainvoke([HumanMessage(content=prompt)])
        text = message_text(response)
        if not text.strip():
            raise EmptyResponseError(f"Empty response from {model_name}")
        return text

    async def generate_with_fallback(self, prompt: str) -> str:
        """
        Tries the primary model, then the fallback model exactly once.
        An empty reply counts as a failure. If the fallback fails too, its
        error propagates.
        """
        try:
            logger.info(f"Attempting generation with {self.primary_model}...")
            return await self._generate(self.primary_model, prompt)
        except Exception as primary_error:
            logger.warning(f"Primary model ({self.primary_model}) failed: {primary_error}")

        logger.info(f"Falling back to {self.fallback_model}...")
        try:
            text = await self._generate(self.fallback_model, prompt)
        except Exception as fallback_error:
            logger.error(f"Fallback model ({self.fallback_model}) also failed: {fallback_error}", exc_info=True)
            raise
        logger.info(f"Successfully generated with fallback model {self.fallback_model}")
        return text

    # --- Readings ---
    async def generate_personality_insights(self, profile: NumerologyProfile) -> PersonalityInsight:
        prompt = build_personality_prompt(profile)
        try:
            raw_text = await self.generate_with_fallback(prompt)
            logger.info(f"Gemini personality response: {raw_text}")
            return parse_json_reply(raw_text, PersonalityInsight)
        except Exception as e:
            logger.error(f"Error generating personality insights: {e}", exc_info=True)
            raise

    async def generate_compatibility_insights(
        self,
        person1: NumerologyProfile,
        person2: NumerologyProfile,
        overall_score: int,
        level: str,
    ) -> CompatibilityInsight:
        """Never raises: any failure is replaced by a templated reading built from both profiles."""
        prompt = build_compatibility_prompt(person1, person2, overall_score, level)
        try:
            raw_text = await self.generate_with_fallback(prompt)
            logger.info(f"Gemini compatibility response: {raw_text}")
            return parse_json_reply(raw_text, CompatibilityInsight)
        except Exception as e:
            logger.error(f"Error generating compatibility insights: {e}", exc_info=True)
            return build_compatibility_fallback(person1, person2, overall_score, level)

    async def generate_daily_energy(
        self,
        profile: NumerologyProfile,
        personal_day_number: int,
        universal_day_number: int,
        today_date: str,
    ) -> DailyEnergy:
        prompt = build_daily_energy_prompt(profile, personal_day_number, universal_day_number, today_date)
        try:
            raw_text = await self.generate_with_fallback(prompt)
            logger.info(f"Gemini daily energy response: {raw_text}")
            return parse_json_reply(raw_text, DailyEnergy)
        except Exception as e:
            logger.error(f"Error generating daily energy: {e}", exc_info=True)
            raise

    # --- Chat ---
    async def _chat(self, prompt: str) -> ChatResponse:
        try:
            logger.info(f"Chat: Using model {self.chat_model}...")
            response = await self.get_model(self.chat_model).ainvoke([HumanMessage(content=prompt)])
            raw_text = message_text(response)
            logger.info(f"Gemini chat response: {raw_text}")
            return ChatResponse(message=raw_text.strip())
        except Exception as e:
            logger.error(f"Error generating chat response: {e}", exc_info=True)
            raise

    async def generate_chat_response(
        self,
        user_message: str,
        profile: ChatUserProfile,
        conversation_history: Sequence[ChatMessage],
    ) -> ChatResponse:
        return await self._chat(build_chat_prompt(user_message, profile, conversation_history))

    async def generate_chat_response_with_context(
        self,
        user_message: str,
        context: SessionContext,
        conversation_history: Sequence[ChatMessage],
    ) -> ChatResponse:
        prompt = build_chat_prompt_with_context(
            user_message, context.system_context, context.first_name, conversation_history
        )
        return await self._chat(prompt)

    async def _stream(self, prompt: str) -> AsyncIterator[str]:
        llm = self.get_model(self.chat_model)
        logger.info(f"Chat stream: Using model {self.chat_model}...")
        try:
            # Closing this generator early closes the model stream as well.
            async with aclosing(llm.astream([HumanMessage(content=prompt)])) as stream:
                async for chunk in stream:
                    text = message_text(chunk)
                    if text:
                        yield text
        except Exception as e:
            logger.error(f"Error generating chat stream: {e}", exc_info=True)
            raise

    async def stream_chat_response(
        self,
        user_message: str,
        profile: ChatUserProfile,
        conversation_history: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        prompt = build_chat_prompt(user_message, profile, conversation_history)
        async with aclosing(self._stream(prompt)) as fragments:
            async for fragment in fragments:
                yield fragment

    async def stream_chat_response_with_context(
        self,
        user_message: str,
        context: SessionContext,
        conversation_history: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        prompt = build_chat_prompt_with_context(
            user_message, context.system_context, context.first_name, conversation_history
        )
        async with aclosing(self._stream(prompt)) as fragments:
            async for fragment in fragments:
                yield fragment
