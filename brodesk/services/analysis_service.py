"""AI assistance for ticket submission and triage.

Three analyses run against an OpenAI-compatible chat completion endpoint:
category prediction, duplicate detection and sentiment scoring. Model
output that cannot be parsed degrades to a neutral answer instead of
failing the request.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from fastapi import status
from openai import APIConnectionError, APIStatusError, AsyncOpenAI, RateLimitError
from pydantic import ValidationError

from brodesk.core.config import Settings
from brodesk.core.errors import AppError, InputValidationError
from brodesk.domain.visibility import filter_visible
from brodesk.models.entities import Actor
from brodesk.models.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    CategoryPrediction,
    DuplicateTicket,
    SentimentResult,
)
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository

logger = logging.getLogger(__name__)

DUPLICATE_CANDIDATE_LIMIT = 50
DESCRIPTION_EXCERPT_LENGTH = 100

CATEGORY_SYSTEM_PROMPT = (
    "You are a ticket categorization assistant. Given a ticket title and description, "
    "predict the most appropriate category from the available options. "
    "Return ONLY the category name that best matches."
)
DUPLICATE_SYSTEM_PROMPT = (
    "You are a duplicate detection assistant. Analyze if a new ticket is similar to "
    "existing tickets. Return a JSON array of ticket numbers that are potential duplicates. "
    'If no duplicates found, return an empty array. Format: ["BRO00001", "BRO00002"]'
)
SENTIMENT_SYSTEM_PROMPT = (
    "You are a sentiment analysis assistant. Analyze the sentiment and urgency of a "
    "support ticket. Return a JSON object with:\n"
    '- sentiment: "positive", "neutral", or "negative"\n'
    '- urgency: "low", "medium", "high", or "urgent"\n'
    "- score: a number from 0 to 1 representing intensity (0 = calm, 1 = very upset/urgent)\n"
    "- reasoning: brief explanation\n\n"
    'Format: {"sentiment": "negative", "urgency": "high", "score": 0.8, "reasoning": "..."}'
)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def strip_code_fence(content: str) -> str:
    match = _FENCE_PATTERN.match(content.strip())
    if match:
        return match.group(1).strip()
    return content.strip()


def parse_json(content: str) -> Any:
    return json.loads(strip_code_fence(content))


class AnalysisService:
    def __init__(
        self,
        settings: Settings,
        ticket_repository: TicketRepository,
        reference_repository: ReferenceRepository,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.settings = settings
        self.ticket_repository = ticket_repository
        self.reference_repository = reference_repository
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.llm_api_key:
                raise AppError(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    code="AI_NOT_CONFIGURED",
                    message="AI analysis is not configured.",
                )
            self._client = AsyncOpenAI(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.llm_timeout_seconds,
            )
        return self._client

    async def _complete(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        try:
            completion = await client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except RateLimitError as exc:
            raise AppError(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                code="AI_RATE_LIMITED",
                message="AI rate limit exceeded. Please try again later.",
            ) from exc
        except APIStatusError as exc:
            if exc.status_code == status.HTTP_402_PAYMENT_REQUIRED:
                raise AppError(
                    status_code=status.HTTP_402_PAYMENT_REQUIRED,
                    code="AI_CREDITS_DEPLETED",
                    message="AI credits depleted. Please add credits to continue.",
                ) from exc
            raise AppError(
                status_code=status.HTTP_502_BAD_GATEWAY,
                code="AI_UPSTREAM_ERROR",
                message=f"AI API error: {exc.status_code}",
            ) from exc
        except APIConnectionError as exc:
            raise AppError(
                status_code=status.HTTP_502_BAD_GATEWAY,
                code="AI_UPSTREAM_ERROR",
                message="AI API is unreachable.",
            ) from exc

        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()

    async def analyze(self, actor: Actor, payload: AnalysisRequest) -> AnalysisResponse:
        title = payload.title.strip()
        if not title:
            raise InputValidationError("Ticket title is required for analysis.")

        if payload.type == "predict_category":
            prediction = await self.predict_category(title, payload.description)
            return AnalysisResponse(prediction=prediction)
        if payload.type == "check_duplicates":
            duplicates = await self.check_duplicates(actor, title, payload.description)
            return AnalysisResponse(duplicates=duplicates)
        sentiment = await self.analyze_sentiment(title, payload.description)
        return AnalysisResponse(sentiment=sentiment)

    async def predict_category(self, title: str, description: str) -> CategoryPrediction:
        categories = await self.reference_repository.list_categories()
        category_list = "\n".join(
            f"{category.name}: {category.description or 'No description'}"
            for category in categories
        )
        content = await self._complete(
            CATEGORY_SYSTEM_PROMPT,
            f"Available categories:\n{category_list}\n\n"
            f"Ticket Title: {title}\nTicket Description: {description}\n\n"
            "Which category best fits this ticket? Return only the category name.",
        )
        predicted = strip_code_fence(content).strip().strip('"')
        matched = next(
            (category for category in categories if category.name.lower() == predicted.lower()),
            None,
        )
        if matched is None:
            return CategoryPrediction(predicted_category_name=predicted, confidence="low")
        return CategoryPrediction(
            predicted_category_id=matched.id,
            predicted_category_name=matched.name,
            confidence="high",
        )

    async def check_duplicates(
        self,
        actor: Actor,
        title: str,
        description: str,
    ) -> list[DuplicateTicket]:
        """Duplicates among recent open tickets, limited to those ``actor`` can see."""
        recent = await self.ticket_repository.list_recent_open(limit=DUPLICATE_CANDIDATE_LIMIT)
        if not recent:
            return []

        tickets_list = "\n".join(
            f"[{ticket.ticket_number}] {ticket.title}: "
            f"{ticket.description[:DESCRIPTION_EXCERPT_LENGTH]}"
            for ticket in recent
        )
        try:
            content = await self._complete(
                DUPLICATE_SYSTEM_PROMPT,
                f"New Ticket:\nTitle: {title}\nDescription: {description}\n\n"
                f"Existing Tickets:\n{tickets_list}\n\n"
                "Return only a JSON array of duplicate ticket numbers, or [] if none found.",
            )
        except AppError as exc:
            logger.warning("Duplicate check failed: %s", exc.message)
            return []

        try:
            numbers = parse_json(content)
        except json.JSONDecodeError:
            logger.info("Duplicate check returned non-JSON output")
            return []
        if not isinstance(numbers, list):
            return []

        wanted = {str(number) for number in numbers}
        return [
            DuplicateTicket(id=ticket.id, ticket_number=ticket.ticket_number, title=ticket.title)
            for ticket in filter_visible(actor, recent)
            if ticket.ticket_number in wanted
        ]

    async def analyze_sentiment(self, title: str, description: str) -> SentimentResult:
        content = await self._complete(
            SENTIMENT_SYSTEM_PROMPT,
            f"Ticket Title: {title}\nTicket Description: {description}\n\n"
            "Analyze the sentiment and urgency.",
        )
        try:
            return SentimentResult.model_validate(parse_json(content))
        except (json.JSONDecodeError, ValidationError):
            logger.info("Sentiment analysis returned unparsable output")
            return SentimentResult()
