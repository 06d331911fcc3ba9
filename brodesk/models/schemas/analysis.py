from typing import Literal

from pydantic import BaseModel

AnalysisType = Literal["predict_category", "check_duplicates", "analyze_sentiment"]


class AnalysisRequest(BaseModel):
    type: AnalysisType
    title: str
    description: str = ""


class CategoryPrediction(BaseModel):
    predicted_category_id: str | None = None
    predicted_category_name: str
    confidence: Literal["high", "low"]


class DuplicateTicket(BaseModel):
    id: str
    ticket_number: str
    title: str


class SentimentResult(BaseModel):
    sentiment: str = "neutral"
    urgency: str = "medium"
    score: float = 0.5
    reasoning: str = "Unable to analyze"


class AnalysisResponse(BaseModel):
    prediction: CategoryPrediction | None = None
    duplicates: list[DuplicateTicket] | None = None
    sentiment: SentimentResult | None = None
