import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from numerology import parse_birth_date


# --- Pydantic Schemas for Model Replies ---
class PersonalityInsight(BaseModel):
    overview: str = Field(description="3-4 sentence second-person description of who the person is.")
    strengths: List[str] = Field(description="Exactly 5 one or two word strengths.")
    challenges: List[str] = Field(description="Exactly 4 one or two word challenges.")
    lifeLesson: str = Field(description="One sentence about the core life lesson.")
    careerPaths: List[str] = Field(description="Exactly 3 short career phrases.")
    relationshipStyle: str = Field(description="1-2 sentences about how they approach relationships.")
    spiritualGifts: List[str] = Field(description="Exactly 3 short phrases.")


class CompatibilityInsight(BaseModel):
    overviewNarrative: str
    emotionalConnection: str
    communicationDynamic: str
    growthPotential: str
    dailyLifeTogether: str
    advice: str


class DailyEnergy(BaseModel):
    theme: str = Field(description="2-3 words.")
    description: str
    dos: List[str] = Field(description="Exactly 3 items of 2-3 words.")
    donts: List[str] = Field(description="Exactly 3 items of 2-3 words.")
    focusArea: str = Field(description="2-4 words.")
    affirmation: str


# --- Chat ---
class ChatMessage(BaseModel):
    role: Literal['user', 'assistant']
    content: str


class ChatUserProfile(BaseModel):
    full_name: str
    birth_date: datetime.date
    # Accepted for completeness; no calculation uses them.
    birth_time: Optional[str] = None
    birth_location: Optional[str] = None

    @field_validator("birth_date", mode="before")
    @classmethod
    def _parse_birth_date(cls, value):
        return parse_birth_date(value)


class SessionContext(BaseModel):
    """Precomputed once per chat session and handed back on every turn."""
    system_context: str
    first_name: str


class ChatResponse(BaseModel):
    message: str
