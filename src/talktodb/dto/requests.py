"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field, field_validator


class AskRequest(BaseModel):
    """Request DTO for asking a question.

    The handler will convert this to a call to the question service.
    """

    question: str = Field(..., description="Natural-language question about the table", min_length=1)

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question is required")
        return value
