from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Sex(str, Enum):
    female = "female"
    male = "male"


class PatientInput(BaseModel):
    """Patient details supplied on admission or update.

    Attributes are snake_case; the JSON shape (requests and the datastore)
    uses the camelCase aliases, e.g. ``firstName``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=True,
    )

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email_address: str = Field(max_length=254)
    phone_number: str = Field(max_length=40)
    sex: Sex

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank or whitespace-only")
        return v

    def to_record_fields(self) -> dict:
        """The JSON fields this input contributes to a stored record."""
        return self.model_dump(by_alias=True)


class PatientRecord(PatientInput):
    queue_number: int = Field(gt=0, description="Position of admission in the waiting queue")


class QueueEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    queue_number: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
