"""Pydantic schemas for extracted caller data, call analysis and API output."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from call_intake.models.caller import NOT_AVAILABLE, UNKNOWN


class CallerInfo(BaseModel):
    """Profile fields pulled from the transcript; every field is always set."""
    name: str = UNKNOWN
    course: str = UNKNOWN
    city: str = UNKNOWN
    state: str = UNKNOWN
    user_type: str = UNKNOWN


class CallAnalysis(BaseModel):
    """The LLM's structured reading of one call.

    Field aliases are the literal keys the prompt asks the model for.
    """
    model_config = ConfigDict(populate_by_name=True)

    call_status: str = Field(alias="Call Status")
    lead_status: str = Field(alias="Lead Status")
    contact_status: str | None = None
    remark: str = NOT_AVAILABLE
    contact_followupdate: str = NOT_AVAILABLE
    contact_followuptime: str = NOT_AVAILABLE

    @field_validator("remark", "contact_followupdate", "contact_followuptime", mode="before")
    @classmethod
    def null_to_not_available(cls, value):
        # the model answers null when nothing was mentioned
        if value is None or (isinstance(value, str) and not value.strip()):
            return NOT_AVAILABLE
        return value

    def model_post_init(self, __context) -> None:
        # contact_status mirrors lead_status when the model leaves it out
        if not self.contact_status:
            self.contact_status = self.lead_status


class CallerOut(BaseModel):
    """Response schema for caller endpoints."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    contact_num: str
    contact_name: str
    course: str
    user_type: str
    city: str
    state: str
    call_status: str | None = None
    lead_status: str | None = None
    contact_status: str | None = None
    contact_followupdate: str
    contact_followuptime: str
    remark: str | None = None
    last_call_summary: str | None = None
    created_at: datetime
    last_updated_at: datetime
