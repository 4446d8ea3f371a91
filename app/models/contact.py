"""Contact form models for the contact form API.

This module contains the Pydantic models for contact form submissions,
composed email messages and the JSON bodies returned by the API.
"""

from typing import Any, Dict, List, Optional
from typing_extensions import Annotated
from pydantic import BaseModel, ConfigDict, Field


class ContactSubmission(BaseModel):
    """Raw contact form submission as received from the client.

    Every field accepts any JSON value so that presence and format problems
    are reported by the validation service with its own messages.

    Attributes:
        name: Full name of the person getting in touch
        email: Email address for the reply
        subject: Subject line of the inquiry
        message: The message itself
        phone: Optional phone number
        company: Optional company name
        budget: Optional project budget
        timeline: Optional project timeline
    """
    name: Annotated[Any, Field(None, description="Full name of the person getting in touch")]
    email: Annotated[Any, Field(None, description="Email address for the reply")]
    subject: Annotated[Any, Field(None, description="Subject line of the inquiry")]
    message: Annotated[Any, Field(None, description="The message or inquiry")]
    phone: Annotated[Any, Field(None, description="Optional phone number")]
    company: Annotated[Any, Field(None, description="Optional company name")]
    budget: Annotated[Any, Field(None, description="Optional project budget")]
    timeline: Annotated[Any, Field(None, description="Optional project timeline")]

    model_config = ConfigDict(extra="ignore")


class SanitizedSubmission(BaseModel):
    """Contact submission after sanitization and validation.

    Optional fields that were not supplied are empty strings.
    """
    name: str
    email: str
    subject: str
    message: str
    phone: str = ""
    company: str = ""
    budget: str = ""
    timeline: str = ""

    model_config = ConfigDict(frozen=True)


class OutgoingMessage(BaseModel):
    """A composed email, ready to be handed to a mail transport.

    Attributes:
        sender: Address the message is sent from
        sender_name: Display name shown next to the sender address
        recipient: Address the message is delivered to
        subject: Subject line
        html_body: HTML variant of the body
        text_body: Plain text variant of the body
        reply_to: Optional Reply-To address
    """
    sender: str
    sender_name: Optional[str] = None
    recipient: str
    subject: str
    html_body: str
    text_body: str
    reply_to: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ContactResponse(BaseModel):
    """Response model for a successfully processed contact form."""
    success: bool = Field(True, description="Whether the contact form was processed")
    message: str = Field(..., description="Success message for the user")


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="User facing error message")
    details: Optional[str] = Field(None, description="Error details, development mode only")


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    uptime: float = Field(..., description="Seconds since the process started")
    environment: str
    pythonVersion: str


class InfoResponse(BaseModel):
    success: bool = True
    name: str
    version: str
    endpoints: Dict[str, str]
    rateLimit: Dict[str, Any]


class CheckResult(BaseModel):
    status: str = Field(..., description="OK, SUCCESS, ERROR or SKIPPED")
    error: Optional[str] = None
    kind: Optional[str] = Field(None, description="Dispatch error kind when status is ERROR")


class DebugReport(BaseModel):
    """Diagnostic report returned by the operator debug endpoint."""
    success: bool = True
    timestamp: str
    transport: str
    environment: Dict[str, Any]
    transporter: CheckResult
    emailTest: CheckResult
    recommendations: List[str]
