"""Presentation tools exposed by the slides server.

The tool set is closed: every name in ``SlidesTool`` maps to one typed argument
model, and arguments are validated against that model by the registry before a
handler runs. Handlers receive the connection's SessionContext explicitly.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from enum import Enum
from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.protocol import Failure, Success, ToolDescriptor, ToolInvocationResult

from .context import SessionContext
from .registry import ToolRegistry
from .slides_service import SlideType, SlidesService

LOGGER = logging.getLogger(__name__)


class SlidesTool(str, Enum):
    EXTRACT_DATA = "extract-data"
    CREATE_PRESENTATION = "create-presentation"
    ADD_CUSTOM_SLIDE = "add-custom-slide"
    SET_ACCESS_TOKEN = "set-access-token"


class _WireArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExtractDataArgs(_WireArgs):
    name: str = Field(description="The name (first column value) of the row to extract.")
    csv_file: str = Field(alias="csvFile", description="The CSV text to extract the row from.")


class CreatePresentationArgs(_WireArgs):
    company_name: str = Field(
        alias="companyName",
        description="The name of the company, used as the title of the new presentation.",
    )

    @field_validator("company_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Missing or invalid input data for create-presentation")
        return value


class AddCustomSlideArgs(_WireArgs):
    slide_title: str = Field(
        alias="slideTitle",
        description="Title for the new slide, no more than 4-5 words.",
    )
    slide_content: str = Field(
        alias="slideContent",
        description="Body text of the slide. For a Bullet slide put each idea on its own line.",
    )
    presentation_id: str = Field(
        alias="presentationId",
        description=(
            "The presentationId returned by create-presentation. "
            "An empty string means the most recently created presentation."
        ),
    )
    slide_type: SlideType = Field(
        alias="slideType",
        description="One of the literal strings 'Paragraph' or 'Bullet'.",
    )


class SetAccessTokenArgs(_WireArgs):
    access_token: str = Field(alias="accessToken", description="The user's Google OAuth access token.")

    @field_validator("access_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Access token is empty or invalid. Please pass in a valid access token")
        return value


TOOL_ARGUMENTS: Dict[SlidesTool, Type[BaseModel]] = {
    SlidesTool.EXTRACT_DATA: ExtractDataArgs,
    SlidesTool.CREATE_PRESENTATION: CreatePresentationArgs,
    SlidesTool.ADD_CUSTOM_SLIDE: AddCustomSlideArgs,
    SlidesTool.SET_ACCESS_TOKEN: SetAccessTokenArgs,
}

TOOL_DESCRIPTIONS: Dict[SlidesTool, str] = {
    SlidesTool.EXTRACT_DATA: """Extract one row of data from a CSV file provided by the user.

Only call this tool when the user has uploaded a CSV file; never for PDF uploads or plain text context.
The user must say which row they want. If that is unclear, ask them before calling the tool.

Parameters:
  - name: the value in the first column of the row to extract (matched case-insensitively)
  - csvFile: the CSV text itself

Returns one JSON object for the row: each key is a column header and each value the cell in that row.
Keep this data and use it as context for the slides you create.""",
    SlidesTool.CREATE_PRESENTATION: """Create a new Google Slides presentation in the user's Google Drive.

Each call creates ONE presentation; the user works on one presentation at a time.
Parameters:
  - companyName: the title of the presentation (usually the company name)

Returns the presentationId of the new presentation. Remember it: add-custom-slide needs it.""",
    SlidesTool.ADD_CUSTOM_SLIDE: """Add a custom slide to an existing presentation.

Content and styling are up to you. Suggested titles: "The Problem", "The Solution", "The Market",
"Traction", "Why Us (Team)", "The Ask". Use the user's files or text as context; if the user uploaded
a CSV, call extract-data first. Ask the user if you need more information.

Parameters:
  - slideTitle: a short, clear title
  - slideContent: the body text; for bullet points, put each idea on a new line
  - presentationId: the id returned by create-presentation (do not create a new presentation)
  - slideType: "Paragraph" or "Bullet"; use "Bullet" if the user does not say""",
    SlidesTool.SET_ACCESS_TOKEN: "Store the user's access token for later presentation calls.",
}


def extract_row(name: str, csv_text: str) -> Optional[Dict[str, str]]:
    """Return the row whose first column matches ``name`` (case-insensitive), keyed by header.

    Cells are trimmed; cells missing from a short row come back as "".

    Raises:
        ValueError: If the CSV has no header row
    """
    rows = [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(csv_text.strip())) if row]
    if not rows:
        raise ValueError("The CSV file is empty")

    headers, body = rows[0], rows[1:]
    target = name.strip().lower()
    for row in body:
        if row[0].lower() == target:
            return {header: row[index] if index < len(row) else "" for index, header in enumerate(headers)}
    return None


class SlidesToolkit:
    """Handlers for the presentation tools, bound to one slides backend."""

    def __init__(self, service: SlidesService):
        self.service = service

    def extract_data(self, args: ExtractDataArgs, context: SessionContext) -> ToolInvocationResult:
        try:
            row = extract_row(args.name, args.csv_file)
        except (ValueError, csv.Error) as e:
            return Failure(message=f"An error occurred while extracting company data:\n{e}")

        if row is None:
            return Success.from_text(f"Could not find a title with the name {args.name}. Is it spelled correctly?")
        return Success.from_text(json.dumps(row, ensure_ascii=False, separators=(",", ":")))

    def create_presentation(self, args: CreatePresentationArgs, context: SessionContext) -> ToolInvocationResult:
        credential = context.require_credential()
        try:
            presentation_id = self.service.create_presentation(args.company_name, credential)
        except Exception as e:
            LOGGER.exception("create-presentation: Error creating presentation")
            return Failure(message=f"Failed to create presentation\n{e}")

        context.current_artifact_id = presentation_id
        return Success.from_text(f"Presentation ID: {presentation_id}. Check your root Google Drive folder!")

    def add_custom_slide(self, args: AddCustomSlideArgs, context: SessionContext) -> ToolInvocationResult:
        credential = context.require_credential()
        presentation_id = args.presentation_id.strip() or context.require_artifact_id()
        try:
            self.service.add_slide(
                presentation_id,
                args.slide_title,
                args.slide_content,
                args.slide_type,
                credential,
            )
        except Exception as e:
            LOGGER.exception("add-custom-slide: Error adding slide")
            return Failure(message=f"There was an error creating a custom slide:\n{e}")

        return Success.from_text("Successfully created a new custom slide. Check your root Google Drive folder!")

    def set_access_token(self, args: SetAccessTokenArgs, context: SessionContext) -> ToolInvocationResult:
        context.credential = args.access_token
        return Success.from_text("Successfully stored the user's access token")

    def register(self, registry: ToolRegistry) -> None:
        """Register every presentation tool on ``registry``."""
        handlers = {
            SlidesTool.EXTRACT_DATA: self.extract_data,
            SlidesTool.CREATE_PRESENTATION: self.create_presentation,
            SlidesTool.ADD_CUSTOM_SLIDE: self.add_custom_slide,
            SlidesTool.SET_ACCESS_TOKEN: self.set_access_token,
        }
        for tool, handler in handlers.items():
            arguments_model = TOOL_ARGUMENTS[tool]
            descriptor = ToolDescriptor.for_model(tool.value, TOOL_DESCRIPTIONS[tool], arguments_model)
            registry.register(descriptor, handler, arguments_model)
            LOGGER.debug(f"  ✓ Registered tool: {tool.value}")
