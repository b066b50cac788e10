"""Slides backends used by the presentation tools.

The tools only need two operations, so the backend is a small protocol:
``GoogleSlidesService`` talks to the Google Slides API with the user's bearer
token, and ``InMemorySlidesService`` is a dry-run backend for tests and demos.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Protocol

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

LOGGER = logging.getLogger(__name__)

SlideType = Literal["Paragraph", "Bullet"]

BULLET_PRESET = "BULLET_DISC_CIRCLE_SQUARE"


class SlidesService(Protocol):
    """Operations the presentation tools need from a slides backend."""

    def create_presentation(self, company_name: str, credential: str) -> str:
        """Create a titled presentation and return its id."""
        ...

    def add_slide(
        self,
        presentation_id: str,
        title: str,
        content: str,
        slide_type: SlideType,
        credential: str,
    ) -> None:
        """Append a title-and-body slide to an existing presentation."""
        ...


class GoogleSlidesService:
    """Slides backend for the Google Slides API (v1)."""

    def _service(self, credential: str):
        return build("slides", "v1", credentials=Credentials(token=credential), cache_discovery=False)

    def create_presentation(self, company_name: str, credential: str) -> str:
        service = self._service(credential)
        presentation = service.presentations().create(
            body={"title": f"{company_name} Slide Deck"}
        ).execute()
        presentation_id = presentation.get("presentationId")
        if not presentation_id:
            raise RuntimeError("Slides API did not return a presentationId")

        # Fill the title slide's two generated text boxes
        slides = service.presentations().get(presentationId=presentation_id).execute().get("slides", [])
        if not slides:
            raise RuntimeError(f"Presentation {presentation_id} has no title slide")
        elements = slides[0].get("pageElements", [])
        if len(elements) < 2:
            raise RuntimeError(f"Title slide of {presentation_id} is missing its text boxes")

        created = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        service.presentations().batchUpdate(
            presentationId=presentation_id,
            body={"requests": [
                {"insertText": {"objectId": elements[0]["objectId"], "text": company_name, "insertionIndex": 0}},
                {"insertText": {"objectId": elements[1]["objectId"], "text": f"Created: {created}", "insertionIndex": 0}},
            ]},
        ).execute()

        LOGGER.info(f"Created presentation with ID: {presentation_id}")
        return presentation_id

    def add_slide(
        self,
        presentation_id: str,
        title: str,
        content: str,
        slide_type: SlideType,
        credential: str,
    ) -> None:
        self._service(credential).presentations().batchUpdate(
            presentationId=presentation_id,
            body={"requests": build_slide_requests(title, content, slide_type)},
        ).execute()
        LOGGER.info(f"Added {slide_type} slide '{title}' to {presentation_id}")


def build_slide_requests(title: str, content: str, slide_type: SlideType) -> List[Dict[str, Any]]:
    """Batch-update requests that append a TITLE_AND_BODY slide."""
    slide_id = f"slide_{uuid.uuid4().hex[:16]}"
    title_id = f"{slide_id}_title"
    body_id = f"{slide_id}_body"

    requests: List[Dict[str, Any]] = [
        {
            "createSlide": {
                "objectId": slide_id,
                "slideLayoutReference": {"predefinedLayout": "TITLE_AND_BODY"},
                "placeholderIdMappings": [
                    {"layoutPlaceholder": {"type": "TITLE", "index": 0}, "objectId": title_id},
                    {"layoutPlaceholder": {"type": "BODY", "index": 0}, "objectId": body_id},
                ],
            }
        },
        {"insertText": {"objectId": title_id, "text": title, "insertionIndex": 0}},
    ]
    if content:
        requests.append({"insertText": {"objectId": body_id, "text": content, "insertionIndex": 0}})
        if slide_type == "Bullet":
            # One bullet per line of content
            requests.append({
                "createParagraphBullets": {
                    "objectId": body_id,
                    "textRange": {"type": "ALL"},
                    "bulletPreset": BULLET_PRESET,
                }
            })
    return requests


@dataclass
class StoredSlide:
    title: str
    content: str
    slide_type: SlideType


@dataclass
class StoredPresentation:
    title: str
    slides: List[StoredSlide] = field(default_factory=list)


class InMemorySlidesService:
    """Dry-run backend that keeps presentations in memory."""

    def __init__(self) -> None:
        self.presentations: Dict[str, StoredPresentation] = {}

    def create_presentation(self, company_name: str, credential: str) -> str:
        presentation_id = uuid.uuid4().hex
        self.presentations[presentation_id] = StoredPresentation(title=f"{company_name} Slide Deck")
        LOGGER.info(f"Created in-memory presentation with ID: {presentation_id}")
        return presentation_id

    def add_slide(
        self,
        presentation_id: str,
        title: str,
        content: str,
        slide_type: SlideType,
        credential: str,
    ) -> None:
        if presentation_id not in self.presentations:
            raise KeyError(f"Presentation not found: {presentation_id}")
        self.presentations[presentation_id].slides.append(StoredSlide(title, content, slide_type))
