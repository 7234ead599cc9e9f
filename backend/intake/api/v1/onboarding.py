"""Onboarding API router.

Drives intake sessions over HTTP. Every success body is a DataResponse
wrapping a session snapshot; notices queued by the session are drained
into the response that caused them.

Endpoints:
- POST   /sessions                              start a session (mounts it)
- GET    /sessions/{id}                         current snapshot
- PATCH  /sessions/{id}/forms/{section}         overwrite form fields
- POST   /sessions/{id}/forms/{section}/toggle  toggle a multi-select option
- POST   /sessions/{id}/continue                validate, save and advance
- POST   /sessions/{id}/back                    previous step, no validation
- POST   /sessions/{id}/skip                    leave an optional step
- POST   /sessions/{id}/jump                    go to a step in the sequence
- GET    /sessions/{id}/review                  re-evaluate completion
- POST   /sessions/{id}/finish                  complete or go back to gaps
- DELETE /sessions/{id}                         close the session
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Response, status

from intake.api.deps import Drafts, Provider, Registry, Session
from intake.core.responses import DataResponse
from intake.schemas.session import (
    CreateSessionRequest,
    FinishResult,
    JumpRequest,
    ReviewSummary,
    SessionSnapshot,
    ToggleOptionRequest,
)
from intake.services.intake_session import IntakeSession

logger = structlog.get_logger()

router = APIRouter()


def _respond(session: IntakeSession) -> DataResponse[SessionSnapshot]:
    return DataResponse(data=session.snapshot(include_notices=True))


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    provider: Provider,
    registry: Registry,
    drafts: Drafts,
    request: CreateSessionRequest | None = None,
) -> DataResponse[SessionSnapshot]:
    """Start and mount an intake session for the calling member.

    Raises:
        EntityFetchError: If the member cannot be loaded (502).
        NotFoundError: If focus_section collects no data (404).
    """
    body = request or CreateSessionRequest()
    session = IntakeSession(
        provider,
        draft_store=drafts,
        focus_section=body.focus_section,
    )
    await session.mount(body.requested_step)
    registry.create(session)
    logger.info(
        "intake_session_created",
        session_id=session.id,
        step=session.current.value if session.current else None,
    )
    return _respond(session)


@router.get("/sessions/{session_id}")
async def get_session_snapshot(session: Session) -> DataResponse[SessionSnapshot]:
    """Return the session's current state."""
    return _respond(session)


@router.patch("/sessions/{session_id}/forms/{section}")
async def update_form(
    session: Session,
    section: str,
    changes: dict[str, Any] = Body(...),
) -> DataResponse[SessionSnapshot]:
    """Overwrite fields of one section's form.

    Raises:
        NotFoundError: If the section collects no data.
        ValidationError: If a field is unknown or has the wrong type.
    """
    session.update_form(section, changes)
    return _respond(session)


@router.post("/sessions/{session_id}/forms/{section}/toggle")
async def toggle_option(
    session: Session,
    section: str,
    request: ToggleOptionRequest,
) -> DataResponse[SessionSnapshot]:
    """Toggle one option of a multi-select field."""
    session.toggle_option(section, request.field, request.option)
    return _respond(session)


@router.post("/sessions/{session_id}/continue")
async def continue_session(session: Session) -> DataResponse[SessionSnapshot]:
    """Validate and submit the current section, then advance.

    A failed remote save is not an HTTP error: the snapshot comes back on
    the same step with an error notice.

    Raises:
        ValidationError: If the form is incomplete (400, nothing sent).
        SubmissionInProgressError: If a save is already in flight (409).
    """
    await session.continue_()
    return _respond(session)


@router.post("/sessions/{session_id}/back")
async def go_back(session: Session) -> DataResponse[SessionSnapshot]:
    """Move to the previous step."""
    session.go_back()
    return _respond(session)


@router.post("/sessions/{session_id}/skip")
async def skip_step(session: Session) -> DataResponse[SessionSnapshot]:
    """Leave an optional step without saving it."""
    session.skip()
    return _respond(session)


@router.post("/sessions/{session_id}/jump")
async def jump_to_step(
    session: Session,
    request: JumpRequest,
) -> DataResponse[SessionSnapshot]:
    """Go directly to a step of the current sequence."""
    session.jump_to(request.step)
    return _respond(session)


@router.get("/sessions/{session_id}/review")
async def review_session(session: Session) -> DataResponse[ReviewSummary]:
    """Re-evaluate completion against a fresh member entity."""
    outcome = await session.review()
    return DataResponse(data=ReviewSummary.from_outcome(outcome))


@router.post("/sessions/{session_id}/finish")
async def finish_session(session: Session) -> DataResponse[FinishResult]:
    """Complete the intake, or move back to the first missing section."""
    outcome = await session.finish()
    if not outcome.complete:
        redirect_href = None
    else:
        redirect_href = outcome.cta_href or outcome.dashboard_href
        logger.info(
            "intake_session_finished",
            session_id=session.id,
            activation=(
                outcome.activation_target.value if outcome.activation_target else None
            ),
        )
    return DataResponse(
        data=FinishResult(
            review=ReviewSummary.from_outcome(outcome),
            redirect_href=redirect_href,
            session=session.snapshot(include_notices=True),
        )
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, registry: Registry) -> Response:
    """Close the session and drop it from the registry."""
    registry.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
