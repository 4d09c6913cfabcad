"""
Access code check.

Attendees must enter the event's 4-digit code before they can vote.
"""

import re
import secrets
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends

from api.deps import get_state_aggregator
from core.errors import AuthError, ValidationError
from schemas.vote import SubmitCodeRequest, SubmitCodeResponse
from services.aggregator import StateAggregator

logger = structlog.get_logger(__name__)

router = APIRouter()

CODE_PATTERN = re.compile(r"[0-9]{4}")


@router.post("", response_model=SubmitCodeResponse)
async def submit_code(
    body: SubmitCodeRequest,
    aggregator: Annotated[StateAggregator, Depends(get_state_aggregator)],
) -> SubmitCodeResponse:
    """
    Validate an access code.

    Raises:
        ValidationError: code is not a 4-digit string (400)
        AuthError: code does not match the configured one (401)
    """
    code = body.code
    if not isinstance(code, str) or not CODE_PATTERN.fullmatch(code):
        raise ValidationError("Code must contain 4 digits")

    event_settings = await aggregator.get_settings()
    if not secrets.compare_digest(code.encode("utf-8"), event_settings.code.encode("utf-8")):
        logger.info("access_code_rejected")
        raise AuthError("Invalid code")

    return SubmitCodeResponse(success=True, message="Code accepted")
