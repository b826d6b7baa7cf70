# =============================================================================
# core/services/meme_service.py - Meme Creation
# =============================================================================
# Validates a new meme client-side and uploads it. Nothing is sent unless a
# picture, a description and at least one caption are present.
# =============================================================================

import logging
from pathlib import Path
from typing import Sequence

from app.exceptions import ValidationFailureError
from core.models import MemeRecord, MemeText
from lib.api_client import MemeApiClient

logger = logging.getLogger(__name__)

ALLOWED_PICTURE_SUFFIXES = (".png", ".jpg", ".jpeg")


class MemeService:
    """
    Creates memes through the API.

    Example:
        service = MemeService(api)
        meme = await service.create_meme(
            picture=Path("cat.png").read_bytes(),
            filename="cat.png",
            description="Monday mood",
            texts=[MemeText(content="NO", x=10, y=20)],
        )
    """

    def __init__(self, api: MemeApiClient):
        self.api = api

    @staticmethod
    def validate(
        picture: bytes | None,
        filename: str,
        description: str,
        texts: Sequence[MemeText],
    ) -> None:
        """
        Client-side checks run before any request.

        Raises:
            ValidationFailureError: On the first missing or invalid field
        """
        if not picture:
            raise ValidationFailureError("picture", "no picture selected")
        if Path(filename).suffix.lower() not in ALLOWED_PICTURE_SUFFIXES:
            raise ValidationFailureError(
                "picture", f"only {', '.join(ALLOWED_PICTURE_SUFFIXES)} files are accepted"
            )
        if not description or not description.strip():
            raise ValidationFailureError("description", "description is empty")
        if not texts:
            raise ValidationFailureError("caption", "at least one caption is required")

    async def create_meme(
        self,
        picture: bytes | None,
        filename: str,
        description: str,
        texts: Sequence[MemeText],
    ) -> MemeRecord:
        """Validate, then POST /memes."""
        self.validate(picture, filename, description, texts)

        meme = await self.api.create_meme(picture, filename, description, texts)
        logger.info(f"Created meme {meme.id} with {len(texts)} captions")
        return meme
