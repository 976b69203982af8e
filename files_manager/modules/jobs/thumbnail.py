import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from files_manager.errors import (
    FilesManagerError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from files_manager.modules.media import RasterResizer
from files_manager.modules.queue import Job
from files_manager.modules.storage import FileStore

logger = logging.getLogger(__name__)

THUMBNAIL_WIDTHS = (500, 250, 100)


def thumbnail_path(local_path: str, width: int) -> str:
    """Thumbnails live beside the original as <path>_<width>."""
    return f"{local_path}_{width}"


class ThumbnailJobHandler:
    """Generates every thumbnail width for an uploaded image."""

    def __init__(
        self,
        file_store: FileStore,
        resizer: RasterResizer,
        widths: Sequence[int] = THUMBNAIL_WIDTHS,
    ):
        """
        Initialize handler.

        Args:
            file_store: File metadata lookups
            resizer: Produces resized raster bytes
            widths: Target widths, all of which must succeed
        """
        self.file_store = file_store
        self.resizer = resizer
        self.widths = tuple(widths)

    async def _generate(self, local_path: str, width: int) -> None:
        data = await self.resizer.resize(local_path, width)
        await asyncio.to_thread(Path(thumbnail_path(local_path, width)).write_bytes, data)
        logger.debug(f"Wrote {width}px thumbnail for {local_path}")

    async def _generate_all(self, local_path: str) -> None:
        """Resize every width concurrently; the first failure cancels the rest."""
        try:
            async with asyncio.TaskGroup() as group:
                for width in self.widths:
                    group.create_task(self._generate(local_path, width))
        except ExceptionGroup as errors:
            raise errors.exceptions[0] from errors

    async def __call__(self, job: Job) -> Optional[Exception]:
        """
        Process one thumbnail-generation job.

        Returns:
            None on success, otherwise the error for the queue to act on.
            All widths are regenerated on a retry; there is no per-width
            progress.
        """
        file_id = job.payload.get("fileId")
        user_id = job.payload.get("userId")

        if not file_id:
            logger.error(f"Job {job.id}: missing fileId")
            return ValidationError("Missing fileId")
        if not user_id:
            logger.error(f"Job {job.id}: missing userId")
            return ValidationError("Missing userId")

        try:
            file = await self.file_store.find_by_id_and_owner(file_id, user_id)
            if file is None:
                logger.error(f"Job {job.id}: file {file_id} not found for user {user_id}")
                return NotFoundError("File not found")

            logger.info(f"Generating thumbnails for file {file_id}")
            await self._generate_all(file.local_path)
        except FilesManagerError as e:
            return e
        except OSError as e:
            logger.error(f"Job {job.id}: thumbnail generation failed for file {file_id}: {e}")
            return TransientIOError(f"Failed to generate thumbnail for file: {file_id}")

        logger.info(f"Thumbnails generated for file {file_id}")
        return None
