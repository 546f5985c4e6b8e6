"""
Remote file storage on the indexing provider.

Uploads are fatal when they fail (there is nothing to attach); deletes are
best-effort and never raise, so cleanup can't block a larger sync.
"""

import logging
from typing import Optional, Union

import openai
from openai import AsyncOpenAI

from app.shared.errors import FileUploadError

logger = logging.getLogger("LinkAI.Knowledge.FileStore")


class RemoteFileStore:
    """Thin wrapper over the provider's Files API."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            from app.services.openai_client import get_openai_client
            self._client = get_openai_client()
        return self._client

    async def upload(self, blob: Union[str, bytes], filename: str) -> str:
        """
        Upload a document and return the provider's file id.

        Raises:
            FileUploadError: If the provider rejects the upload
        """
        data = blob.encode("utf-8") if isinstance(blob, str) else blob
        try:
            uploaded = await self.client.files.create(
                file=(filename, data, "text/markdown"),
                purpose="assistants",
            )
        except Exception as e:
            logger.error(f"Failed to upload {filename}: {e}")
            raise FileUploadError(
                f"Failed to upload {filename}: {e}",
                details={"filename": filename},
            ) from e

        logger.info(f"Uploaded {filename} as {uploaded.id} ({len(data)} bytes)")
        return uploaded.id

    async def delete(self, file_id: str) -> bool:
        """
        Delete a file from the provider. Best-effort.

        Returns:
            True if the file is gone (including already missing), False on failure
        """
        try:
            await self.client.files.delete(file_id)
        except openai.NotFoundError:
            logger.info(f"File {file_id} already deleted")
            return True
        except Exception as e:
            logger.warning(f"Failed to delete file {file_id}, leaving it orphaned: {e}")
            return False

        logger.info(f"Deleted file {file_id}")
        return True
