"""Document service for upload, listing and deletion."""

from typing import Any, List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.config import StorageSettings
from policy_assistant.core.exceptions import (
    AppError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from policy_assistant.repositories.document_repository import DocumentRepository
from policy_assistant.schemas.documents import DocumentDetail, DocumentSummary
from policy_assistant.services.base_service import BaseService
from policy_assistant.services.extraction.document_processor import DocumentProcessor
from policy_assistant.services.storage_service import StorageService
from policy_assistant.services.task_runner import BackgroundTaskRunner
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentService(BaseService):
    """Service for document management operations.

    Uploads are stored and recorded synchronously; text extraction is handed
    to the background task runner and flips the document to ``ready`` or
    ``error`` later.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage_settings: StorageSettings,
        storage_service: StorageService,
        task_runner: BackgroundTaskRunner,
        processor: DocumentProcessor,
    ):
        self.doc_repo = DocumentRepository(session)
        super().__init__(self.doc_repo)
        self.session = session
        self.storage_settings = storage_settings
        self.storage_service = storage_service
        self.task_runner = task_runner
        self.processor = processor

    def validate(self, *args, **kwargs):
        if kwargs.get("action") != "upload_document":
            return

        file: Optional[UploadFile] = kwargs.get("file")
        if file is None or not file.filename:
            raise ValidationError("No file uploaded")

        allowed = {mime.lower() for mime in self.storage_settings.allowed_mime_types}
        if (file.content_type or "").lower() not in allowed:
            raise ValidationError(
                "Invalid file type. Only PDF, DOC, DOCX, and TXT files are allowed."
            )

    async def run(self, *args, **kwargs) -> Any:
        action = kwargs.get("action")

        if action == "upload_document":
            return await self._upload_document_logic(kwargs["file"], kwargs["user_id"])
        elif action == "list_documents":
            return await self._list_documents_logic(kwargs["user_id"])
        elif action == "get_document":
            return await self._get_document_logic(kwargs["document_id"], kwargs["user_id"])
        elif action == "delete_document":
            return await self._delete_document_logic(kwargs["document_id"], kwargs["user_id"])
        else:
            raise AppError(f"Unknown action: {action}")

    async def upload_document(self, file: Optional[UploadFile], user_id: UUID) -> DocumentSummary:
        """Store an upload and schedule its extraction.

        Raises:
            ValidationError: If no file was sent or its type is not allowed
            PayloadTooLargeError: If the file exceeds the size limit
        """
        return await self.execute(action="upload_document", file=file, user_id=user_id)

    async def list_documents(self, user_id: UUID) -> List[DocumentSummary]:
        return await self.execute(action="list_documents", user_id=user_id)

    async def get_document(self, document_id: UUID, user_id: UUID) -> DocumentDetail:
        return await self.execute(action="get_document", document_id=document_id, user_id=user_id)

    async def delete_document(self, document_id: UUID, user_id: UUID) -> None:
        return await self.execute(
            action="delete_document", document_id=document_id, user_id=user_id
        )

    async def _upload_document_logic(self, file: UploadFile, user_id: UUID) -> DocumentSummary:
        # Read at most one byte past the limit
        content = await file.read(self.storage_settings.max_file_size + 1)
        if len(content) > self.storage_settings.max_file_size:
            raise PayloadTooLargeError(
                f"File too large. Maximum size is {self.storage_settings.max_file_size} bytes."
            )

        file_path = await self.storage_service.save(file.filename, content)
        try:
            document = await self.doc_repo.create_document(
                user_id=user_id,
                name=file.filename,
                mime_type=file.content_type,
                size=len(content),
                file_path=file_path,
            )
        except Exception:
            await self.session.rollback()
            await self.storage_service.delete(file_path)
            raise

        LOGGER.info(
            f"Document created: document_id={document.id}, filename={file.filename}",
            extra={"document_id": str(document.id), "user_id": str(user_id)},
        )

        document_id, mime_type = document.id, document.mime_type
        self.task_runner.submit(
            ("document", document_id),
            lambda: self.processor.run(document_id, file_path, mime_type),
        )
        return DocumentSummary.model_validate(document)

    async def _list_documents_logic(self, user_id: UUID) -> List[DocumentSummary]:
        documents = await self.doc_repo.list_for_owner(user_id)
        return [DocumentSummary.model_validate(document) for document in documents]

    async def _get_document_logic(self, document_id: UUID, user_id: UUID) -> DocumentDetail:
        document = await self.doc_repo.get_for_owner(document_id, user_id)
        if document is None:
            raise NotFoundError(f"Document with ID {document_id} not found")
        return DocumentDetail.model_validate(document)

    async def _delete_document_logic(self, document_id: UUID, user_id: UUID) -> None:
        document = await self.doc_repo.delete_for_owner(document_id, user_id)
        if document is None:
            raise NotFoundError(f"Document with ID {document_id} not found")

        await self.storage_service.delete(document.file_path)
        LOGGER.info(
            f"Document deleted: document_id={document_id}",
            extra={"document_id": str(document_id), "user_id": str(user_id)},
        )
