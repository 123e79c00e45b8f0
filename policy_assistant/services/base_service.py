from abc import ABC, abstractmethod
from typing import Any, Optional

from policy_assistant.core.exceptions import AppError
from policy_assistant.repositories.base_repository import BaseRepository
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Base class for application services.

    Provides a standardized execution flow with validation and error handling.
    """

    def __init__(self, repository: Optional[BaseRepository] = None):
        """Initialize the service.

        Args:
            repository: Optional primary repository for the service
        """
        self.repository = repository
        self.logger = LOGGER

    async def execute(self, *args, **kwargs) -> Any:
        """Execute the service logic.

        Runs ``validate`` then ``run``. Application errors propagate
        unchanged; anything else is logged and wrapped in ``AppError``.

        Raises:
            AppError: If execution fails
        """
        try:
            self.validate(*args, **kwargs)

            return await self.run(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__},
            )
            raise AppError(f"Service execution failed: {str(e)}", original_error=e)

    def validate(self, *args, **kwargs):
        """Validate service input.

        Override this method to implement custom validation logic.

        Raises:
            ValidationError: If input is invalid
        """
        pass

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        """Run the core service logic."""
        pass
