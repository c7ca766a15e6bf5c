"""
Abstract base class for remote inference clients
"""
from abc import ABC, abstractmethod

from inspection_ai.models.domain import RawModelOutput


class BaseInferenceClient(ABC):
    """
    Common interface for vision models that return object detections and
    OCR text for a single image
    """

    @abstractmethod
    async def infer(self, image_bytes: bytes) -> RawModelOutput:
        """
        Run detection and OCR on an image

        Args:
            image_bytes: Raw image bytes (any common raster format)

        Returns:
            RawModelOutput with the unparsed model payload

        Raises:
            InferenceTimeoutError: The hard deadline expired
            InferenceFailedError: Transport error or unusable response
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check that the client is configured

        Returns:
            True if requests can be sent
        """
        pass
