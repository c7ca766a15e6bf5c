"""
Client for the RunPod hosted YOLO + OCR model
"""
import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from inspection_ai.core.enums import RunPodJobStatus
from inspection_ai.core.exceptions import (
    ConfigurationError,
    InferenceFailedError,
    InferenceTimeoutError,
)
from inspection_ai.core.logging import get_logger
from inspection_ai.infrastructure.inference.base_client import BaseInferenceClient
from inspection_ai.models.domain import RawModelOutput
from inspection_ai.utils.image_utils import encode_image_base64

logger = get_logger(__name__)

DEFAULT_ENDPOINT = "https://api.runpod.ai/v2/voejm0cy20ca2m"
DEFAULT_TIMEOUT_SECONDS = 10.0


class RunPodInferenceClient(BaseInferenceClient):
    """
    Synchronous (runsync) RunPod inference with a hard deadline
    """

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            api_key: RunPod API key
            endpoint: Endpoint base URL, without the /runsync suffix
            timeout_seconds: Deadline for the whole request
            transport: Custom httpx transport (tests)
        """
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.endpoint}/runsync"

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def infer(self, image_bytes: bytes) -> RawModelOutput:
        if not self.is_available():
            raise ConfigurationError("AI API key not configured")

        payload = {"input": {"image": encode_image_base64(image_bytes)}}
        start_time = time.time()

        logger.info("Calling RunPod API", url=self.url, image_size=len(image_bytes))

        try:
            response = await asyncio.wait_for(
                self._post(payload),
                timeout=self.timeout_seconds
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error("RunPod request timed out", timeout=self.timeout_seconds)
            raise InferenceTimeoutError(
                f"AI analysis timed out ({self.timeout_seconds:g} seconds)",
                details={"timeout_seconds": self.timeout_seconds}
            )
        except httpx.HTTPError as e:
            logger.error("RunPod request failed", error=str(e), error_type=type(e).__name__)
            raise InferenceFailedError(
                f"RunPod request failed: {str(e)}",
                details={"error": str(e), "error_type": type(e).__name__}
            )

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info("RunPod response received", status_code=response.status_code, elapsed_ms=elapsed_ms)

        return self._parse_envelope(response)

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout_seconds
        ) as client:
            return await client.post(self.url, json=payload, headers=headers)

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> RawModelOutput:
        """Unwrap output.output from a completed runsync envelope"""
        if not response.is_success:
            raise InferenceFailedError(
                f"RunPod API error: {response.status_code} - {response.text[:200]}",
                details={"status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InferenceFailedError(
                "RunPod returned a response that is not JSON",
                details={"error": str(e)}
            )

        if not isinstance(data, dict):
            raise InferenceFailedError(
                "RunPod returned an unexpected response",
                details={"type": type(data).__name__}
            )

        status = data.get("status")
        if status != RunPodJobStatus.COMPLETED.value:
            raise InferenceFailedError(
                f"RunPod job status: {status}",
                details={"status": status, "job_id": data.get("id")}
            )

        output = data.get("output")
        model_output = output.get("output") if isinstance(output, dict) else None
        if not isinstance(model_output, dict):
            logger.warning("No model output found in response", job_id=data.get("id"))
            model_output = {}

        execution_time = data.get("executionTime")
        return RawModelOutput(
            payload=model_output,
            execution_time_ms=float(execution_time) if isinstance(execution_time, (int, float)) else None
        )
