"""HTTP client for the gallery upload API (files, gallery order, categories)."""

import asyncio
import json
import uuid
from typing import Callable, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from cli.config import Config
from cli.schemas import (
    CategoryEnvelope,
    CategoryListResponse,
    CategoryOrderPayload,
    ErrorResponse,
    GalleryOrderPayload,
    ListFilesResponse,
    UploadResponse,
)
from common.constants import SIMULATED_PROGRESS_STEPS
from common.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
)
from common.logging_config import get_logger
from common.types import Category, LocalFile, RemoteFileRecord, UploadResult

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

STATUS_ERRORS: dict[int, Type[RemoteError]] = {
    401: ForbiddenError,
    403: ForbiddenError,
    404: NotFoundError,
    409: DuplicateError,
}


class HttpDirectoryClient:
    """HTTP client for the upload API with retry logic and error mapping."""

    def __init__(self, config: Config):
        """
        Initialize directory client.

        Args:
            config: Configuration instance (endpoint, key, timeouts)
        """
        self.config = config
        self.session = httpx.AsyncClient(
            base_url=config.get_base_url() or "",
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized HttpDirectoryClient [base_url={config.get_base_url()}]")

    def is_configured(self) -> bool:
        return self.config.is_configured()

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Args:
            file_size: File size in bytes

        Returns:
            Timeout in seconds (configured base + 0.1s per MB)
        """
        size_mb = file_size / (1024 * 1024)
        return float(self.config.get_timeout()) + size_mb * 0.1

    def _get_auth_header(self) -> dict:
        """
        Get the upload key header.

        Returns:
            Dictionary with the configured auth header

        Raises:
            ConfigurationError: If the endpoint or key is not configured
        """
        if not self.config.is_configured():
            raise ConfigurationError(
                "Upload API not configured. Set api_url and api_key in the config file."
            )
        return {self.config.get_auth_header(): self.config.get_api_key()}

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectivityError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

            except httpx.TransportError as e:
                logger.error(
                    f"Transport error: {method} {endpoint} error={type(e).__name__}: {e} [request_id={self.request_id}]"
                )
                raise ConnectivityError(f"Connection to upload server failed: {e}") from e

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectivityError("Request timed out. Upload server may be overloaded.")
        raise ConnectivityError("Cannot connect to upload server. Make sure the Worker is running.")

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """
        Map a non-2xx response to the matching exception.

        Args:
            response: HTTP response object
            operation: Human-readable operation name used in fallback messages

        Raises:
            RemoteError: Or a subclass chosen by status code
        """
        if response.is_success:
            return

        message = None
        try:
            message = ErrorResponse.model_validate(response.json()).message
        except (ValueError, SchemaError):
            message = response.text or None

        if not message:
            message = f"{operation} failed with status {response.status_code}"

        error_cls = STATUS_ERRORS.get(response.status_code, RemoteError)
        raise error_cls(message, status_code=response.status_code)

    def _parse(self, response: httpx.Response, schema: Type[SchemaT], operation: str) -> SchemaT:
        try:
            return schema.model_validate(response.json())
        except (ValueError, SchemaError) as e:
            logger.error(f"Malformed {operation} response: {e} [request_id={self.request_id}]")
            raise RemoteError(f"Unexpected response from upload server during {operation.lower()}",
                              status_code=response.status_code)

    async def list_files(self) -> list[RemoteFileRecord]:
        headers = self._get_auth_header()
        response = await self._request_with_retry('GET', '/files', headers=headers)
        self._raise_for_status(response, 'List files')
        data = self._parse(response, ListFilesResponse, 'List files')
        logger.info(f"Listed {len(data.files)} remote file(s)")
        return [f.to_record() for f in data.files]

    async def delete_file(self, key: str) -> bool:
        headers = self._get_auth_header()
        response = await self._request_with_retry('DELETE', f"/files/{quote(key, safe='/')}", headers=headers)
        self._raise_for_status(response, 'Delete')
        logger.info(f"Deleted remote file [key={key}]")
        return True

    async def upload_one(
        self,
        file: LocalFile,
        categories: Sequence[str],
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> UploadResult:
        """
        Upload one file with its categories.

        Progress is reported at fixed steps; 100 is always the last value
        reported before returning.

        Args:
            file: File to upload
            categories: Category titles attached to the upload
            on_progress: Optional progress callback (0-100)

        Returns:
            Key and public URL of the stored object
        """
        headers = self._get_auth_header()
        report = on_progress or (lambda value: None)
        initial, prepared, answered = SIMULATED_PROGRESS_STEPS

        report(initial)
        files = {'file': (file.name, file.read_bytes(), file.mime_type)}
        data = {'categories': json.dumps(list(categories))}
        report(prepared)

        logger.info(f"Uploading {file.name} ({file.size} bytes) [categories={list(categories)}]")
        response = await self._request_with_retry(
            'POST',
            '/upload',
            max_retries=0,
            files=files,
            data=data,
            headers=headers,
            timeout=self._calculate_upload_timeout(file.size),
        )
        report(answered)

        self._raise_for_status(response, 'Upload')
        result = self._parse(response, UploadResponse, 'Upload').to_result()
        report(100)
        return result

    async def get_persisted_order(self) -> list[str]:
        headers = self._get_auth_header()
        response = await self._request_with_retry('GET', '/gallery-order', headers=headers)
        self._raise_for_status(response, 'Load gallery order')
        return self._parse(response, GalleryOrderPayload, 'Load gallery order').order

    async def save_persisted_order(self, keys: Sequence[str]) -> bool:
        headers = self._get_auth_header()
        payload = GalleryOrderPayload(order=list(keys))
        response = await self._request_with_retry(
            'PUT', '/gallery-order', json=payload.model_dump(), headers=headers
        )
        self._raise_for_status(response, 'Save gallery order')
        return True

    async def list_categories(self) -> list[Category]:
        headers = self._get_auth_header()
        response = await self._request_with_retry('GET', '/categories', headers=headers)
        self._raise_for_status(response, 'List categories')
        data = self._parse(response, CategoryListResponse, 'List categories')
        return [c.to_category() for c in data.categories]

    async def create_category(self, title: str) -> Category:
        headers = self._get_auth_header()
        response = await self._request_with_retry(
            'POST', '/categories', json={'title': title}, headers=headers
        )
        self._raise_for_status(response, 'Create category')
        return self._parse(response, CategoryEnvelope, 'Create category').category.to_category()

    async def delete_category(self, category_id: str) -> bool:
        headers = self._get_auth_header()
        response = await self._request_with_retry(
            'DELETE', f"/categories/{quote(category_id, safe='')}", headers=headers
        )
        self._raise_for_status(response, 'Delete category')
        return True

    async def save_category_order(self, category_ids: Sequence[str]) -> bool:
        headers = self._get_auth_header()
        payload = CategoryOrderPayload(order=list(category_ids))
        response = await self._request_with_retry(
            'PUT', '/categories/order', json=payload.model_dump(), headers=headers
        )
        self._raise_for_status(response, 'Save category order')
        return True

    async def check_health(self) -> dict:
        """Query GET /health (no key required)."""
        if not self.config.get_base_url():
            raise ConfigurationError("Upload API URL not configured.")
        response = await self._request_with_retry('GET', '/health', max_retries=0)
        if not response.is_success:
            raise RemoteError("API health check failed", status_code=response.status_code)
        return response.json()

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
