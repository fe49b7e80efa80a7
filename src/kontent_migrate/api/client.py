"""Management API client implementation."""

import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin

import aiohttp
import requests
from loguru import logger
from pydantic import BaseModel
from requests.structures import CaseInsensitiveDict

from ..config.config import KontentInstanceConfig
from .exceptions import (
    KontentAPIError,
    KontentAuthenticationError,
    KontentNotFoundError,
    KontentPermissionError,
    KontentRateLimitError,
    KontentServerError,
    KontentValidationError,
)
from .rate_limiter import RateLimiter
from .retry import transient_retrying

USER_AGENT = 'kontent-migrate/0.1.0'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


DEFAULT_RETRY_AFTER = 60


def _retry_after(headers: Dict[str, str]) -> int:
    """Seconds to wait from a ``Retry-After`` header.

    The header may hold either a number of seconds or an HTTP date; header
    names are matched case-insensitively.
    """
    value = CaseInsensitiveDict(headers).get('Retry-After')
    if not value:
        return DEFAULT_RETRY_AFTER

    value = value.strip()
    try:
        return max(0, int(float(value)))
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0, int((retry_at - datetime.now(timezone.utc)).total_seconds()))


def _raise_for_status(
    status_code: int,
    headers: Dict[str, str],
    error_data: Optional[dict],
    text: str = '',
) -> None:
    """Translate an HTTP error status into the matching exception.

    Args:
        status_code: HTTP status code
        headers: Response headers
        error_data: Parsed error body, if it was JSON
        text: Raw response text

    Raises:
        KontentAPIError: For any status code >= 400
    """
    if status_code < 400:
        return

    if status_code == 429:
        retry_after = _retry_after(headers)
        raise KontentRateLimitError(
            f'Rate limit exceeded. Retry after {retry_after} seconds',
            retry_after=retry_after,
            status_code=status_code,
        )

    if status_code == 401:
        raise KontentAuthenticationError('Authentication failed', status_code=401)

    if status_code == 403:
        raise KontentPermissionError('Permission denied', status_code=403)

    if status_code == 404:
        raise KontentNotFoundError(
            'Resource not found', status_code=404, response_data=error_data
        )

    if error_data:
        message = error_data.get('message', f'HTTP {status_code}')
        validation_errors = error_data.get('validation_errors') or []
        details = '; '.join(
            error.get('message', '') for error in validation_errors if error
        )
        if details:
            message = f'{message} ({details})'
    else:
        message = f'HTTP {status_code}: {text}'

    if status_code in (400, 409, 422):
        error_class = KontentValidationError
    elif status_code >= 500:
        error_class = KontentServerError
    else:
        error_class = KontentAPIError

    raise error_class(
        f'API request failed: {message}',
        status_code=status_code,
        response_data=error_data,
    )


class KontentClient:
    """Management API client bound to one project."""

    def __init__(self, config: KontentInstanceConfig):
        """Initialize Management API client.

        Args:
            config: Target project configuration
        """
        self.config = config
        self.base_url = f'{config.base_url}/projects/{config.project_id}'
        self.rate_limiter = RateLimiter(config.rate_limit_per_second)
        self.session = requests.Session()

        if not config.api_key:
            raise KontentAuthenticationError('No API key provided')

        self.session.headers.update(self._headers())

        logger.info(f'Initialized Management API client for project {config.project_id}')

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.config.api_key}',
            'Content-Type': 'application/json',
            'User-Agent': USER_AGENT,
        }

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        if not endpoint.strip('/'):
            return self.base_url
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            KontentAPIError: For various API errors
        """
        headers = dict(response.headers)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            _raise_for_status(response.status_code, headers, error_data, response.text)

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=response.status_code,
            data=data,
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    async def _send_async(
        self,
        method: str,
        endpoint: str,
        data: Optional[Any] = None,
        body: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """Make a single asynchronous API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            data: JSON request body
            body: Raw request body (binary uploads)
            headers: Headers overriding the defaults

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        request_headers = {**self._headers(), **(headers or {})}
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        await self.rate_limiter.acquire()

        async with aiohttp.ClientSession(
            headers=request_headers, timeout=timeout
        ) as session:
            try:
                async with session.request(
                    method=method, url=url, json=data, data=body
                ) as response:
                    response_headers = dict(response.headers)
                    response_text = await response.text()

                    try:
                        response_data = (
                            json.loads(response_text) if response_text else None
                        )
                    except (ValueError, json.JSONDecodeError):
                        response_data = response_text

                    _raise_for_status(
                        response.status,
                        response_headers,
                        response_data if isinstance(response_data, dict) else None,
                        response_text,
                    )

                    return APIResponse(
                        status_code=response.status,
                        data=response_data,
                        headers=response_headers,
                        success=200 <= response.status < 300,
                    )

            except aiohttp.ClientError as e:
                logger.error(f'Network error during API request: {e}')
                raise KontentServerError(f'Network error: {e}')

    async def _make_request_async(
        self, method: str, endpoint: str, **kwargs
    ) -> APIResponse:
        """Make asynchronous API request, retrying transient failures.

        Args:
            method: HTTP method
            endpoint: API endpoint
            **kwargs: Arguments for a single request

        Returns:
            API response
        """
        async for attempt in transient_retrying(
            self.config.retry_attempts,
            self.config.retry_min_wait,
            self.config.retry_max_wait,
        ):
            with attempt:
                return await self._send_async(method, endpoint, **kwargs)

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)

        self.rate_limiter.acquire_sync()
        try:
            response = self.session.get(
                url, params=params, timeout=self.config.timeout, **kwargs
            )
            return self._handle_response(response)
        except requests.RequestException as e:
            logger.error(f'Network error during GET request: {e}')
            raise KontentAPIError(f'Network error: {e}')

    async def add_language(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a language."""
        response = await self._make_request_async('POST', '/languages', data=data)
        return response.data

    async def upload_binary_file(
        self, filename: str, content_type: str, data: bytes
    ) -> Dict[str, Any]:
        """Upload raw file content.

        Args:
            filename: File name stored with the binary
            content_type: MIME type of the content
            data: File content

        Returns:
            Opaque file reference to attach to an asset
        """
        response = await self._make_request_async(
            'POST',
            f'/files/{quote(filename)}',
            body=data,
            headers={
                'Content-Type': content_type,
                'Content-Length': str(len(data)),
            },
        )
        return response.data

    async def add_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create an asset from an uploaded file reference."""
        response = await self._make_request_async('POST', '/assets', data=data)
        return response.data

    async def add_content_type(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a content type."""
        response = await self._make_request_async('POST', '/types', data=data)
        return response.data

    async def add_content_type_snippet(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a content type snippet."""
        response = await self._make_request_async('POST', '/snippets', data=data)
        return response.data

    async def add_content_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a content item."""
        response = await self._make_request_async('POST', '/items', data=data)
        return response.data

    async def add_taxonomy(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a taxonomy group."""
        response = await self._make_request_async('POST', '/taxonomies', data=data)
        return response.data

    async def upsert_language_variant(
        self, item_codename: str, language_codename: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create or replace the variant addressed by item and language codename."""
        endpoint = (
            f'/items/codename/{quote(item_codename)}'
            f'/variants/codename/{quote(language_codename)}'
        )
        response = await self._make_request_async('PUT', endpoint, data=data)
        return response.data

    async def modify_content_type(
        self, type_id: str, operations: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Apply JSON patch operations to a content type."""
        response = await self._make_request_async(
            'PATCH', f'/types/{type_id}', data=operations
        )
        return response.data

    async def modify_content_type_snippet(
        self, snippet_id: str, operations: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Apply JSON patch operations to a content type snippet."""
        response = await self._make_request_async(
            'PATCH', f'/snippets/{snippet_id}', data=operations
        )
        return response.data

    def get_project_information(self) -> Dict[str, Any]:
        """Get name and environment of the target project."""
        return self.get('').data or {}

    def test_connection(self) -> bool:
        """Test connection to the target project.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = self.get('')
            return response.success
        except Exception as e:
            logger.error(f'Connection test failed: {e}')
            return False

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.info('Management API client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class KontentClientFactory:
    """Factory for creating Management API clients."""

    @staticmethod
    def create_client(config: KontentInstanceConfig) -> KontentClient:
        """Create Management API client from configuration.

        Args:
            config: Target project configuration

        Returns:
            Configured client

        Raises:
            KontentAuthenticationError: If no API key is configured
        """
        if not config.api_key:
            raise KontentAuthenticationError('An API key must be provided')

        return KontentClient(config)
