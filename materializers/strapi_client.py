"""
Strapi REST API client for the content collection sync.

This module provides a thin wrapper around the Strapi REST API covering the
two calls the author migration needs: media library uploads and author
creation. Requests are sent once; failures are raised to the caller.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger('content_sync.materializers.strapi_client')


class StrapiRequestError(Exception):
    """Strapi answered with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StrapiClient:
    """Strapi REST API client authenticated with a bearer API token."""

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Strapi client.

        Args:
            base_url: Strapi instance base URL
            api_token: API token with create permission for authors and upload
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            session: Optional pre-built session
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_token}',
            'Accept': 'application/json'
        })

        logger.debug(f"Initialized Strapi client for {self.base_url}")

    def _make_request(
        self,
        method: str,
        endpoint: str,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        action: str = 'Request'
    ) -> Any:
        """
        Make an HTTP request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: API path below ``/api``
            json_body: JSON payload
            data: Form fields for multipart requests
            files: Files for multipart uploads
            action: Short description used in error messages

        Returns:
            Decoded JSON body (empty dict for empty responses)

        Raises:
            StrapiRequestError: For non-2xx responses
            requests.RequestException: For transport errors
        """
        url = f"{self.base_url}/api{endpoint}"
        logger.debug(f"{method} {url}")

        response = self.session.request(
            method=method,
            url=url,
            json=json_body,
            data=data,
            files=files,
            verify=self.verify_ssl,
            timeout=self.timeout
        )

        logger.debug(f"Response status: {response.status_code}")

        if not response.ok:
            raise StrapiRequestError(
                f"{action} failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text
            )

        if not response.content:
            return {}
        return response.json()

    def upload_file(self, file_path: Path, name: Optional[str] = None) -> Any:
        """
        Upload a file to the media library.

        Args:
            file_path: Local file to upload
            name: Display name; defaults to the file stem

        Returns:
            The uploaded file's ``id``, or its ``documentId``

        Raises:
            StrapiRequestError: If the upload fails or the response has no id
        """
        file_path = Path(file_path)
        file_info = {
            'name': name or file_path.stem,
            'alternativeText': name or file_path.name
        }

        with open(file_path, 'rb') as handle:
            result = self._make_request(
                'POST',
                '/upload',
                data={'fileInfo': json.dumps(file_info)},
                files={'files': (file_path.name, handle)},
                action='Upload'
            )

        return self.extract_file_id(result)

    @staticmethod
    def extract_file_id(result: Any) -> Any:
        """Pull the first file's id out of the shapes the upload endpoint returns."""
        if isinstance(result, list):
            files = result
        elif isinstance(result, dict):
            files = result.get('files') or [result]
        else:
            files = []

        uploaded = files[0] if files else None
        if isinstance(uploaded, dict):
            file_id = uploaded.get('id')
            if file_id is None:
                file_id = uploaded.get('documentId')
            if file_id is not None:
                return file_id

        raise StrapiRequestError(f"Upload response has no file id: {result!r}")

    def create_author(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create an author from a ``{'data': {...}}`` payload."""
        return self._make_request('POST', '/authors', json_body=payload, action='Create author')

    @staticmethod
    def document_id(result: Any) -> Any:
        """Identifier of a created record, whichever shape the response has."""
        if not isinstance(result, dict):
            return None
        data = result.get('data') if isinstance(result.get('data'), dict) else {}
        for value in (data.get('documentId'), result.get('documentId'), data.get('id')):
            if value is not None:
                return value
        return None

    @classmethod
    def from_config(cls, config) -> 'StrapiClient':
        """
        Create client from a SyncConfig.

        Raises:
            ConfigurationError: If the URL or token is missing
        """
        config.require_strapi()
        return cls(
            base_url=config.strapi_url,
            api_token=config.strapi_api_token,
            timeout=config.request_timeout
        )


__all__ = ['StrapiClient', 'StrapiRequestError']
