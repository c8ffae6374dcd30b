"""
GitHub Gist API client.

Async httpx client used by every command that talks to GitHub. A 404 maps
to GistNotFoundError; every other transport or HTTP failure maps to
NetworkFailureError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
import pydantic

from gixt.config import GixtSettings
from gixt.exceptions import GistNotFoundError, NetworkFailureError
from gixt.schemas.gist import Gist, GistSummary, Release

__all__ = ['GistClient']

M = TypeVar('M', bound=pydantic.BaseModel)


class GistClient:
    """
    GitHub REST client for gists.

    Opens a short-lived AsyncClient per call; gixt makes a handful of
    requests per invocation.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = 'https://api.github.com',
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: GitHub token (optional for public reads, required for writes and /user)
            base_url: API root (GitHub Enterprise installs differ)
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: GixtSettings) -> GistClient:
        return cls(
            token=settings.GITHUB_TOKEN,
            base_url=settings.GITHUB_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'X-GitHub-Api-Version': '2022-11-28',
        }
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        not_found_id: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send an API request and return decoded JSON."""
        url = f'{self.base_url}{path}'
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise NetworkFailureError(f'{method} {path} failed: {e}') from e

        if response.status_code == 404 and not_found_id is not None:
            raise GistNotFoundError(not_found_id)
        if response.is_error:
            raise NetworkFailureError(
                f'{method} {path} failed: HTTP {response.status_code}: {_error_message(response)}'
            )

        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailureError(f'{method} {path} returned invalid JSON') from e

    async def fetch(self, gist_id: str, ref: str | None = None) -> Gist:
        path = f'/gists/{gist_id}/{ref}' if ref else f'/gists/{gist_id}'
        data = await self._request('GET', path, not_found_id=gist_id)
        return _parse(Gist, data, path)

    async def list_mine(self, per_page: int, max_pages: int) -> list[GistSummary]:
        return await self._paginate('/gists', per_page, max_pages)

    async def list_for_owner(self, owner: str, per_page: int, max_pages: int) -> list[GistSummary]:
        return await self._paginate(f'/users/{owner}/gists', per_page, max_pages)

    async def _paginate(self, path: str, per_page: int, max_pages: int) -> list[GistSummary]:
        per_page = per_page if per_page > 0 else 50
        max_pages = max_pages if max_pages > 0 else 1

        items: list[GistSummary] = []
        for page in range(1, max_pages + 1):
            batch = await self._request('GET', path, params={'per_page': per_page, 'page': page})
            if not isinstance(batch, list):
                raise NetworkFailureError(f'GET {path} returned unexpected payload')
            items.extend(_parse(GistSummary, item, path) for item in batch)
            if len(batch) < per_page:
                break
        return items

    async def update_files(self, gist_id: str, files: Mapping[str, str]) -> Gist:
        payload = {'files': {name: {'content': content} for name, content in files.items()}}
        data = await self._request('PATCH', f'/gists/{gist_id}', not_found_id=gist_id, json=payload)
        return _parse(Gist, data, f'/gists/{gist_id}')

    async def create_gist(self, files: Mapping[str, str], description: str, public: bool) -> Gist:
        payload = {
            'description': description,
            'public': public,
            'files': {name: {'content': content} for name, content in files.items()},
        }
        data = await self._request('POST', '/gists', json=payload)
        return _parse(Gist, data, '/gists')

    async def update_description(self, gist_id: str, description: str) -> Gist:
        data = await self._request(
            'PATCH', f'/gists/{gist_id}', not_found_id=gist_id, json={'description': description}
        )
        return _parse(Gist, data, f'/gists/{gist_id}')

    async def current_user(self) -> str:
        data = await self._request('GET', '/user')
        login = data.get('login') if isinstance(data, dict) else None
        if not login:
            raise NetworkFailureError('GET /user returned no login')
        return str(login)

    async def fetch_raw(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkFailureError(f'download {url} failed: {e}') from e
        return response.content

    async def latest_release(self, repo: str) -> Release:
        path = f'/repos/{repo}/releases/latest'
        data = await self._request('GET', path)
        return _parse(Release, data, path)


def _parse(model: type[M], data: Any, path: str) -> M:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise NetworkFailureError(f'unexpected response from {path}: {e.error_count()} validation errors') from e


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:200]
    if isinstance(body, dict) and body.get('message'):
        return str(body['message'])
    return response.reason_phrase
