"""HTTP client for the Metabase REST API."""

import logging
import time
from typing import Any, Optional, Type, TypeVar, Union

import httpx

from mbr_tui import __version__
from mbr_tui.api.models import (
    ApiModel,
    CollectionItem,
    CurrentUser,
    Database,
    DatasetResponse,
    Question,
    SearchResultItem,
    TableInfo,
    TabularResult,
)
from mbr_tui.errors import ApiError, AuthenticationError, NotFoundError, RequestTimeoutError


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=ApiModel)


class MetabaseClient:
    """Client for the Metabase API with retry handling.

    Every call is blocking; the dashboard runs them on worker threads.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        query_timeout: float = 60.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Server root, e.g. ``http://localhost:3000``.
            api_key: API key sent as the ``x-api-key`` header.
            timeout: Timeout in seconds for ordinary requests.
            query_timeout: Timeout in seconds for question execution.
            max_retries: Retries for connection errors and 5xx responses.
            retry_delay: Base delay between retries (exponential backoff).
            transport: Optional httpx transport, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.query_timeout = query_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/json",
                "User-Agent": f"mbr-tui/{__version__}",
            }
            if self.api_key:
                headers["x-api-key"] = self.api_key
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "MetabaseClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Make a request, retrying connection failures and server errors.

        Raises:
            RequestTimeoutError: The server did not answer in time.
            ApiError: Connection failure or non-2xx status after retries.
        """
        timeout = kwargs.get("timeout", self.timeout)

        for attempt in range(self.max_retries + 1):
            try:
                response = self.client.request(method, endpoint, **kwargs)
                if response.status_code >= 500:
                    response.raise_for_status()
                return response
            except httpx.TimeoutException as e:
                logger.warning("%s %s timed out after %.0fs", method, endpoint, timeout)
                raise RequestTimeoutError(endpoint, timeout) from e
            except (httpx.ConnectError, httpx.HTTPStatusError) as e:
                if attempt < self.max_retries:
                    delay = self.retry_delay * (2 ** attempt)  # Exponential backoff
                    logger.debug("%s %s failed (%s), retrying in %.1fs", method, endpoint, e, delay)
                    time.sleep(delay)
                    continue
                if isinstance(e, httpx.HTTPStatusError):
                    raise self._status_error(e.response, endpoint) from e
                raise ApiError(f"Connection failed: {e}", endpoint) from e
            except httpx.HTTPError as e:
                raise ApiError(f"Request failed: {e}", endpoint) from e

        raise ApiError("Request failed without error", endpoint)

    @staticmethod
    def _status_error(response: httpx.Response, endpoint: str) -> ApiError:
        status = response.status_code
        message = response.reason_phrase or "Request failed"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            message = body["message"]
        elif response.text and len(response.text) < 200:
            message = response.text

        if status in (401, 403):
            return AuthenticationError("Unauthorized", endpoint, status)
        if status == 404:
            return NotFoundError(message, endpoint, status)
        if status in (408, 504):
            return RequestTimeoutError(endpoint, 0.0, status=status)
        return ApiError(message, endpoint, status)

    def _call(self, method: str, endpoint: str, **kwargs) -> Any:
        response = self._request_with_retry(method, endpoint, **kwargs)
        if response.is_error:
            raise self._status_error(response, endpoint)
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in response", endpoint, response.status_code) from e

    def _parse(self, model: Type[M], payload: Any, endpoint: str) -> M:
        try:
            return model.from_api(payload)
        except ValueError as e:
            raise ApiError(f"Unexpected response shape: {e}", endpoint) from e

    def _parse_list(self, model: Type[M], payload: Any, endpoint: str) -> list[M]:
        if not isinstance(payload, list):
            raise ApiError("Expected a JSON array", endpoint)
        return [self._parse(model, item, endpoint) for item in payload]

    # =========================================================================
    # Endpoints
    # =========================================================================

    def get_current_user(self) -> CurrentUser:
        """Fetch the user owning the API key; used to validate credentials."""
        endpoint = "/api/user/current"
        return self._parse(CurrentUser, self._call("GET", endpoint), endpoint)

    def list_questions(
        self,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        collection: Optional[Union[int, str]] = None,
    ) -> list[Question]:
        """List saved questions.

        A non-empty ``search`` switches to /api/search. ``limit`` truncates
        client-side, as the card listing has no server-side limit.
        """
        if search:
            return self.search_questions(search, limit)

        params: dict[str, Any] = {"f": "all"}
        if collection is not None and collection != "":
            params["collection"] = collection

        endpoint = "/api/card"
        questions = self._parse_list(Question, self._call("GET", endpoint, params=params), endpoint)
        if limit:
            questions = questions[:limit]
        return questions

    def search_questions(self, term: str, limit: Optional[int] = None) -> list[Question]:
        """Search questions by name through /api/search."""
        endpoint = "/api/search"
        payload = self._call("GET", endpoint, params={"q": term, "models": "card"})
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        results = self._parse_list(SearchResultItem, items, endpoint)
        questions = [item.to_question() for item in results if item.model == "card"]
        if limit:
            questions = questions[:limit]
        return questions

    def list_collections(self) -> list[CollectionItem]:
        """List collections, dropping archived ones."""
        endpoint = "/api/collection"
        collections = self._parse_list(CollectionItem, self._call("GET", endpoint), endpoint)
        return [c for c in collections if not c.archived]

    def list_databases(self) -> list[Database]:
        endpoint = "/api/database"
        payload = self._call("GET", endpoint)
        # Metabase wraps the database list as {"data": [...]}
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        return self._parse_list(Database, items, endpoint)

    def list_schemas(self, database_id: int) -> list[str]:
        endpoint = f"/api/database/{database_id}/schemas"
        payload = self._call("GET", endpoint)
        if not isinstance(payload, list):
            raise ApiError("Expected a JSON array", endpoint)
        return [str(name) for name in payload]

    def list_tables(self, database_id: int, schema: str) -> list[TableInfo]:
        endpoint = f"/api/database/{database_id}/schema/{schema}"
        return self._parse_list(TableInfo, self._call("GET", endpoint), endpoint)

    def execute_question(self, question_id: int, name: Optional[str] = None) -> TabularResult:
        """Run a saved question and reduce the response to text cells."""
        endpoint = f"/api/card/{question_id}/query"
        try:
            payload = self._call("POST", endpoint, timeout=self.query_timeout)
        except NotFoundError as e:
            raise NotFoundError(f"Question with ID {question_id} not found", endpoint, 404) from e

        response = self._parse(DatasetResponse, payload, endpoint)
        if response.error:
            raise ApiError(response.error, endpoint)
        return TabularResult.from_dataset(question_id, name or f"Question #{question_id}", response)

    def preview_table(
        self,
        database_id: int,
        table_id: int,
        limit: int = 100,
        name: Optional[str] = None,
    ) -> TabularResult:
        """Fetch the first ``limit`` rows of a table via an ad-hoc dataset query."""
        endpoint = "/api/dataset"
        body = {
            "database": database_id,
            "type": "query",
            "query": {"source-table": table_id, "limit": limit},
        }
        payload = self._call("POST", endpoint, json=body, timeout=self.query_timeout)
        response = self._parse(DatasetResponse, payload, endpoint)
        if response.error:
            raise ApiError(response.error, endpoint)
        return TabularResult.from_dataset(table_id, name or f"Table #{table_id}", response)
