"""HTTP transport for the Dreamteller backend."""

import json
from functools import lru_cache
from typing import Any, Optional, Type, TypeVar, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from dreamteller.schemas.responses import EmptyResponse
from dreamteller.services.api.endpoints import Endpoint
from dreamteller.utils.exceptions import (
    DecodingFailedError,
    InvalidURLError,
    NoDataError,
    ServerError,
    UnauthorizedError,
    UnknownAPIError,
)
from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=64)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class APIClient:
    """
    One request per call against a fixed base origin.

    No retries, no streaming: the body is buffered and decoded once.
    Outcomes are classified strictly by status code into the APIError
    taxonomy.
    """

    DEFAULT_TIMEOUT = 30.0  # seconds
    SERVER_ERROR_FALLBACK = "Server error"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Origin every endpoint path is joined to.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

        logger.info(f"APIClient initialized for {self.base_url} with timeout={timeout}s")

    def url_for(self, endpoint: Endpoint) -> str:
        return f"{self.base_url}/{endpoint.path.lstrip('/')}"

    async def send(
        self,
        endpoint: Endpoint,
        token: str,
        response_type: Union[Type[T], Any] = EmptyResponse,
    ) -> T:
        """
        Send a request and decode the response.

        Args:
            endpoint: Catalog entry to call.
            token: Value for the Authorization header, sent verbatim.
            response_type: Expected shape; ``EmptyResponse`` when no content is expected.

        Returns:
            The decoded response.

        Raises:
            InvalidURLError: The URL could not be built.
            NoDataError: 2xx with an empty body when content was expected.
            DecodingFailedError: 2xx body did not match ``response_type``.
            UnauthorizedError: Status 401.
            ServerError: Any other non-2xx status.
            UnknownAPIError: No HTTP response was obtained.
        """
        headers = {
            "Accept": "application/json",
            "Authorization": token,
        }
        content = None
        body = endpoint.json_body()
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(body).encode("utf-8")

        url = self.url_for(endpoint)
        logger.debug(f"{endpoint.method} {endpoint.path}")

        try:
            response = await self._client.request(endpoint.method, url, headers=headers, content=content)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.warning(f"Invalid URL for {endpoint.path}: {e}")
            raise InvalidURLError() from e
        except httpx.HTTPError as e:
            logger.warning(f"Transport failure on {endpoint.method} {endpoint.path}: {e!r}")
            raise UnknownAPIError() from e

        return self._classify(endpoint, response, response_type)

    def _classify(self, endpoint: Endpoint, response: httpx.Response, response_type: Any) -> Any:
        status = response.status_code

        if 200 <= status <= 299:
            if response_type is EmptyResponse:
                return EmptyResponse()
            if not response.content:
                logger.warning(f"Empty body from {endpoint.path}")
                raise NoDataError()
            try:
                return _adapter(response_type).validate_json(response.content)
            except ValidationError as e:
                logger.warning(
                    f"Could not decode response from {endpoint.path}",
                    extra={"extra_data": {"error_count": e.error_count()}},
                )
                raise DecodingFailedError() from None

        if status == 401:
            logger.warning(f"Unauthorized response from {endpoint.path}")
            raise UnauthorizedError()

        try:
            message = response.content.decode("utf-8")
        except UnicodeDecodeError:
            message = ""
        logger.warning(f"Server error {status} from {endpoint.path}")
        raise ServerError(message or self.SERVER_ERROR_FALLBACK, status_code=status)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
