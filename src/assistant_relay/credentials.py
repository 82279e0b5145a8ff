import httpx
from loguru import logger

from assistant_relay.logging_config import mask_secret

_API_KEYS_PATH = "/wp-json/gpt-chat/v1/api-keys"
_KEY_NAME_PARAM = "gpt_chat_api_key_name"


class CredentialResolver:
    """Looks up a tenant's assistant API key from its WordPress site.

    Every failure (transport error, error status, non-JSON body, missing
    ``apiKey``) resolves to ``None``; nothing is raised to the caller.
    """

    def __init__(self, *, timeout_seconds: float = 5.0, transport: httpx.AsyncBaseTransport | None = None):
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def resolve(self, wordpress_url: str, api_key_name: str) -> str | None:
        url = wordpress_url.rstrip("/") + _API_KEYS_PATH
        logger.debug(f"Fetching API key {api_key_name!r} from {url}")
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = await client.get(url, params={_KEY_NAME_PARAM: api_key_name})
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"API key lookup timed out after {self._timeout_seconds:g}s: {url}")
            return None
        except httpx.HTTPStatusError as ex:
            logger.warning(f"API key lookup failed with HTTP {ex.response.status_code}: {url}")
            return None
        except httpx.HTTPError as ex:
            logger.warning(f"API key lookup failed: {ex}")
            return None
        except ValueError:
            logger.warning(f"API key lookup returned a non-JSON body: {url}")
            return None

        api_key = data.get("apiKey") if isinstance(data, dict) else None
        if not isinstance(api_key, str) or not api_key:
            logger.warning(f"API key {api_key_name!r} missing from lookup response")
            return None

        logger.debug(f"Resolved API key {api_key_name!r}: {mask_secret(api_key)}")
        return api_key
