"""Client for the external curriculum-generation webhook."""

import httpx
import structlog
from pydantic import JsonValue

from neural_nexus.config import WebhookConfig
from neural_nexus.errors import UpstreamError

logger = structlog.get_logger()

# Keys the webhook may use for the generated text in a JSON reply.
RESPONSE_TEXT_KEYS = ("curriculum", "output", "text", "result")


def _extract_text(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        return response.text

    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamError("Curriculum webhook returned invalid JSON") from exc

    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in RESPONSE_TEXT_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                return value
    raise UpstreamError("Curriculum webhook response has no curriculum text")


class WebhookCurriculumGenerator:
    """Posts a goal to the webhook and returns the curriculum text verbatim.

    Args:
        config: Webhook URL, timeout and debug flag.
        client: Optional preconfigured client (the generator does not close it).
    """

    def __init__(self, config: WebhookConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    async def generate(self, goal_description: str, user_context: dict[str, JsonValue]) -> str:
        """Request a curriculum.

        Raises:
            UpstreamError: Webhook disabled, unreachable, timed out, or the
                reply was an error or carried no text.
        """
        if not self.config.enabled:
            raise UpstreamError("Curriculum webhook is not configured")

        payload = {"goal_description": goal_description, "user": user_context}
        if self.config.debug:
            logger.debug("curriculum_webhook_request", url=self.config.url, payload=payload)

        client = self._client or httpx.AsyncClient(timeout=self.config.timeout_seconds)
        try:
            response = await client.post(
                self.config.url,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Curriculum webhook call failed: {exc}") from exc
        finally:
            if self._client is None:
                await client.aclose()

        text = _extract_text(response)
        if not text.strip():
            raise UpstreamError("Curriculum webhook returned empty curriculum")
        if self.config.debug:
            logger.debug("curriculum_webhook_response", status=response.status_code, length=len(text))
        return text
