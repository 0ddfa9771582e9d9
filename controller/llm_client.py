"""
Vision LLM Client Module
Sends the operator's goal and a screenshot to an OpenAI-compatible chat endpoint.
"""
import base64
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Model request failed: missing credential, transport error or bad response."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class VisionLLMClient:
    """
    Client for an OpenAI-compatible vision chat endpoint.
    One attempt per request: failures are raised, never retried.
    """

    DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
    DEFAULT_MODEL = "gpt-4o"
    DEFAULT_TIMEOUT = 60.0  # seconds

    SYSTEM_PROMPT = """You control a macOS virtual machine. Look at the screenshot and execute the user's request immediately.

Available commands:
- click(x,y) - Left click at coordinates
- rightclick(x,y) - Right click at coordinates
- type('text') - Type text
- key('name') - Press key (enter, space, escape, up, down, left, right, tab, delete)
- cmd('name') - Press Cmd+key

Always respond with JSON:
{
  "explanation": "Brief description of what I'm doing",
  "commands": ["command1", "command2"]
}

Rules:
- Use only the commands listed above, exactly as written
- Coordinates are screenshot pixels from the top-left corner
- Just do exactly what is requested based on the current screenshot
- If the user says "click at 0,0" then return ["click(0,0)"]
- Do NOT include any text outside the JSON object"""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize LLM client.

        Args:
            api_key: Bearer token for the endpoint.
            api_url: Chat completions URL.
            model: Model identifier to use.
            timeout: Request timeout in seconds.
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.
            transport: Optional httpx transport (tests mount a mock here).
        """
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def connect(self):
        """Initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                transport=self._transport
            )
            logger.info(f"[LLM] Connected to {self.api_url}")

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("[LLM] Client closed")

    def build_payload(self, goal: str, image_png: bytes) -> Dict[str, Any]:
        """
        Build the chat completion request body.

        Args:
            goal: Operator's natural-language goal.
            image_png: Screenshot bytes.

        Returns:
            JSON-serializable request body.
        """
        image_b64 = base64.b64encode(image_png).decode("ascii")
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": goal},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/png;base64,{image_b64}"}
                        }
                    ]
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature
        }

    async def request_plan(self, goal: str, image_png: bytes) -> str:
        """
        Ask the model for a plan.

        Args:
            goal: Operator's natural-language goal.
            image_png: Screenshot bytes.

        Returns:
            The free-form text of choices[0].message.content.

        Raises:
            LLMError: On missing credential, transport error, non-2xx status
                or a malformed response envelope.
        """
        if not self.api_key:
            raise LLMError("API key not set. Please set OPENAI_API_KEY environment variable.")

        if self._client is None:
            await self.connect()

        payload = self.build_payload(goal, image_png)

        try:
            response = await self._client.post(self.api_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"[LLM] Transport error: {e}")
            raise LLMError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.error(f"[LLM] HTTP error {response.status_code}")
            raise LLMError(
                f"API Error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                payload=response.text
            )

        return self._extract_content(response)

    def _extract_content(self, response: httpx.Response) -> str:
        """Pull choices[0].message.content out of the response envelope."""
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"[LLM] Parse error: {e}")
            raise LLMError("Failed to parse API response", payload=response.text) from e

        if not isinstance(content, str):
            raise LLMError("Failed to parse API response", payload=response.text)

        usage = data.get("usage") or {}
        logger.info(f"[LLM] Response received ({usage.get('total_tokens', 0)} tokens)")
        return content


def create_llm_client(config) -> VisionLLMClient:
    """
    Factory function to create an LLM client.

    Args:
        config: LLMConfig section.

    Returns:
        Configured VisionLLMClient instance.
    """
    return VisionLLMClient(
        api_key=config.api_key,
        api_url=config.api_url,
        model=config.model,
        timeout=config.timeout,
        max_tokens=config.max_tokens,
        temperature=config.temperature
    )
