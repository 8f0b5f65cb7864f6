from typing import Optional

import aiohttp

REPORT_TIMEOUT_SECONDS = 10.0


class HttpResultReporter:
    """Reports finished games to POST /api/result, keeping the sid cookie between calls."""

    def __init__(self, base_url: str, init_data: Optional[str] = None, timeout: float = REPORT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.init_data = init_data
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpResultReporter":
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __call__(self, result: str, event_id: Optional[str] = None) -> dict:
        """Send one result

        Args:
            result (str): "win", "loss" or "draw"
            event_id (Optional[str]): Idempotency token reused on retries

        Raises:
            aiohttp.ClientResponseError: The server answered with an error status

        Returns:
            dict: {"status": "ok"} plus "code" for a win
        """
        if self._session is None:
            raise RuntimeError("HttpResultReporter must be used as an async context manager")

        payload = {"result": result}
        if event_id:
            payload["eventId"] = event_id
        headers = {"X-TG-INIT-DATA": self.init_data} if self.init_data else None

        async with self._session.post(f"{self.base_url}/api/result", json=payload, headers=headers) as response:
            response.raise_for_status()
            return await response.json()
