import httpx
import os
from typing import Dict, Any, Optional
from loguru import logger


class DevRevClient:
    """DevRev record-store client (static bearer token, POST-only RPC endpoints)."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.token = token or os.getenv("DEVREV_API_TOKEN")
        self.base_url = (base_url or os.getenv("DEVREV_BASE_URL", "https://api.devrev.ai")).rstrip("/")
        self._http = http_client or httpx.Client(timeout=20)

        if not self.token:
            logger.warning("No DevRev API token provided, store calls will be rejected")

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for DevRev API requests."""
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json"
        }

    def post(self, endpoint: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to a DevRev endpoint such as ``/accounts.list``.

        Args:
            endpoint: Path relative to the API base URL
            data: JSON body

        Returns:
            Decoded JSON response body

        Raises:
            httpx.HTTPStatusError: on any non-2xx answer (logged, then re-raised)
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            response = self._http.post(url, headers=self._get_headers(), json=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            # 409 is the store's answer to a replayed key; callers treat it as success
            log = logger.info if e.response.status_code == 409 else logger.error
            log(f"DevRev API error on POST {endpoint}: {e.response.status_code} {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"DevRev request error on POST {endpoint}: {e}")
            raise

        if not response.content:
            return {}
        return response.json()

    def close(self):
        self._http.close()
