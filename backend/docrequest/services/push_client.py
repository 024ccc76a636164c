"""Push Client - LINE Messaging API push calls"""
from typing import Any, Dict, List, Optional
import httpx

from ..config.settings import Settings, settings as default_settings
from ..domain.models import PushResult
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LinePushClient:
    """
    Sends push messages to one LINE user.

    Never raises for delivery problems: non-2xx responses and transport
    failures come back as PushResult(ok=False).
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or default_settings
        self._client = client or httpx.Client()

    def push(self, to: str, messages: List[Dict[str, Any]], access_token: str) -> PushResult:
        """Push messages to a user with a channel access token"""
        try:
            response = self._client.post(
                self.settings.line_push_endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                },
                json={"to": to, "messages": messages}
            )
        except httpx.HTTPError as e:
            logger.warning(f"LINE push transport failure: {e}")
            return PushResult(ok=False, status_code=0, body=str(e), error=type(e).__name__)

        ok = 200 <= response.status_code < 300
        if not ok:
            logger.warning(
                f"LINE push rejected: {response.status_code}",
                extra={"status_code": response.status_code}
            )
        return PushResult(ok=ok, status_code=response.status_code, body=response.text)

    def close(self) -> None:
        self._client.close()
