"""Mail transport: Mailgun HTTP API behind a small injected client."""
import logging
import threading

import httpx

from clubhub.config import Settings, get_settings

logger = logging.getLogger(__name__)

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


class Mailer:
    """Sends one message at a time and reports success as a bool; never raises.

    The HTTP client is created on first use and dropped after a transport error,
    so the next send reconnects.
    """

    def __init__(self, settings: Settings, timeout: float = 10.0):
        self.settings = settings
        self.timeout = timeout
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.settings.mailgun_api_key and self.settings.mailgun_domain)

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self.timeout)
            return self._client

    def _reset_client(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
            self._client = None

    def close(self) -> None:
        self._reset_client()

    def _from_address(self) -> str:
        domain = self.settings.mailgun_domain.lower()
        from_addr = self.settings.mailgun_from_email
        from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
        if domain and from_domain != domain:
            # Mailgun drops mail whose sender domain differs from the sending domain
            from_addr = f"noreply@{domain}"
        return f"{self.settings.mailgun_from_name} <{from_addr}>"

    def send(self, to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
        if not self.configured:
            logger.warning(
                "Email NOT SENT to=%s subject=%r: MAILGUN_API_KEY / MAILGUN_DOMAIN not configured",
                to_email, subject,
            )
            return False
        base = (self.settings.mailgun_base_url or MAILGUN_US_BASE).rstrip("/")
        domain = self.settings.mailgun_domain.lower()
        data = {
            "from": self._from_address(),
            "to": to_email,
            "subject": subject,
            "text": text_content or "",
            "html": html_content or "",
        }
        auth = ("api", self.settings.mailgun_api_key)
        try:
            client = self._get_client()
            r = client.post(f"{base}/v3/{domain}/messages", auth=auth, data=data)
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                logger.info("Mailgun 401 on US endpoint, retrying EU endpoint")
                r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=auth, data=data)
        except httpx.HTTPError as e:
            logger.error("Mailgun transport error to=%s: %s: %s", to_email, type(e).__name__, e)
            self._reset_client()
            return False
        if 200 <= r.status_code < 300:
            logger.info("Email sent to=%s subject=%r", to_email, subject)
            return True
        logger.error("Mailgun API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
        return False


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """FastAPI dependency; tests override it with a recording fake."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer(get_settings())
    return _mailer
