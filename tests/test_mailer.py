import httpx

from clubhub.config import Settings
from clubhub.services.mailer import MAILGUN_EU_BASE, Mailer
from clubhub.services.notifications import Recipient, notify_subscribers, send_verification_code


def _mailer(handler, **overrides):
    settings = Settings(
        mailgun_api_key="key-123",
        mailgun_domain="mg.campus.edu",
        mailgun_from_email="hello@other.edu",
        **overrides,
    )
    mailer = Mailer(settings)
    mailer._client = httpx.Client(transport=httpx.MockTransport(handler))
    return mailer


def test_unconfigured_mailer_reports_failure():
    mailer = Mailer(Settings(mailgun_api_key="", mailgun_domain=""))
    assert mailer.configured is False
    assert mailer.send("a@campus.edu", "s", "<p>h</p>") is False


def test_send_posts_to_mailgun():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "<1@mg>", "message": "Queued"})

    mailer = _mailer(handler)
    assert mailer.send("a@campus.edu", "Hello", "<p>h</p>", text_content="h") is True
    request = seen[0]
    assert str(request.url) == "https://api.mailgun.net/v3/mg.campus.edu/messages"
    body = request.content.decode()
    # Sender is forced onto the sending domain
    assert "noreply%40mg.campus.edu" in body
    assert "a%40campus.edu" in body


def test_us_401_retries_eu_endpoint():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        if request.url.host == "api.mailgun.net":
            return httpx.Response(401, text="Forbidden")
        return httpx.Response(200, json={"message": "Queued"})

    mailer = _mailer(handler)
    assert mailer.send("a@campus.edu", "Hello", "<p>h</p>") is True
    assert hosts == ["api.mailgun.net", httpx.URL(MAILGUN_EU_BASE).host]


def test_api_error_and_transport_error_return_false():
    mailer = _mailer(lambda request: httpx.Response(400, text="bad"))
    assert mailer.send("a@campus.edu", "Hello", "<p>h</p>") is False

    def broken(request):
        raise httpx.ConnectError("down", request=request)

    mailer = _mailer(broken)
    assert mailer.send("a@campus.edu", "Hello", "<p>h</p>") is False
    assert mailer._client is None


class _Recorder:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, to_email, subject, html_content, text_content=None):
        if to_email in self.failing:
            return False
        self.sent.append((to_email, subject, html_content, text_content))
        return True


def test_verification_code_email():
    recorder = _Recorder()
    assert send_verification_code(recorder, "a@campus.edu", "123456", 300) is True
    _, subject, html, text = recorder.sent[0]
    assert subject == "Your verification code"
    assert "123456" in html and "123456" in text
    assert "5 minutes" in text


def test_notify_subscribers_isolates_failures_and_escapes_html():
    recorder = _Recorder(failing={"b@campus.edu"})
    recipients = [
        Recipient("a@campus.edu", "Ann Lee"),
        Recipient("b@campus.edu", None),
        Recipient("c@campus.edu", None),
    ]
    delivered = notify_subscribers(
        recorder, "Coding Club", 7, "<b>Hack</b>", "Bring snacks & laptops", recipients, "http://hub.campus.edu/"
    )
    assert delivered == 2
    assert [s[0] for s in recorder.sent] == ["a@campus.edu", "c@campus.edu"]
    _, _, html, text = recorder.sent[0]
    assert "&lt;b&gt;Hack&lt;/b&gt;" in html
    assert "http://hub.campus.edu/announcements/7" in text
    assert text.startswith("Hi Ann,")
    assert recorder.sent[1][3].startswith("Hi,")


def test_notify_without_subscribers():
    assert notify_subscribers(_Recorder(), "Coding Club", 1, "t", "c", [], "http://x") == 0
