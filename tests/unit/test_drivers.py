from headless_chrome.core.browser_manager import drivers, ua


def test_local_chromedriver_is_preferred(monkeypatch):
    monkeypatch.setattr(drivers.shutil, "which", lambda name: "/usr/bin/chromedriver")

    service = drivers.build_chrome_service("/opt/chrome/driver/chromedriver", ["--verbose"])
    assert service.path == "/opt/chrome/driver/chromedriver"

    service = drivers.build_chrome_service()
    assert service.path == "/usr/bin/chromedriver"


def test_falls_back_to_webdriver_manager(monkeypatch):
    class FakeManager:
        def install(self):
            return "/home/user/.wdm/drivers/chromedriver"

    monkeypatch.setattr(drivers.shutil, "which", lambda name: None)
    monkeypatch.setattr(drivers, "ChromeDriverManager", FakeManager)

    service = drivers.build_chrome_service()
    assert service.path == "/home/user/.wdm/drivers/chromedriver"


def test_custom_user_agent_is_used_verbatim():
    assert ua.get_user_agent("MyAgent/1.0") == "MyAgent/1.0"


def test_generated_user_agent_falls_back_on_failure(monkeypatch):
    class BrokenHeaders:
        def __init__(self, **kwargs):
            raise RuntimeError("no data")

    monkeypatch.setattr(ua, "Headers", BrokenHeaders)
    assert ua.get_user_agent() == ua.FALLBACK_USER_AGENT


def test_generated_user_agent(monkeypatch):
    class FixedHeaders:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

        def generate(self):
            return {"User-Agent": "Mozilla/5.0 Chrome/120.0"}

    monkeypatch.setattr(ua, "Headers", FixedHeaders)
    assert ua.get_user_agent() == "Mozilla/5.0 Chrome/120.0"
