# tests/application/services/test_execution_deps.py
from application.services.cancellation import CancellationToken
from application.services.execution_deps import ExecutionDeps


class MockUrlResolver:
    def __init__(self, base_url="http://localhost:3000"):
        self.base_url = base_url

    def resolve_url(self, url):
        if url.startswith("http"):
            return url
        return f"{self.base_url}{url}"


class MockLogger:
    def __init__(self, name="root"):
        self.name = name

    def bind(self, **kwargs):
        return MockLogger(name=kwargs.get("name", self.name))


class TestExecutionDeps:
    def test_resolve_url_delegates_to_resolver(self):
        deps = ExecutionDeps(url_resolver=MockUrlResolver(), logger=MockLogger())

        assert deps.resolve_url("/api/clients") == "http://localhost:3000/api/clients"
        assert deps.resolve_url("https://download.docker.com/gpg") == "https://download.docker.com/gpg"

    def test_each_deps_gets_its_own_token(self):
        first = ExecutionDeps(url_resolver=MockUrlResolver(), logger=MockLogger())
        second = ExecutionDeps(url_resolver=MockUrlResolver(), logger=MockLogger())

        first.cancel_token.cancel()

        assert second.cancel_token.cancelled is False

    def test_with_logger_keeps_resolver_and_token(self):
        token = CancellationToken()
        deps = ExecutionDeps(url_resolver=MockUrlResolver(), logger=MockLogger(), cancel_token=token)

        bound = deps.with_logger(MockLogger(name="stage"))

        assert bound.logger.name == "stage"
        assert bound.cancel_token is token
        assert bound.url_resolver is deps.url_resolver
        assert deps.logger.name == "root"
