from typing import Any, Dict, List, Union

import pytest
import requests

OK_BODY = '{"meta":{"code":200,"message":"OK","details":[]},"data":{}}'


def make_response(body: str, status: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Stands in for requests.Session, replaying scripted bodies or exceptions."""

    def __init__(self, *script: Union[str, Exception]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, **params: Any) -> requests.Response:
        self.calls.append(params)
        # the last entry repeats once the script runs out
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return make_response(item)

    def close(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self):
        self.waits: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("POSTMEN_API_KEY", "POSTMEN_REGION", "POSTMEN_RETRY", "POSTMEN_SAFE", "POSTMEN_ENDPOINT", "POSTMEN_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()
