import base64
import hashlib
import json

import httpx
import pytest

from backend.api.main import app


def blob_sha(data: bytes) -> str:
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


class FakeContentsAPI:
    """In-memory stand-in for GitHub's contents endpoint, with sha checks."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []

    def seed(self, path: str, text: str) -> str:
        self.files[path] = text.encode("utf-8")
        return blob_sha(self.files[path])

    def sha(self, path: str) -> str:
        return blob_sha(self.files[path])

    def text(self, path: str) -> str:
        return self.files[path].decode("utf-8")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        _, _, path = request.url.path.partition("/contents/")

        if request.method == "GET":
            if path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            encoded = base64.encodebytes(self.files[path]).decode("ascii")
            return httpx.Response(200, json={"path": path, "sha": self.sha(path), "content": encoded, "encoding": "base64"})

        if request.method == "PUT":
            body = json.loads(request.content)
            created = path not in self.files
            if not created:
                if "sha" not in body:
                    return httpx.Response(422, json={"message": "Invalid request.\n\n\"sha\" wasn't supplied."})
                if body["sha"] != self.sha(path):
                    return httpx.Response(409, json={"message": f"{path} does not match {body['sha']}"})
            self.files[path] = base64.b64decode(body["content"])
            return httpx.Response(
                201 if created else 200,
                json={"content": {"path": path, "sha": self.sha(path)}, "commit": {"message": body["message"]}},
            )

        return httpx.Response(405)


@pytest.fixture
def github_api():
    return FakeContentsAPI()


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    yield
    app.dependency_overrides.clear()
