import pytest

from core.settings import PresignSettings
from providers.errors import UpstreamSigningError, ValidationError
from presign.service import is_safe_path, presign_many, presign_one, sign_batch


class FakeSigner:
    provider_name = "fake"

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.requests = []

    def sign(self, req):
        self.requests.append(req)
        if req.path == self.fail_on:
            raise UpstreamSigningError("boom")
        return f"https://example.test/{req.path}?sig=1"


@pytest.mark.parametrize(
    "path, ok",
    [
        ("uploads/image.jpg", True),
        ("a..b/file.txt", True),
        ("dir/.hidden", True),
        ("..", False),
        ("a/../b", False),
        ("a/..", False),
        ("a\\..\\b", False),
        ("/leading", False),
        ("", False),
        (None, False),
        (12, False),
    ],
)
def test_is_safe_path(path, ok):
    assert is_safe_path(path) is ok


def test_sign_batch_keeps_order_and_options():
    signer = FakeSigner()
    urls = sign_batch(signer, ["b", "a"], operation="PUT", bucket="bk", expires_in=30)

    assert list(urls) == ["b", "a"]
    assert [r.path for r in signer.requests] == ["b", "a"]
    assert all(r.operation == "PUT" and r.bucket == "bk" and r.expires_in == 30 for r in signer.requests)
    assert all(r.content_type is None for r in signer.requests)


def test_sign_batch_stops_at_first_failure():
    signer = FakeSigner(fail_on="b")
    with pytest.raises(UpstreamSigningError):
        sign_batch(signer, ["a", "b", "c"], operation="GET", bucket=None, expires_in=900)
    assert [r.path for r in signer.requests] == ["a", "b"]


def test_presign_one_normalizes_operation(monkeypatch):
    signer = FakeSigner()
    monkeypatch.setattr("presign.service.get_signer", lambda provider, env, clock=None: signer)

    out = presign_one(operation="put", path="x.bin", env={}, settings=PresignSettings(), content_type="")
    assert out["operation"] == "PUT"
    assert out["expiresIn"] == 900
    assert signer.requests[0].content_type is None


def test_presign_many_respects_configured_max_batch(monkeypatch):
    monkeypatch.setattr("presign.service.get_signer", lambda provider, env, clock=None: FakeSigner())
    with pytest.raises(ValidationError, match="maximum of 2"):
        presign_many(paths=["a", "b", "c"], env={}, settings=PresignSettings(max_batch=2))


def test_presign_many_rejects_bad_operation(monkeypatch):
    monkeypatch.setattr("presign.service.get_signer", lambda provider, env, clock=None: FakeSigner())
    with pytest.raises(ValidationError, match="Invalid operation"):
        presign_many(paths=["a"], env={}, settings=PresignSettings(), operation="POST")
