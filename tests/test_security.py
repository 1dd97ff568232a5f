import pytest
from jose import jwt

from core.config import settings
from core.errors import Unauthorized
from core.security import decode_user_id


def make_token(payload: dict, secret: str = None) -> str:
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def test_decode_user_id_reads_claim():
    assert decode_user_id(make_token({"user_id": 4200001})) == 4200001


def test_decode_user_id_accepts_string_claim():
    assert decode_user_id(make_token({"user_id": "17"})) == 17


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_decode_user_id_rejects_garbage(token):
    with pytest.raises(Unauthorized):
        decode_user_id(token)


def test_decode_user_id_rejects_foreign_signature():
    with pytest.raises(Unauthorized):
        decode_user_id(make_token({"user_id": 1}, secret="someone-else"))


def test_decode_user_id_requires_user_claim():
    with pytest.raises(Unauthorized) as exc:
        decode_user_id(make_token({"sub": "1"}))
    assert exc.value.status_code == 401
