"""
密码哈希 / Token 签发单元测试
"""

import jwt
from bson import ObjectId

from app.security.auth import decode_token, issue_token
from app.security.passwords import BcryptHasher
from app.todo.store import build_update


def test_bcrypt_hash_and_verify():
    hasher = BcryptHasher(rounds=4)
    hashed = hasher.hash("123mnb")

    assert hashed != "123mnb"
    assert hasher.verify("123mnb", hashed)
    assert not hasher.verify("123mnb!", hashed)


def test_bcrypt_verify_corrupt_hash_is_false():
    assert not BcryptHasher(rounds=4).verify("123mnb", "not-a-bcrypt-hash")


def test_issue_token_round_trip(settings):
    user_id = ObjectId()
    token = issue_token(user_id, settings)

    assert decode_token(token, settings) == user_id


def test_issue_token_is_unique_per_call(settings):
    user_id = ObjectId()

    assert issue_token(user_id, settings) != issue_token(user_id, settings)


def test_decode_token_rejects_other_secret(settings):
    token = jwt.encode({"_id": str(ObjectId()), "access": "auth"}, "another-secret-with-enough-bytes-for-hs256", algorithm="HS256")

    assert decode_token(token, settings) is None


def test_decode_token_rejects_wrong_access(settings):
    token = jwt.encode({"_id": str(ObjectId()), "access": "reset"}, settings.JWT_SECRET, algorithm="HS256")

    assert decode_token(token, settings) is None


def test_decode_token_respects_expiry(settings):
    expiring = settings.model_copy(update={"AUTH_TOKEN_EXPIRE_MINUTES": -1})
    token = issue_token(ObjectId(), expiring)

    assert decode_token(token, settings) is None


def test_build_update_completed_sets_timestamp():
    assert build_update({"completed": True}, 1000) == {"completed": True, "completedAt": 1000}


def test_build_update_incomplete_clears_timestamp():
    assert build_update({"text": "x", "completed": False}, 1000) == {
        "text": "x",
        "completed": False,
        "completedAt": None,
    }


def test_build_update_completed_without_timestamp_keeps_existing():
    assert build_update({"completed": True}, None) == {"completed": True}
