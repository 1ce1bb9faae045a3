from __future__ import annotations

import inspect

import pytest

from pocketledger.api.profile import handlers as profile_handlers
from pocketledger.core.config import settings
from pocketledger.services.profile_service import INVALID_AVATAR_TYPE

from helpers import create_txn

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture()
def storage_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_DIR", tmp_path)
    return tmp_path


def test_get_and_update_profile(auth_client, demo_user):
    data = auth_client.get("/api/profile").json()
    assert data == {
        "id": demo_user.id,
        "email": "demo@example.com",
        "full_name": "Demo",
        "avatar_url": None,
        "currency": "INR",
    }

    resp = auth_client.patch("/api/profile", json={"full_name": "  Demo User ", "currency": "usd"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["full_name"] == "Demo User"
    assert resp.json()["currency"] == "USD"

    assert auth_client.patch("/api/profile", json={"currency": "dollars"}).status_code == 422


def test_avatar_upload_overwrites_same_name(auth_client, demo_user, storage_dir):
    files = {"file": ("me.png", PNG_BYTES, "image/png")}
    resp = auth_client.post("/api/profile/avatar", files=files)
    assert resp.status_code == 200, resp.text
    assert resp.json()["avatar_url"] == f"/storage/avatars/{demo_user.id}/me.png"

    stored = storage_dir / "avatars" / str(demo_user.id) / "me.png"
    assert stored.read_bytes() == PNG_BYTES

    # 같은 이름으로 다시 올리면 덮어쓰기
    again = auth_client.post("/api/profile/avatar", files={"file": ("me.png", b"new-bytes", "image/png")})
    assert again.status_code == 200
    assert stored.read_bytes() == b"new-bytes"


def test_avatar_filename_is_sanitized(auth_client, demo_user, storage_dir):
    resp = auth_client.post(
        "/api/profile/avatar",
        files={"file": ("../../evil name.jpg", b"jpeg-bytes", "image/jpeg")},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["avatar_url"] == f"/storage/avatars/{demo_user.id}/evil_name.jpg"
    assert (storage_dir / "avatars" / str(demo_user.id) / "evil_name.jpg").exists()


def test_avatar_rejects_other_types(auth_client, storage_dir):
    resp = auth_client.post("/api/profile/avatar", files={"file": ("me.gif", b"GIF89a", "image/gif")})
    assert resp.status_code == 415
    assert resp.json()["detail"] == INVALID_AVATAR_TYPE


def test_avatar_size_limit(auth_client, storage_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_AVATAR_BYTES", 16)
    resp = auth_client.post("/api/profile/avatar", files={"file": ("big.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 413

    empty = auth_client.post("/api/profile/avatar", files={"file": ("empty.png", b"", "image/png")})
    assert empty.status_code == 400


def test_user_stats(auth_client):
    create_txn(auth_client, type="income", amount=1000)
    create_txn(auth_client, amount=300)
    budget = auth_client.post(
        "/api/budgets",
        json={"category_id": auth_client.get("/api/categories", params={"type": "expense"}).json()[0]["id"], "amount": 50},
    )
    assert budget.status_code == 201, budget.text

    stats = auth_client.get("/api/profile/stats").json()
    assert stats == {"total_transactions": 2, "budgets_created": 1, "money_saved": 700.0}


def test_money_saved_never_negative(auth_client):
    create_txn(auth_client, amount=300)
    assert auth_client.get("/api/profile/stats").json()["money_saved"] == 0.0


def test_danger_zone_deletes_all_transactions(auth_client):
    create_txn(auth_client, amount=10)
    create_txn(auth_client, amount=20)

    resp = auth_client.delete("/api/profile/transactions")
    assert resp.status_code == 200
    assert resp.json() == {"removed": 2}
    assert auth_client.get("/api/profile/stats").json()["total_transactions"] == 0


def test_avatar_at_limit_is_accepted_and_one_byte_more_rejected(auth_client, storage_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_AVATAR_BYTES", 64)
    ok = auth_client.post("/api/profile/avatar", files={"file": ("edge.png", b"x" * 64, "image/png")})
    assert ok.status_code == 200, ok.text
    over = auth_client.post("/api/profile/avatar", files={"file": ("edge.png", b"x" * 65, "image/png")})
    assert over.status_code == 413


def test_avatar_handler_runs_in_threadpool():
    # 동기 DB/파일 작업이므로 이벤트 루프를 막지 않도록 일반 함수로 둔다
    assert not inspect.iscoroutinefunction(profile_handlers.upload_avatar)
