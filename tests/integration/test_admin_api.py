"""Admin API tests — /api/admin/*."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME, IMAGE_DATA, FakeClassifier, login


async def _words(client: AsyncClient, headers: dict) -> list[dict]:
    response = await client.get("/api/admin/words", headers=headers)
    assert response.status_code == 200
    return response.json()["words"]


async def _word_id(client: AsyncClient, headers: dict, text: str) -> int:
    return next(w["id"] for w in await _words(client, headers) if w["word"] == text)


class TestAdminAccess:
    @pytest.mark.asyncio
    async def test_player_forbidden(self, client: AsyncClient, player_headers: dict):
        response = await client.get("/api/admin/words", headers=player_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, client: AsyncClient):
        assert (await client.get("/api/admin/words")).status_code == 401


class TestWords:
    @pytest.mark.asyncio
    async def test_list(self, client: AsyncClient, admin_headers: dict):
        words = await _words(client, admin_headers)
        assert sorted(w["word"] for w in words) == ["apple", "book", "chair"]
        assert all(w["effective_required_completions"] == 5 for w in words)

    @pytest.mark.asyncio
    async def test_add_normalizes(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/admin/words", json={"word": "  Lantern "}, headers=admin_headers)
        assert response.status_code == 200
        assert "lantern" in [w["word"] for w in await _words(client, admin_headers)]

    @pytest.mark.asyncio
    async def test_add_duplicate(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/admin/words", json={"word": "APPLE"}, headers=admin_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_bulk_add_skips_existing(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/words/bulk", json={"words": ["apple", "drum", "Drum", "easel", " "]}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert len(await _words(client, admin_headers)) == 5

    @pytest.mark.asyncio
    async def test_bulk_replace(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        await client.post("/api/game/submit", json={"image_data": IMAGE_DATA}, headers=player_headers)

        response = await client.put("/api/admin/words", json={"words": ["kite", "owl"]}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert response.json()["current_word"] in {"kite", "owl"}
        fresh_admin = await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
        words = await _words(client, fresh_admin)
        assert sorted(w["word"] for w in words) == ["kite", "owl"]
        assert sum(w["is_active"] for w in words) == 1
        # Score survives in the archive; the old session is invalidated
        assert (await client.get("/api/game/user-stats", headers=player_headers)).status_code == 401
        alice = await login(client, "alice")
        assert (await client.get("/api/game/user-stats", headers=alice)).json()["points"] == 5

    @pytest.mark.asyncio
    async def test_remove_word(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        active = (await client.get("/api/game/current-word", headers=player_headers)).json()
        inactive = next(w for w in await _words(client, admin_headers) if not w["is_active"])

        blocked = await client.delete(f"/api/admin/words/{active['id']}", headers=admin_headers)
        assert blocked.status_code == 409
        removed = await client.delete(f"/api/admin/words/{inactive['id']}", headers=admin_headers)
        assert removed.status_code == 200
        missing = await client.delete(f"/api/admin/words/{inactive['id']}", headers=admin_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_required_completions_override_rotates(
        self, client: AsyncClient, player_headers: dict, admin_headers: dict
    ):
        await client.post("/api/game/submit", json={"image_data": IMAGE_DATA}, headers=player_headers)
        active = (await client.get("/api/game/current-word", headers=player_headers)).json()

        response = await client.patch(
            f"/api/admin/words/{active['id']}", json={"required_completions": 1}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["word_progressed"] is True
        assert response.json()["current_word"] != active["word"]

    @pytest.mark.asyncio
    async def test_required_completions_range(self, client: AsyncClient, admin_headers: dict):
        word_id = await _word_id(client, admin_headers, "book")
        response = await client.patch(
            f"/api/admin/words/{word_id}", json={"required_completions": 21}, headers=admin_headers
        )
        assert response.status_code == 400
        cleared = await client.patch(
            f"/api/admin/words/{word_id}", json={"required_completions": None}, headers=admin_headers
        )
        assert cleared.status_code == 200

    @pytest.mark.asyncio
    async def test_activate_and_next(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        book_id = await _word_id(client, admin_headers, "book")

        response = await client.post(f"/api/admin/words/{book_id}/activate", headers=admin_headers)
        assert response.json()["current_word"] == "book"
        assert (await client.get("/api/game/current-word", headers=player_headers)).json()["word"] == "book"

        moved = await client.post("/api/admin/words/next", headers=admin_headers)
        assert moved.status_code == 200
        assert moved.json()["current_word"] != "book"


class TestSettings:
    @pytest.mark.asyncio
    async def test_get_defaults(self, client: AsyncClient, admin_headers: dict):
        data = (await client.get("/api/admin/settings", headers=admin_headers)).json()
        assert data["coupon_drop_rate"] == 30
        assert data["default_required_completions"] == 5
        assert data["last_reset_time"] is None

    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, admin_headers: dict):
        response = await client.put(
            "/api/admin/settings",
            json={"coupon_drop_rate": 55, "booth_open_time": "10:30"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["coupon_drop_rate"] == 55
        assert data["booth_open_time"] == "10:30"
        assert data["booth_close_time"] == "00:00"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"coupon_drop_rate": 101},
            {"coupon_drop_rate": -1},
            {"default_required_completions": 0},
            {"booth_open_time": "25:00"},
        ],
    )
    async def test_invalid_values(self, client: AsyncClient, admin_headers: dict, body: dict):
        response = await client.put("/api/admin/settings", json=body, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_update_changes_nothing(self, client: AsyncClient, admin_headers: dict):
        await client.put(
            "/api/admin/settings", json={"coupon_drop_rate": 70, "booth_close_time": "99:99"}, headers=admin_headers
        )
        data = (await client.get("/api/admin/settings", headers=admin_headers)).json()
        assert data["coupon_drop_rate"] == 30


class TestUsers:
    @pytest.mark.asyncio
    async def test_list_and_stats(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        await client.put("/api/admin/settings", json={"coupon_drop_rate": 100}, headers=admin_headers)
        await client.post("/api/game/submit", json={"image_data": IMAGE_DATA}, headers=player_headers)

        users = (await client.get("/api/admin/users", headers=admin_headers)).json()
        alice = next(u for u in users if u["username"] == "alice")
        assert alice["total_points"] == 5
        assert alice["total_coupons"] == 1

        stats = (await client.get("/api/admin/stats", headers=admin_headers)).json()
        assert len(stats["coupons"]) == 1
        assert stats["coupons"][0]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_delete_user(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        await client.post("/api/game/submit", json={"image_data": IMAGE_DATA}, headers=player_headers)
        alice_id = (await client.get("/api/auth/me", headers=player_headers)).json()["id"]

        response = await client.delete(f"/api/admin/users/{alice_id}", headers=admin_headers)

        assert response.status_code == 200
        assert (await client.get("/api/auth/me", headers=player_headers)).status_code == 401
        usernames = [u["username"] for u in (await client.get("/api/admin/users", headers=admin_headers)).json()]
        assert "alice" not in usernames

    @pytest.mark.asyncio
    async def test_cannot_delete_admin(self, client: AsyncClient, admin_headers: dict):
        admin_id = (await client.get("/api/auth/me", headers=admin_headers)).json()["id"]
        response = await client.delete(f"/api/admin/users/{admin_id}", headers=admin_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_reset_password(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        alice_id = (await client.get("/api/auth/me", headers=player_headers)).json()["id"]

        response = await client.post(
            f"/api/admin/users/{alice_id}/reset-password", json={"new_password": "reset-pass-1"}, headers=admin_headers
        )

        assert response.status_code == 200
        await login(client, "alice", "reset-pass-1")

    @pytest.mark.asyncio
    async def test_reset_password_missing_user(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/users/9999/reset-password", json={"new_password": "reset-pass-1"}, headers=admin_headers
        )
        assert response.status_code == 404


class TestClearAll:
    @pytest.mark.asyncio
    async def test_clear_all(self, client: AsyncClient, player_headers: dict, admin_headers: dict):
        await client.post("/api/game/submit", json={"image_data": IMAGE_DATA}, headers=player_headers)

        response = await client.post("/api/admin/clear-all", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["current_word"] in {"apple", "book", "chair"}
        admin = await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
        users = (await client.get("/api/admin/users", headers=admin)).json()
        assert [u["username"] for u in users] == [ADMIN_USERNAME]
        assert len(await _words(client, admin)) == 3
        assert (await client.get("/api/admin/stats", headers=admin)).json()["coupons"] == []
        # The deleted player signs up again from scratch
        alice = await login(client, "alice")
        assert (await client.get("/api/game/user-stats", headers=alice)).json()["points"] == 0


class TestClassifierTest:
    @pytest.mark.asyncio
    async def test_runs_without_recording(
        self, client: AsyncClient, player_headers: dict, admin_headers: dict, fake_classifier: FakeClassifier
    ):
        fake_classifier.set_verdict(confidence=64)

        response = await client.post(
            "/api/admin/classifier/test", json={"image_data": IMAGE_DATA, "word": "Lamp"}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["passed"] is True
        assert data["points"] == 4
        assert fake_classifier.calls == ["lamp"]
        status = (await client.get("/api/game/submission-status", headers=player_headers)).json()
        assert status["current_word"]["total_submissions"] == 0
