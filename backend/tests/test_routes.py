"""
Tests for API routes — links, blog, analytics, admin automation.
"""

import asyncio
import warnings

from conftest import TEST_CLIENT_IP


async def _create_post(client, auth, title="Hello World", content="Body text"):
    resp = await client.post("/admin/api/blog", json={"title": title, "content": content}, headers=auth)
    assert resp.status_code == 201
    return resp.json()


class TestHealthEndpoint:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


class TestLinks:
    async def test_shorten(self, client):
        resp = await client.post("/shorten", json={"originalUrl": "https://example.com/page"})
        assert resp.status_code == 201
        data = resp.json()
        assert len(data["shortCode"]) == 6
        assert data["originalUrl"] == "https://example.com/page"
        assert data["existing"] is False
        assert data["isCustom"] is False

    async def test_shorten_same_url_reuses_code(self, client):
        first = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()
        second = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()
        assert second["shortCode"] == first["shortCode"]
        assert second["existing"] is True

    async def test_custom_code_conflict(self, client):
        body = {"originalUrl": "https://example.com", "customCode": "promo1"}
        assert (await client.post("/shorten", json=body)).status_code == 201
        resp = await client.post("/shorten", json=body)
        assert resp.status_code == 409

    async def test_invalid_inputs(self, client):
        resp = await client.post("/shorten", json={"originalUrl": "nope"})
        assert resp.status_code == 400
        resp = await client.post("/shorten", json={"originalUrl": "https://x.io", "customCode": "a!"})
        assert resp.status_code == 400
        resp = await client.post("/shorten", json={})
        assert resp.status_code == 422

    async def test_redirect_records_click(self, client, context):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]

        resp = await client.get(f"/{code}", headers={"User-Agent": "pytest-agent"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "https://example.com"

        record = context.clicks.get_record(code)
        assert record.count == 1
        assert record.history[0].client_identity == TEST_CLIENT_IP
        assert record.history[0].user_agent == "pytest-agent"

    async def test_forwarded_for_first_hop(self, client, context):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]
        await client.get(f"/{code}", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        assert context.clicks.get_record(code).history[0].client_identity == "203.0.113.9"

    async def test_preview_does_not_count(self, client, context):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]
        resp = await client.get(f"/preview/{code}")
        assert resp.status_code == 200
        assert resp.json()["shortCode"] == code
        assert context.clicks.get_record(code) is None

    async def test_unknown_code(self, client):
        assert (await client.get("/zzzzzz")).status_code == 404
        assert (await client.get("/preview/zzzzzz")).status_code == 404


class TestBlog:
    async def test_list_and_read(self, client, auth, context):
        post = await _create_post(client, auth)
        assert post["slug"] == "hello-world"

        listing = (await client.get("/blog")).json()
        assert [p["slug"] for p in listing] == ["hello-world"]
        assert "content" not in listing[0]

        resp = await client.get("/blog/hello-world")
        assert resp.status_code == 200
        assert resp.json()["content"] == "Body text"
        assert context.views.get_record("hello-world").count == 1

    async def test_unknown_slug(self, client):
        assert (await client.get("/blog/missing")).status_code == 404


class TestAdminGate:
    async def test_missing_token(self, client):
        resp = await client.get("/admin/api/blog")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    async def test_wrong_token(self, client):
        resp = await client.get("/admin/api/blog", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_auth_check_is_logged(self, client, auth, context):
        await client.get("/admin/api/blog", headers=auth)
        [entry] = context.gate.operation_log.recent()
        assert entry.operation == "AUTH_CHECK"
        assert entry.details["path"] == "/admin/api/blog"

    async def test_hourly_limit(self, client, auth):
        for i in range(5):
            await _create_post(client, auth, title=f"Post {i}")

        resp = await client.post("/admin/api/blog", json={"title": "One more", "content": "x"}, headers=auth)
        assert resp.status_code == 429
        assert "Hourly operation limit reached (5)" in resp.json()["detail"]["error"]

    async def test_emergency_stop_and_resume(self, client, auth, context):
        resp = await client.post(
            "/admin/api/automation/emergency-stop", json={"reason": "incident"}, headers=auth,
        )
        assert resp.status_code == 200
        assert resp.json() == {"active": True, "reason": "incident"}
        before = context.rate_limiter.snapshot(TEST_CLIENT_IP)

        resp = await client.post("/admin/api/blog", json={"title": "T", "content": "x"}, headers=auth)
        assert resp.status_code == 503
        assert resp.json()["detail"]["code"] == "EMERGENCY_STOP"
        # The limiter was never consulted
        assert context.rate_limiter.snapshot(TEST_CLIENT_IP) == before

        status = (await client.get("/admin/api/automation/status", headers=auth)).json()
        assert status["active"] is True

        assert (await client.post("/admin/api/automation/resume")).status_code == 401
        resp = await client.post("/admin/api/automation/resume", headers=auth)
        assert resp.status_code == 200
        assert resp.json()["active"] is False

        await _create_post(client, auth)

    async def test_operations_newest_first(self, client, auth):
        await _create_post(client, auth)
        ops = (await client.get("/admin/api/automation/operations?limit=3", headers=auth)).json()
        assert [op["operation"] for op in ops] == ["AUTH_CHECK", "CREATE_POST", "AUTH_CHECK"]
        assert ops[1]["clientIdentity"] == TEST_CLIENT_IP


class TestLoadTest:
    async def _short_code(self, client):
        resp = await client.post("/shorten", json={"originalUrl": "https://example.com"})
        return resp.json()["shortCode"]

    async def test_runs_and_reports_progress(self, client, auth, context, scheduler):
        code = await self._short_code(client)

        resp = await client.post(
            "/admin/api/automation/load-test", json={"key": code, "count": 3}, headers=auth,
        )
        assert resp.status_code == 202
        job = resp.json()
        assert job["collectionId"] == "urls"

        await scheduler.drain()
        resp = await client.get(f"/admin/api/automation/load-test/{job['id']}", headers=auth)
        data = resp.json()
        assert data["status"] == "completed"
        assert data["recorded"] == 3
        assert context.clicks.get_record(code).count == 3

    async def test_bulk_cooldown(self, client, auth):
        code = await self._short_code(client)
        body = {"key": code, "count": 1}
        assert (await client.post("/admin/api/automation/load-test", json=body, headers=auth)).status_code == 202

        resp = await client.post("/admin/api/automation/load-test", json=body, headers=auth)
        assert resp.status_code == 429
        assert resp.headers["retry-after"] == "300"
        assert resp.json()["detail"]["remainingTime"] == 300

    async def test_rejected_payload_does_not_consume_bulk_quota(self, client, auth, context):
        resp = await client.post(
            "/admin/api/automation/load-test", json={"key": "missing", "count": 1}, headers=auth,
        )
        assert resp.status_code == 404

        code = await self._short_code(client)
        resp = await client.post(
            "/admin/api/automation/load-test", json={"key": code, "count": 99}, headers=auth,
        )
        assert resp.status_code == 422

        snap = context.rate_limiter.snapshot(TEST_CLIENT_IP)
        assert snap.bulk_operations_last_day == 0
        assert snap.cooldown_remaining == 0

    async def test_count_over_limit(self, client, auth):
        code = await self._short_code(client)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            resp = await client.post(
                "/admin/api/automation/load-test", json={"key": code, "count": 6}, headers=auth,
            )

        assert resp.status_code == 422
        assert "at most 5" in resp.json()["detail"]
        assert not [w for w in caught if "UNPROCESSABLE" in str(w.message)]

    async def test_emergency_stop_cancels_running_job(self, client, auth, context, scheduler):
        scheduler.sleep = lambda seconds: asyncio.sleep(3600)
        code = await self._short_code(client)

        resp = await client.post(
            "/admin/api/automation/load-test", json={"key": code, "count": 5}, headers=auth,
        )
        job_id = resp.json()["id"]
        await asyncio.sleep(0)

        resp = await client.post("/admin/api/automation/emergency-stop", headers=auth)
        assert resp.status_code == 200
        assert scheduler.pending == 0

        await client.post("/admin/api/automation/resume", headers=auth)
        data = (await client.get(f"/admin/api/automation/load-test/{job_id}", headers=auth)).json()
        assert data["status"] == "cancelled"
        assert data["recorded"] < 5
        assert data["finishedAt"] is not None

    async def test_view_load_test(self, client, auth, context, scheduler):
        post = await _create_post(client, auth)
        resp = await client.post(
            "/admin/api/automation/load-test",
            json={"key": post["slug"], "kind": "view", "count": 2},
            headers=auth,
        )
        assert resp.status_code == 202
        await scheduler.drain()
        assert context.views.get_record(post["slug"]).count == 2

    async def test_unknown_job(self, client, auth):
        resp = await client.get("/admin/api/automation/load-test/job_nope", headers=auth)
        assert resp.status_code == 404


class TestAnalytics:
    async def test_dashboard(self, client, auth):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]
        await client.get(f"/{code}")
        await client.get(f"/{code}")

        resp = await client.get("/admin/api/analytics", headers=auth)
        assert resp.status_code == 200
        data = resp.json()
        assert data["urls"]["total"] == 2
        assert data["urls"]["recentCount"] == 2
        assert data["blog"]["count"] == 0
        assert data["system"]["totalUrls"] == 1

    async def test_dashboard_sees_new_events_immediately(self, client, auth):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]
        await client.get("/admin/api/analytics", headers=auth)
        await client.get(f"/{code}")

        data = (await client.get("/admin/api/analytics", headers=auth)).json()
        assert data["urls"]["total"] == 1

    async def test_link_analytics(self, client, auth):
        code = (await client.post("/shorten", json={"originalUrl": "https://example.com"})).json()["shortCode"]
        await client.get(f"/{code}", headers={"User-Agent": "agent-x"})

        data = (await client.get(f"/admin/api/analytics/{code}", headers=auth)).json()
        assert data["count"] == 1
        assert data["kind"] == "click"
        assert data["history"][0]["userAgent"] == "agent-x"

    async def test_post_analytics(self, client, auth):
        post = await _create_post(client, auth)
        await client.get(f"/blog/{post['slug']}")
        data = (await client.get(f"/admin/api/blog/{post['slug']}/analytics", headers=auth)).json()
        assert data["count"] == 1
        assert data["kind"] == "view"

    async def test_unknown_items(self, client, auth):
        assert (await client.get("/admin/api/analytics/nope", headers=auth)).status_code == 404
        assert (await client.get("/admin/api/blog/nope/analytics", headers=auth)).status_code == 404

    async def test_requires_admin(self, client):
        assert (await client.get("/admin/api/analytics")).status_code == 401


class TestRateLimitStatus:
    async def test_reports_own_windows(self, client, auth):
        await _create_post(client, auth)
        data = (await client.get("/admin/api/automation/rate-limit", headers=auth)).json()
        assert data["identity"] == TEST_CLIENT_IP
        assert data["operationsLastHour"] == 1
        assert data["maxOperationsPerHour"] == 5
        assert data["nextClickDelayMs"] == 200
