"""End-to-end tests for the authentication service HTTP API."""

from __future__ import annotations

import tempfile
import unittest
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from fastapi.testclient import TestClient

from authui.config import ServiceSettings
from authui.models import Account
from authui.registry import UserRegistry
from authui.service import SECURITY_HEADERS, create_app
from authui.tokens import generate_token


class AuthServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = UserRegistry()
        self.settings = ServiceSettings()
        self.app = create_app(settings=self.settings, registry=self.registry)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()

    def test_signup_login_verify_me_lifecycle(self) -> None:
        signup = self.client.post(
            "/api/auth/signup",
            json={"name": "Alice", "email": "alice@example.com", "password": "SuperSecret"},
        )
        self.assertEqual(signup.status_code, 201, signup.text)
        payload = signup.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["user"]["email"], "alice@example.com")
        self.assertEqual(payload["user"]["name"], "Alice")
        self.assertTrue(payload["user"]["createdAt"].endswith("Z"))

        login = self.client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "SuperSecret", "remember": True},
        )
        self.assertEqual(login.status_code, 200, login.text)
        login_payload = login.json()
        self.assertEqual(login_payload["message"], "Login successful")
        self.assertIs(login_payload["rememberMe"], True)
        self.assertEqual(login_payload["user"]["createdAt"], payload["user"]["createdAt"])
        token = login_payload["token"]

        verify = self.client.post("/api/auth/verify", json={"token": token})
        self.assertEqual(verify.status_code, 200)
        self.assertEqual(
            verify.json(),
            {"success": True, "valid": True, "user": {"email": "alice@example.com", "name": "Alice"}},
        )

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["name"], "Alice")

        logout = self.client.post("/api/auth/logout")
        self.assertEqual(logout.status_code, 200)
        self.assertEqual(logout.json(), {"success": True, "message": "Logged out successfully"})

        again = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(again.status_code, 200)
        self.assertEqual(self.registry.size(), 1)

    def test_login_auto_provisions_unknown_email(self) -> None:
        response = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw1"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Login successful (demo mode)")
        self.assertEqual(payload["user"], {"email": "a@x.com", "name": "a"})
        self.assertEqual(self.registry.size(), 1)

    def test_login_missing_fields(self) -> None:
        response = self.client.post("/api/auth/login", json={"email": "a@x.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"success": False, "message": "Email and password required"})

        empty = self.client.post("/api/auth/login")
        self.assertEqual(empty.status_code, 400)
        self.assertEqual(empty.json()["message"], "Email and password required")

    def test_app_keeps_the_registry_it_was_given(self) -> None:
        registry = UserRegistry()
        app = create_app(settings=ServiceSettings(), registry=registry)

        self.assertIs(app.state.registry, registry)
        self.assertIs(app.state.handlers.registry, registry)
        self.assertIs(self.app.state.registry, self.registry)

    def test_login_accepts_numeric_password(self) -> None:
        first = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": 12345678})
        second = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": 12345678})

        self.assertEqual(first.status_code, 200, first.text)
        self.assertEqual(second.status_code, 200, second.text)
        self.assertEqual(second.json()["message"], "Login successful")

    def test_login_echoes_remember_only_when_sent(self) -> None:
        self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})

        omitted = self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})
        explicit_null = self.client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": "pw", "remember": None},
        )

        self.assertNotIn("rememberMe", omitted.json())
        self.assertIn("rememberMe", explicit_null.json())
        self.assertIsNone(explicit_null.json()["rememberMe"])

    def test_signup_password_policy_and_conflict(self) -> None:
        weak = self.client.post(
            "/api/auth/signup",
            json={"name": "A", "email": "a@x.com", "password": "1234567"},
        )
        self.assertEqual(weak.status_code, 400)
        self.assertEqual(weak.json()["message"], "Password must be at least 8 characters")

        created = self.client.post(
            "/api/auth/signup",
            json={"name": "A", "email": "a@x.com", "password": "12345678"},
        )
        self.assertEqual(created.status_code, 201)

        duplicate = self.client.post(
            "/api/auth/signup",
            json={"name": "A", "email": "a@x.com", "password": "12345678"},
        )
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json(), {"success": False, "message": "Email already registered"})
        self.assertEqual(self.registry.size(), 1)

    def test_signup_missing_fields(self) -> None:
        response = self.client.post("/api/auth/signup", json={"email": "a@x.com", "password": "12345678"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Name, email and password required")

    def test_verify_failures(self) -> None:
        missing = self.client.post("/api/auth/verify", json={})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json(), {"success": False, "message": "Token required"})

        unknown = self.client.post("/api/auth/verify", json={"token": generate_token("ghost@x.com")})
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(unknown.json(), {"success": False, "valid": False, "message": "Invalid token"})

        garbage = self.client.post("/api/auth/verify", json={"token": "abcde"})
        self.assertEqual(garbage.status_code, 401)
        self.assertEqual(garbage.json(), {"success": False, "valid": False, "message": "Invalid token"})

        numeric = self.client.post("/api/auth/verify", json={"token": 12345})
        self.assertEqual(numeric.status_code, 401)
        self.assertEqual(
            numeric.json(),
            {"success": False, "valid": False, "message": "Token verification failed"},
        )

    def test_me_failures(self) -> None:
        missing = self.client.get("/api/auth/me")
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(missing.json(), {"success": False, "message": "No token provided"})

        unknown = self.client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {generate_token('ghost@x.com')}"},
        )
        self.assertEqual(unknown.status_code, 404)
        self.assertEqual(unknown.json(), {"success": False, "message": "User not found"})

        garbage = self.client.get("/api/auth/me", headers={"Authorization": "Bearer abcde"})
        self.assertEqual(garbage.status_code, 404)
        self.assertEqual(garbage.json(), {"success": False, "message": "User not found"})

    def test_stats_lists_registered_emails(self) -> None:
        self.client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})
        self.client.post(
            "/api/auth/signup",
            json={"name": "B", "email": "b@x.com", "password": "12345678"},
        )

        response = self.client.get("/api/auth/stats")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["totalUsers"], 2)
        self.assertEqual(payload["registeredEmails"], ["a@x.com", "b@x.com"])
        self.assertIn("timestamp", payload)

    def test_health_endpoints(self) -> None:
        health = self.client.get("/health")
        self.assertEqual(health.status_code, 200)
        payload = health.json()
        self.assertEqual(payload["status"], "healthy")
        self.assertEqual(payload["service"], "auth-ui-v750")
        self.assertGreaterEqual(payload["uptime"], 0)
        self.assertIn("timestamp", payload)

        api_health = self.client.get("/api/health")
        self.assertEqual(api_health.json(), {"status": "ok", "version": "v750"})

    def test_unmatched_route_returns_json_not_found(self) -> None:
        response = self.client.get("/does/not/exist")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json(),
            {"success": False, "message": "Not found", "path": "/does/not/exist"},
        )

    def test_wrong_method_on_known_path_is_not_found(self) -> None:
        response = self.client.get("/api/auth/login")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["path"], "/api/auth/login")

    def test_malformed_json_body_is_rejected(self) -> None:
        response = self.client.post(
            "/api/auth/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"success": False, "message": "Invalid request body"})

    def test_wrong_field_type_is_rejected(self) -> None:
        response = self.client.post("/api/auth/login", json={"email": ["a@x.com"], "password": "pw"})

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])
        self.assertEqual(self.registry.size(), 0)

    def test_security_headers_are_applied(self) -> None:
        response = self.client.get("/api/health")

        for header, value in SECURITY_HEADERS.items():
            self.assertEqual(response.headers.get(header), value)

    def test_large_responses_are_compressed(self) -> None:
        for index in range(100):
            email = f"user{index}@example.com"
            self.registry.put(
                email,
                Account(
                    email=email,
                    password="password",
                    name=f"user{index}",
                    created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
                ),
            )

        response = self.client.get("/api/auth/stats", headers={"Accept-Encoding": "gzip"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("content-encoding"), "gzip")
        self.assertEqual(response.json()["totalUsers"], 100)


class StatsDisabledTests(unittest.TestCase):
    def test_stats_route_absent_when_disabled(self) -> None:
        app = create_app(settings=ServiceSettings(expose_stats=False), registry=UserRegistry())

        with TestClient(app) as client:
            response = client.get("/api/auth/stats")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Not found")


class StaticFilesTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tempdir = tempfile.TemporaryDirectory()
        self.static_dir = Path(self._tempdir.name)
        (self.static_dir / "index.html").write_text("<h1>Sign in</h1>", encoding="utf-8")

    def tearDown(self) -> None:
        self._tempdir.cleanup()

    def test_index_served_and_api_still_reachable(self) -> None:
        settings = replace(ServiceSettings(), static_dir=self.static_dir)
        app = create_app(settings=settings, registry=UserRegistry())

        with TestClient(app) as client:
            index = client.get("/")
            self.assertEqual(index.status_code, 200)
            self.assertIn("Sign in", index.text)

            health = client.get("/api/health")
            self.assertEqual(health.status_code, 200)

            missing = client.get("/missing.css")
            self.assertEqual(missing.status_code, 404)
            self.assertEqual(missing.json()["path"], "/missing.css")

    def test_missing_static_directory_is_ignored(self) -> None:
        settings = replace(ServiceSettings(), static_dir=self.static_dir / "absent")
        app = create_app(settings=settings, registry=UserRegistry())

        with TestClient(app) as client:
            response = client.get("/")

        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
