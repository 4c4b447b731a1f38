"""
End-to-end tests for the HTTP surface with in-memory collaborators
"""

import json
import sys
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "server"))

import asyncpg
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from app import create_app
from core import HistoryRepository, Settings, UserRepository, sign_token
from dependencies import (
    get_chat_service,
    get_history_repository,
    get_settings,
    get_user_repository,
)
from services.chat import AI_ERROR_REPLY, ChatService

from fakes import FailingChatModel, InMemoryRedis, InMemoryUserRepository


SETTINGS = Settings(database_url="postgresql://localhost/test", jwt_secret="api-test-secret")
CREDENTIALS = {"email": "a@x.com", "password": "pw", "username": "a"}


class ApiTestCase(unittest.TestCase):
    """Base class wiring the app to in-memory stores"""

    chat_model = None

    def setUp(self):
        self.app = create_app()
        self.users = InMemoryUserRepository()
        self.redis = InMemoryRedis()
        self.history = HistoryRepository(self.redis, limit=SETTINGS.history_limit)
        model = self.chat_model or FakeListChatModel(responses=["Bonjour"])
        self.chat_service = ChatService(model, self.history)

        self.app.dependency_overrides[get_settings] = lambda: SETTINGS
        self.app.dependency_overrides[get_user_repository] = lambda: self.users
        self.app.dependency_overrides[get_history_repository] = lambda: self.history
        self.app.dependency_overrides[get_chat_service] = lambda: self.chat_service
        self.client = TestClient(self.app)

    def signup_and_login(self):
        self.assertEqual(self.client.post("/auth/signup", json=CREDENTIALS).status_code, 200)
        response = self.client.post(
            "/auth/login",
            json={"email": CREDENTIALS["email"], "password": CREDENTIALS["password"]},
        )
        self.assertEqual(response.status_code, 200)
        return response.json()

    @staticmethod
    def bearer(token):
        return {"Authorization": f"Bearer {token}"}


class AuthRoutesTest(ApiTestCase):

    def test_signup_succeeds_once(self):
        first = self.client.post("/auth/signup", json=CREDENTIALS)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"success": True})

        second = self.client.post("/auth/signup", json=CREDENTIALS)
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.json(), {"error": "Email exists or Error"})

    def test_login_returns_token_and_user_id(self):
        body = self.signup_and_login()
        self.assertEqual(set(body), {"token", "userId"})
        self.assertEqual(body["userId"], self.users.users["a@x.com"].id)
        self.assertEqual(body["token"].count("."), 2)

    def test_login_with_wrong_password(self):
        self.client.post("/auth/signup", json=CREDENTIALS)
        response = self.client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.text, "Invalid pass")

    def test_login_with_unknown_email(self):
        response = self.client.post("/auth/login", json={"email": "ghost@x.com", "password": "pw"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.text, "User not found")

    def test_signup_requires_all_fields(self):
        response = self.client.post("/auth/signup", json={"email": "a@x.com"})
        self.assertEqual(response.status_code, 422)

    def test_signup_database_failure_is_bad_request(self):
        conn = AsyncMock()
        conn.fetchrow.side_effect = asyncpg.PostgresConnectionError("db down")
        pool = MagicMock()
        pool.acquire.return_value.__aenter__.return_value = conn
        pool.acquire.return_value.__aexit__.return_value = False
        self.app.dependency_overrides[get_user_repository] = lambda: UserRepository(pool)

        with self.assertLogs("core.auth", level="ERROR"):
            response = self.client.post("/auth/signup", json=CREDENTIALS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Email exists or Error"})


class ChatRoutesTest(ApiTestCase):

    def test_chat_accepts_login_token(self):
        token = self.signup_and_login()["token"]
        response = self.client.post(
            "/chat", json={"message": "Salut", "sessionId": "s1"}, headers=self.bearer(token)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"reply": "Bonjour"})

    def test_chat_without_header_is_unauthorized(self):
        response = self.client.post("/chat", json={"message": "Salut", "sessionId": "s1"})
        self.assertEqual(response.status_code, 401)

    def test_chat_with_invalid_token_is_forbidden(self):
        response = self.client.post(
            "/chat", json={"message": "Salut", "sessionId": "s1"}, headers=self.bearer("garbage")
        )
        self.assertEqual(response.status_code, 403)

    def test_token_signed_with_other_secret_is_forbidden(self):
        token = sign_token({"id": "u1", "email": "a@x.com"}, "someone-else")
        response = self.client.post(
            "/chat", json={"message": "Salut", "sessionId": "s1"}, headers=self.bearer(token)
        )
        self.assertEqual(response.status_code, 403)

    def test_token_without_identity_is_forbidden(self):
        token = sign_token({"role": "admin"}, SETTINGS.jwt_secret)
        response = self.client.get("/history", headers=self.bearer(token))
        self.assertEqual(response.status_code, 403)

    def test_header_without_valid_bearer_token_is_forbidden(self):
        for value in ("Basic abc", "Bearer", "garbage"):
            with self.subTest(header=value):
                response = self.client.post(
                    "/chat",
                    json={"message": "Salut", "sessionId": "s1"},
                    headers={"Authorization": value},
                )
                self.assertEqual(response.status_code, 403)

    def test_cors_preflight(self):
        response = self.client.options(
            "/chat",
            headers={"Origin": "http://example.com", "Access-Control-Request-Method": "POST"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

    def test_cors_headers_on_actual_response(self):
        self.client.post("/auth/signup", json=CREDENTIALS)
        response = self.client.post(
            "/auth/login",
            json={"email": CREDENTIALS["email"], "password": CREDENTIALS["password"]},
            headers={"Origin": "http://example.com"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

    def test_unknown_route(self):
        self.assertEqual(self.client.get("/nowhere").status_code, 404)


class UpstreamFailureTest(ApiTestCase):

    chat_model = FailingChatModel()

    def test_ai_failure_is_reported_in_reply(self):
        token = self.signup_and_login()["token"]
        response = self.client.post(
            "/chat", json={"message": "Salut", "sessionId": "s1"}, headers=self.bearer(token)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"reply": AI_ERROR_REPLY})


class HistoryRoutesTest(ApiTestCase):

    def test_history_lists_and_deletes_sessions(self):
        token = self.signup_and_login()["token"]
        headers = self.bearer(token)
        self.client.post("/chat", json={"message": "first", "sessionId": "s1"}, headers=headers)
        self.chat_service = ChatService(FakeListChatModel(responses=["Encore"]), self.history)
        self.client.post("/chat", json={"message": "second", "sessionId": "s2"}, headers=headers)

        history = self.client.get("/history", headers=headers).json()
        self.assertEqual([entry["text"] for entry in history], ["first", "Bonjour", "second", "Encore"])
        self.assertEqual(history[0]["role"], "user")
        self.assertEqual(history[1]["role"], "bot")
        self.assertEqual(history[0]["sessionId"], "s1")
        self.assertIsInstance(history[0]["timestamp"], int)

        response = self.client.request("DELETE", "/history", json={"sessionId": "s1"}, headers=headers)
        self.assertEqual(response.json(), {"success": True})

        remaining = self.client.get("/history", headers=headers).json()
        self.assertEqual([entry["sessionId"] for entry in remaining], ["s2", "s2"])

    def test_history_requires_token(self):
        self.assertEqual(self.client.get("/history").status_code, 401)

    def test_empty_history(self):
        token = self.signup_and_login()["token"]
        self.assertEqual(self.client.get("/history", headers=self.bearer(token)).json(), [])

    def test_legacy_entries_are_returned_as_stored(self):
        body = self.signup_and_login()
        legacy = [
            {"role": "user", "text": "old", "sessionId": 7, "timestamp": 1.5},
            {"role": "bot", "text": "older"},
        ]
        self.redis.data[f"user:{body['userId']}:history"] = json.dumps(legacy)

        response = self.client.get("/history", headers=self.bearer(body["token"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), legacy)


if __name__ == '__main__':
    unittest.main()
