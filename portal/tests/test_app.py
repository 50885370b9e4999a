import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from portal.app import create_app
from portal.config import Settings
from portal.dependencies import (
    get_account_service,
    get_contact_store,
    get_probe_store,
    get_profile_store,
    get_session_store,
    reset_dependencies,
)
from portal.errors import ConfigurationError, SessionStoreError
from portal.sessions import SessionCookieSigner

COOKIE = "portal_session"
SECRET = "test-secret"


def make_settings(static_dir: str, **overrides) -> Settings:
    values = {
        "use_in_memory_backends": True,
        "session_secret": SECRET,
        "redis_url": None,
        "static_dir": static_dir,
        "firebase_project_id": "demo-project",
        "firebase_client_email": "svc@demo-project.iam.gserviceaccount.com",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class PortalApiTests(unittest.TestCase):
    def setUp(self):
        reset_dependencies()
        self.static = tempfile.TemporaryDirectory()
        Path(self.static.name, "index.html").write_text("<html>portal</html>")
        Path(self.static.name, "app.js").write_text("console.log('hi');")
        self.settings = make_settings(self.static.name)
        self.app = create_app(self.settings)
        self.client = TestClient(self.app)

    def tearDown(self):
        self.static.cleanup()
        reset_dependencies()

    def _register_and_login(self, username="alice", password="secret1"):
        response = self.client.post(
            "/register", json={"username": username, "password": password}
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.post(
            "/login", json={"username": username, "password": password}
        )
        self.assertEqual(response.status_code, 200)
        return self.client.cookies.get(COOKIE)

    def _account_id(self, username):
        profiles = get_profile_store(self.settings)
        for account_id, record in profiles.profiles.items():
            if record.username == username:
                return account_id
        self.fail(f"no profile for {username}")

    def test_account_lifecycle(self):
        cookie = self._register_and_login()
        self.assertIsNotNone(cookie)

        response = self.client.get("/api/user")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"loggedIn": True, "user": {"username": "alice", "isAdmin": False}},
        )

        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})
        self.assertIsNone(self.client.cookies.get(COOKIE))

        # The old token must not resolve even if the client replays it.
        self.client.cookies.clear()
        self.client.cookies.set(COOKIE, cookie)
        response = self.client.get("/api/user")
        self.assertEqual(response.json(), {"loggedIn": False})

    def test_register_requires_both_fields(self):
        response = self.client.post("/register", json={"username": "alice"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Username and password required"})

    def test_register_duplicate_username(self):
        payload = {"username": "alice", "password": "secret1"}
        self.assertEqual(self.client.post("/register", json=payload).status_code, 200)

        response = self.client.post("/register", json=payload)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Username already exists"})

    def test_login_requires_both_fields(self):
        response = self.client.post("/login", json={"password": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Credentials required"})

    def test_login_unknown_user(self):
        response = self.client.post("/login", json={"username": "nobody", "password": "x"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid credentials"})
        self.assertIsNone(self.client.cookies.get(COOKIE))

    def test_login_wrong_password(self):
        self.client.post("/register", json={"username": "alice", "password": "secret1"})
        response = self.client.post(
            "/login", json={"username": "alice", "password": "wrong"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(self.client.cookies.get(COOKIE))

    def test_form_encoded_bodies(self):
        response = self.client.post(
            "/register", data={"username": "bob", "password": "pw"}
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.post("/login", data={"username": "bob", "password": "pw"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.client.get("/api/user").json()["loggedIn"])

    def test_admin_flag_is_read_fresh(self):
        self._register_and_login()
        get_profile_store(self.settings).set_admin(self._account_id("alice"), True)

        response = self.client.get("/api/user")
        self.assertEqual(response.json()["user"], {"username": "alice", "isAdmin": True})

    def test_missing_profile_destroys_session(self):
        cookie = self._register_and_login()
        get_profile_store(self.settings).delete_profile(self._account_id("alice"))

        response = self.client.get("/api/user")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"loggedIn": False})
        self.assertIsNone(self.client.cookies.get(COOKIE))

        self.client.cookies.clear()
        self.client.cookies.set(COOKIE, cookie)
        self.assertEqual(self.client.get("/api/user").json(), {"loggedIn": False})

    def test_tampered_cookie_is_ignored(self):
        self._register_and_login()
        self.client.cookies.clear()
        self.client.cookies.set(COOKIE, "forged.value")
        self.assertEqual(self.client.get("/api/user").json(), {"loggedIn": False})

    def test_session_check_store_failure(self):
        sessions = MagicMock()
        sessions.get.side_effect = SessionStoreError("down")
        self.app.dependency_overrides[get_session_store] = lambda: sessions
        self.client.cookies.clear()
        self.client.cookies.set(COOKIE, SessionCookieSigner(SECRET).sign("token"))

        response = self.client.get("/api/user")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"loggedIn": False})

    def test_logout_without_session(self):
        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})

    def test_logout_store_failure(self):
        sessions = MagicMock()
        sessions.destroy.side_effect = SessionStoreError("down")
        self.app.dependency_overrides[get_session_store] = lambda: sessions
        self.client.cookies.clear()
        self.client.cookies.set(COOKIE, SessionCookieSigner(SECRET).sign("token"))

        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Logout failed"})

    def test_contact_submission(self):
        response = self.client.post(
            "/contact",
            json={"name": "Ann", "email": "ann@example.com", "message": "Hello"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})
        self.assertEqual(len(get_contact_store(self.settings).messages), 1)

    def test_contact_requires_all_fields(self):
        response = self.client.post("/contact", json={"name": "Ann", "message": "Hi"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "All fields required"})

    def test_contact_store_failure(self):
        contacts = MagicMock()
        contacts.add_message.side_effect = RuntimeError("firestore down")
        self.app.dependency_overrides[get_contact_store] = lambda: contacts

        response = self.client.post(
            "/contact",
            json={"name": "Ann", "email": "ann@example.com", "message": "Hello"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Message submission failed"})

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "status": "OK",
                "firebase": {
                    "projectId": "demo-project",
                    "database": "https://demo-project.firebaseio.com",
                    "serviceAccount": "svc@demo-project.iam.gserviceaccount.com",
                },
                "session": True,
            },
        )

    def test_firestore_probe(self):
        response = self.client.get("/test-firestore")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertIn("id", payload["document"])
        self.assertEqual(
            payload["document"]["testData"], "Firestore connection successful"
        )

    def test_firestore_probe_failure_echoes_detail(self):
        probes = MagicMock()
        probes.write_probe.side_effect = RuntimeError("permission denied")
        self.app.dependency_overrides[get_probe_store] = lambda: probes

        response = self.client.get("/test-firestore")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {"error": "Firestore connection failed", "details": "permission denied"},
        )

    def test_static_fallback(self):
        response = self.client.get("/dashboard/settings")
        self.assertEqual(response.status_code, 200)
        self.assertIn("portal", response.text)

        response = self.client.get("/app.js")
        self.assertEqual(response.status_code, 200)
        self.assertIn("console.log", response.text)

    def test_unhandled_error_hides_detail(self):
        def broken_service():
            raise RuntimeError("secret detail")

        self.app.dependency_overrides[get_account_service] = broken_service
        client = TestClient(self.app, raise_server_exceptions=False)

        response = client.post("/register", json={"username": "a", "password": "b"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal Server Error"})


class CreateAppTests(unittest.TestCase):
    def test_missing_service_account_field_fails_fast(self):
        settings = Settings(
            _env_file=None,
            use_in_memory_backends=False,
            firebase_type="service_account",
        )
        with self.assertRaises(ConfigurationError) as ctx:
            create_app(settings)
        self.assertIn("project_id", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
