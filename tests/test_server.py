import unittest

from fastapi.testclient import TestClient

from cpauth.auth import AuthService
from cpauth.challenges import ChallengeStore
from cpauth.client import AuthClient, fetch_params
from cpauth.config import Settings
from cpauth.crypto import commit, decode_int, encode_int, public_key, respond, sample_scalar
from cpauth.errors import (
    AlreadyRegistered,
    AuthenticationFailed,
    InvalidOrExpiredSession,
    UnknownOrExpiredChallenge,
    UnknownUser,
)
from cpauth.params import load
from cpauth.server import create_app


class TestHTTPService(unittest.TestCase):
    def setUp(self) -> None:
        self.params = load()
        self.width = self.params.byte_length
        self.service = AuthService(self.params)
        self.http = TestClient(create_app(self.service))

    def _register(self, username: str, secret: int):
        y1, y2 = public_key(self.params, secret)
        return self.http.post(
            "/register",
            json={
                "user_name": username,
                "y1": encode_int(y1, self.width),
                "y2": encode_int(y2, self.width),
            },
        )

    def test_full_flow(self) -> None:
        self.assertEqual(self._register("alice", 5).json(), {})

        k = sample_scalar(self.params)
        r1, r2 = commit(self.params, k)
        reply = self.http.post(
            "/challenge",
            json={
                "user_name": "alice",
                "r1": encode_int(r1, self.width),
                "r2": encode_int(r2, self.width),
            },
        )
        self.assertEqual(reply.status_code, 200)
        body = reply.json()
        self.assertEqual(len(body["c"]), 2 * self.width)
        c = decode_int(body["c"], self.width)
        s = encode_int(respond(self.params, k, c, 5), self.width)

        verified = self.http.post("/verify", json={"auth_id": body["auth_id"], "s": s})
        self.assertEqual(verified.status_code, 200)
        session_id = verified.json()["session_id"]
        self.assertEqual(self.http.get(f"/session/{session_id}").json(), {"user_name": "alice"})

        replay = self.http.post("/verify", json={"auth_id": body["auth_id"], "s": s})
        self.assertEqual(replay.status_code, 404)
        self.assertEqual(replay.json()["error"], "UnknownOrExpiredChallenge")

    def test_duplicate_registration_conflict(self) -> None:
        self._register("alice", 5)
        reply = self._register("alice", 6)
        self.assertEqual(reply.status_code, 409)
        self.assertEqual(reply.json()["error"], "AlreadyRegistered")

    def test_unknown_user(self) -> None:
        reply = self.http.post(
            "/challenge",
            json={"user_name": "nobody", "r1": encode_int(2, self.width), "r2": encode_int(3, self.width)},
        )
        self.assertEqual(reply.status_code, 404)
        self.assertEqual(reply.json()["error"], "UnknownUser")

    def test_malformed_numbers(self) -> None:
        short = self.http.post("/register", json={"user_name": "alice", "y1": "02", "y2": "03"})
        self.assertEqual(short.status_code, 400)
        too_large = self.http.post(
            "/register",
            json={"user_name": "alice", "y1": "ff" * self.width, "y2": encode_int(3, self.width)},
        )
        self.assertEqual(too_large.status_code, 400)
        self.assertNotIn("alice", self.service.registry)

    def test_invalid_session(self) -> None:
        reply = self.http.get("/session/bogus")
        self.assertEqual(reply.status_code, 401)
        self.assertEqual(self.http.delete("/session/bogus").status_code, 200)

    def test_params_endpoint(self) -> None:
        self.assertEqual(fetch_params(self.http), self.params)


class TestAuthClient(unittest.TestCase):
    def setUp(self) -> None:
        self.service = AuthService(load())
        self.http = TestClient(create_app(self.service))
        self.client = AuthClient.connect(self.http)

    def test_register_login_logout(self) -> None:
        self.client.register("alice", 12345)
        session_id = self.client.login("alice", 12345)
        self.assertEqual(self.client.whoami(session_id), "alice")
        self.client.logout(session_id)
        with self.assertRaises(InvalidOrExpiredSession):
            self.client.whoami(session_id)

    def test_errors_are_mapped(self) -> None:
        self.client.register("alice", 12345)
        with self.assertRaises(AlreadyRegistered):
            self.client.register("alice", 1)
        with self.assertRaises(UnknownUser):
            self.client.login("bob", 12345)
        with self.assertRaises(AuthenticationFailed):
            self.client.login("alice", 54321)

    def test_unknown_attempt_is_mapped(self) -> None:
        with self.assertRaises(UnknownOrExpiredChallenge):
            self.client._post("/verify", {"auth_id": "gone", "s": encode_int(1, self.client.width)})


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestChallengeExpiryOverHTTP(unittest.TestCase):
    def setUp(self) -> None:
        self.params = load()
        self.width = self.params.byte_length
        self.clock = FakeClock()
        self.service = AuthService(
            self.params,
            challenges=ChallengeStore(self.params, ttl=10, clock=self.clock),
        )
        self.http = TestClient(create_app(self.service))
        y1, y2 = public_key(self.params, 5)
        self.service.register("alice", y1, y2)

    def _challenge(self):
        k = sample_scalar(self.params)
        r1, r2 = commit(self.params, k)
        body = self.http.post(
            "/challenge",
            json={
                "user_name": "alice",
                "r1": encode_int(r1, self.width),
                "r2": encode_int(r2, self.width),
            },
        ).json()
        return k, body["auth_id"], decode_int(body["c"], self.width)

    def test_expired_and_unknown_attempts_look_the_same(self) -> None:
        k, auth_id, c = self._challenge()
        s = encode_int(respond(self.params, k, c, 5), self.width)
        self.clock.now += 10

        expired = self.http.post("/verify", json={"auth_id": auth_id, "s": s})
        unknown = self.http.post("/verify", json={"auth_id": "never-issued", "s": s})
        self.assertEqual(expired.status_code, 404)
        self.assertEqual(expired.status_code, unknown.status_code)
        self.assertEqual(expired.json(), unknown.json())

    def test_abandoned_challenges_are_not_retained(self) -> None:
        for _ in range(50):
            self._challenge()
        self.clock.now += 3600
        for _ in range(5):
            k, auth_id, c = self._challenge()
            s = encode_int(respond(self.params, k, c, 5), self.width)
            self.assertEqual(self.http.post("/verify", json={"auth_id": auth_id, "s": s}).status_code, 200)
        self.assertEqual(len(self.service.challenges), 0)


class TestAppFactory(unittest.TestCase):
    def test_builds_service_from_settings(self) -> None:
        app = create_app(settings=Settings(group="toy-23", challenge_ttl=5, session_ttl=5))
        service = app.state.service
        self.assertEqual(service.params.p, 23)
        self.assertEqual(service.challenges.ttl, 5)
        self.assertEqual(service.sessions.ttl, 5)


if __name__ == "__main__":
    unittest.main()
