import email.message
import hashlib
import threading
from types import SimpleNamespace

import pytest

from digestx import (
    DigestAuthentication,
    DigestChallenge,
    Headers,
    InsufficientInformationError,
    QualityOfProtection,
    Request,
    Response,
    UnsupportedChallengeError,
    authorize_request,
    challenge_response_for,
    find_challenges,
)
from tests.conftest import RFC2617_CHALLENGE


def _directives(header_value: str) -> dict[str, str]:
    result = {}
    for part in header_value[len("Digest ") :].split(","):
        key, _, value = part.partition("=")
        result[key] = value
    return result


@pytest.fixture
def unauthorized() -> Response:
    return Response(401, headers={"WWW-Authenticate": RFC2617_CHALLENGE})


class TestFindChallenges:
    def test_from_response(self, unauthorized: Response) -> None:
        challenges = find_challenges(unauthorized)

        assert len(challenges) == 1
        assert challenges[0].realm == "testrealm@host.com"

    def test_several_header_lines(self) -> None:
        headers = Headers(
            [
                ("WWW-Authenticate", 'Basic realm="r"'),
                ("WWW-Authenticate", 'Digest realm="r", nonce="first", algorithm=SHA-256'),
                ("www-authenticate", 'Digest realm="r", nonce="second"'),
            ]
        )

        challenges = find_challenges(headers)

        assert [c.nonce for c in challenges] == ["first", "second"]

    def test_malformed_header_is_skipped(self) -> None:
        headers = Headers(
            [
                ("WWW-Authenticate", 'Digest realm="unterminated'),
                ("WWW-Authenticate", 'Digest realm="r", nonce="n"'),
            ]
        )

        assert [c.nonce for c in find_challenges(headers)] == ["n"]

    def test_plain_mapping(self) -> None:
        challenges = find_challenges({"www-authenticate": 'Digest realm="r", nonce="n"'})

        assert challenges[0].nonce == "n"

    def test_email_message_headers(self) -> None:
        message = email.message.Message()
        message["WWW-Authenticate"] = 'Digest realm="r", nonce="a"'
        message["WWW-Authenticate"] = 'Digest realm="r", nonce="b"'

        challenges = find_challenges(SimpleNamespace(headers=message))

        assert [c.nonce for c in challenges] == ["a", "b"]

    def test_proxy_header(self) -> None:
        response = Response(407, headers={"Proxy-Authenticate": 'Digest realm="p", nonce="n"'})

        assert find_challenges(response) == []
        assert find_challenges(response, proxy=True)[0].realm == "p"

    def test_no_header(self) -> None:
        assert find_challenges(Response(401)) == []


class TestChallengeResponseFor:
    def test_builds_seeded_engine(self, unauthorized: Response) -> None:
        response = challenge_response_for(unauthorized)

        assert response.nonce == "dcd98b7102dd2f0e8b11d0f600bfb0c093"
        assert response.qop is QualityOfProtection.AUTH

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"WWW-Authenticate": 'Basic realm="r"'},
            {"WWW-Authenticate": 'Digest realm="r", nonce="n", algorithm=SHA-512-256'},
            {"WWW-Authenticate": 'Digest realm="r", nonce="n", qop="auth-conf"'},
            {"WWW-Authenticate": "Digest realm=@@@"},
        ],
    )
    def test_no_supported_challenge(self, headers: dict) -> None:
        with pytest.raises(UnsupportedChallengeError, match="No supported digest challenge"):
            challenge_response_for(Response(401, headers=headers))


class TestDigestAuthentication:
    def test_rfc2617_flow(self, unauthorized: Response) -> None:
        # Arrange
        auth = DigestAuthentication.from_response(unauthorized)
        auth.set_username("Mufasa").set_password("Circle Of Life")
        auth.challenge_response.set_client_nonce("0a4f113b")

        # Act
        header_value = auth.get_authorization_for_request("GET", "/dir/index.html")

        # Assert
        assert auth.can_respond()
        assert auth.header_name == "Authorization"
        assert _directives(header_value)["response"] == '"6629fae49393a05397450978507c4ef1"'

    def test_cannot_respond_without_digest_challenge(self) -> None:
        auth = DigestAuthentication.from_response(
            Response(401, headers={"WWW-Authenticate": 'Basic realm="r"'})
        )

        assert not auth.can_respond()
        assert auth.challenge is None
        with pytest.raises(UnsupportedChallengeError):
            auth.get_authorization_for_request("GET", "/")

    def test_missing_credentials(self, unauthorized: Response) -> None:
        auth = DigestAuthentication.from_response(unauthorized).set_username("u")

        with pytest.raises(InsufficientInformationError) as exc_info:
            auth.get_authorization_for_request("GET", "/")

        assert exc_info.value.field == "password"

    def test_reuse_increments_nonce_count(self, unauthorized: Response) -> None:
        auth = DigestAuthentication.from_response(unauthorized)
        auth.set_username("u").set_password("p")

        first = _directives(auth.get_authorization_for_request("GET", "/a"))
        second = _directives(auth.get_authorization_for_request("GET", "/b"))

        assert first["nc"] == "00000001"
        assert second["nc"] == "00000002"
        assert second["uri"] == '"/b"'
        assert second["cnonce"] == first["cnonce"]

    def test_reuse_with_random_client_nonce(self, unauthorized: Response) -> None:
        auth = DigestAuthentication(
            find_challenges(unauthorized), randomize_client_nonce=True
        )
        auth.set_username("u").set_password("p")

        first = _directives(auth.get_authorization_for_request("GET", "/"))
        second = _directives(auth.get_authorization_for_request("GET", "/"))

        assert second["cnonce"] != first["cnonce"]

    def test_entity_body_used_for_auth_int(self) -> None:
        # Arrange
        challenge = DigestChallenge.parse('Digest realm="r", nonce="n", qop="auth-int"')
        auth = DigestAuthentication.from_challenges([challenge])
        auth.set_username("u").set_password("p")
        body = b'{"Request": {"Command": "GetCamStatus"}}'

        # Act
        auth.get_authorization_for_request("POST", "/cgi-bin/cmd.cgi", body)

        # Assert
        assert auth.challenge_response.entity_body_digest == hashlib.md5(body).digest()

    def test_credentials_set_after_engine_creation(self, unauthorized: Response) -> None:
        auth = DigestAuthentication.from_response(unauthorized)
        engine = auth.challenge_response

        auth.set_username("late").set_password("secret")

        assert engine.username == "late"
        assert engine.password == "secret"

    def test_proxy_response(self) -> None:
        response = Response(
            407, headers={"Proxy-Authenticate": 'Digest realm="proxy", nonce="n"'}
        )
        request = Request("GET", "/")

        auth = DigestAuthentication.from_response(response)
        auth.set_username("u").set_password("p").authorize(request)

        assert auth.header_name == "Proxy-Authorization"
        assert "Proxy-Authorization" in request.headers
        assert "Authorization" not in request.headers

    def test_from_headers_falls_back_to_proxy(self) -> None:
        auth = DigestAuthentication.from_headers(
            {"Proxy-Authenticate": 'Digest realm="proxy", nonce="n"'}
        )

        assert auth.can_respond()
        assert auth.header_name == "Proxy-Authorization"

    def test_update_from_stale_response(self, unauthorized: Response) -> None:
        # Arrange
        auth = DigestAuthentication.from_response(unauthorized)
        auth.set_username("u").set_password("p")
        auth.get_authorization_for_request("GET", "/")
        auth.get_authorization_for_request("GET", "/")
        stale = Response(
            401,
            headers={
                "WWW-Authenticate": 'Digest realm="testrealm@host.com", nonce="new", '
                "qop=auth, stale=true"
            },
        )

        # Act
        updated = auth.update_from_response(stale)
        directives = _directives(auth.get_authorization_for_request("GET", "/"))

        # Assert
        assert updated
        assert auth.challenge.stale
        assert directives["nonce"] == '"new"'
        assert directives["nc"] == "00000001"
        assert directives["username"] == '"u"'
        assert "opaque" not in directives

    def test_update_without_challenge(self, unauthorized: Response) -> None:
        auth = DigestAuthentication.from_response(unauthorized)

        assert not auth.update_from_response(Response(401))
        assert auth.can_respond()

    def test_concurrent_requests_get_distinct_nonce_counts(self, unauthorized: Response) -> None:
        # Arrange
        auth = DigestAuthentication.from_response(unauthorized)
        auth.set_username("u").set_password("p")
        thread_count = 8
        per_thread = 50
        barrier = threading.Barrier(thread_count)
        counts: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            for _ in range(per_thread):
                nc = _directives(auth.get_authorization_for_request("GET", "/"))["nc"]
                with lock:
                    counts.append(nc)

        threads = [threading.Thread(target=worker) for _ in range(thread_count)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        assert len(set(counts)) == thread_count * per_thread
        assert auth.challenge_response.nonce_count == thread_count * per_thread


class TestAuthorize:
    def test_attaches_header_to_request(self, unauthorized: Response) -> None:
        request = Request("GET", "/cgi-bin/session.cgi")

        header_value = authorize_request(request, unauthorized, "user", "passwd")

        assert request.headers["Authorization"] == header_value
        directives = _directives(header_value)
        assert directives["uri"] == '"/cgi-bin/session.cgi"'
        assert directives["username"] == '"user"'

    def test_method_hashed_exactly_as_sent(self) -> None:
        # Arrange
        response = Response(401, headers={"WWW-Authenticate": 'Digest realm="r", nonce="n"'})
        request = Request("get", "/")

        # Act
        header_value = authorize_request(request, response, "u", "p")

        # Assert
        ha1 = hashlib.md5(b"u:r:p").hexdigest()
        ha2 = hashlib.md5(b"get:/").hexdigest()
        expected = hashlib.md5(f"{ha1}:n:{ha2}".encode()).hexdigest()
        assert _directives(header_value)["response"] == f'"{expected}"'

    def test_request_target_taken_from_url(self, unauthorized: Response) -> None:
        request = SimpleNamespace(
            method="GET",
            url="http://192.168.0.10/cgi-bin/cmd.cgi?x=1",
            headers={},
        )

        authorize_request(request, unauthorized, "user", "passwd")

        assert _directives(request.headers["Authorization"])["uri"] == '"/cgi-bin/cmd.cgi?x=1"'

    def test_empty_path_becomes_slash(self, unauthorized: Response) -> None:
        request = SimpleNamespace(method="GET", url="http://camera", headers={})

        authorize_request(request, unauthorized, "user", "passwd")

        assert _directives(request.headers["Authorization"])["uri"] == '"/"'

    def test_request_without_target(self, unauthorized: Response) -> None:
        request = SimpleNamespace(method="GET", headers={})

        with pytest.raises(ValueError):
            authorize_request(request, unauthorized, "user", "passwd")

    def test_request_content_used_for_auth_int(self) -> None:
        response = Response(
            401, headers={"WWW-Authenticate": 'Digest realm="r", nonce="n", qop="auth-int"'}
        )
        body = b"payload"
        request = Request("POST", "/cmd", content=body)
        auth = DigestAuthentication.from_response(response).set_username("u").set_password("p")

        auth.authorize(request)

        assert auth.challenge_response.entity_body_digest == hashlib.md5(body).digest()

    def test_unsupported_response(self) -> None:
        with pytest.raises(UnsupportedChallengeError):
            authorize_request(Request("GET", "/"), Response(401), "u", "p")
