import pytest

from digestx import DigestChallenge, DigestChallengeResponse, QualityOfProtection

# RFC 2617 Section 3.5
RFC2617_CHALLENGE = (
    'Digest realm="testrealm@host.com", qop="auth,auth-int", '
    'nonce="dcd98b7102dd2f0e8b11d0f600bfb0c093", '
    'opaque="5ccc069c403ebaf9f0171e9517f40e41"'
)
RFC2617_RESPONSE = "6629fae49393a05397450978507c4ef1"

# RFC 7616 Section 3.9.1
RFC7616_CHALLENGE = (
    'Digest realm="http-auth@example.org", qop="auth, auth-int", '
    "algorithm=SHA-256, "
    'nonce="7ypf/xlj9XXwfDPEoM4URrv/xwf94BcCAzFZH4GiTo0v", '
    'opaque="FQhe/qaU925kfnzjCev0ciny7QMkPqMAFRtzCUYo5tdS"'
)


@pytest.fixture
def rfc2617_challenge() -> DigestChallenge:
    return DigestChallenge.parse(RFC2617_CHALLENGE)


@pytest.fixture
def rfc2617_response(rfc2617_challenge: DigestChallenge) -> DigestChallengeResponse:
    """Fully configured response reproducing the RFC 2617 example."""
    return (
        DigestChallengeResponse.response_to(rfc2617_challenge)
        .set_username("Mufasa")
        .set_password("Circle Of Life")
        .set_client_nonce("0a4f113b")
        .set_digest_uri("/dir/index.html")
        .set_request_method("GET")
    )


@pytest.fixture
def complete_response() -> DigestChallengeResponse:
    """Manually configured response with every mandatory value set."""
    return (
        DigestChallengeResponse()
        .set_username("user")
        .set_password("passwd")
        .set_realm("realm")
        .set_nonce("nonce")
        .set_digest_uri("/index.html")
        .set_request_method("GET")
        .set_supported_qop_types({QualityOfProtection.AUTH})
    )
