"""Tests for JWT claim parsing and account ID extraction"""

from codex_oauth.jwt_utils import decode_jwt, extract_account_id, extract_account_id_from_claims
from codex_oauth.models import TokenResponse
from tests.conftest import make_jwt


class TestDecodeJwt:
    def test_decodes_payload(self):
        assert decode_jwt(make_jwt({"sub": "user"})) == {"sub": "user"}

    def test_wrong_segment_count(self):
        assert decode_jwt("a.b") is None
        assert decode_jwt("") is None

    def test_garbage_payload(self):
        assert decode_jwt("header.!!!not-base64!!!.sig") is None

    def test_non_object_payload(self):
        assert decode_jwt("aGVhZGVy.WzEsMl0.sig") is None


class TestExtractAccountId:
    def test_direct_claim_wins(self):
        claims = {
            "chatgpt_account_id": "direct",
            "https://api.openai.com/auth": {"chatgpt_account_id": "namespaced"},
            "organizations": [{"id": "org"}],
        }
        assert extract_account_id_from_claims(claims) == "direct"

    def test_namespaced_claim(self):
        claims = {
            "https://api.openai.com/auth": {"chatgpt_account_id": "namespaced"},
            "organizations": [{"id": "org"}],
        }
        assert extract_account_id_from_claims(claims) == "namespaced"

    def test_first_organization(self):
        claims = {"organizations": [{"id": "org_1"}, {"id": "org_2"}]}
        assert extract_account_id_from_claims(claims) == "org_1"

    def test_nothing_found(self):
        assert extract_account_id_from_claims({"organizations": []}) is None

    def test_id_token_before_access_token(self):
        tokens = TokenResponse(
            id_token=make_jwt({"chatgpt_account_id": "from-id"}),
            access_token=make_jwt({"chatgpt_account_id": "from-access"}),
            refresh_token="r",
        )
        assert extract_account_id(tokens) == "from-id"

    def test_falls_back_to_access_token(self):
        tokens = TokenResponse(
            id_token="not-a-jwt",
            access_token=make_jwt({"organizations": [{"id": "org_a"}]}),
            refresh_token="r",
        )
        assert extract_account_id(tokens) == "org_a"

    def test_malformed_tokens_yield_none(self):
        tokens = TokenResponse(id_token="", access_token="opaque", refresh_token="r")
        assert extract_account_id(tokens) is None
