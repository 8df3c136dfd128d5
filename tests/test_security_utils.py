from meetpoll.security_utils import (
    generate_token,
    hash_token,
    mask_sensitive_data,
    verify_host_token,
)


class TestHostToken:
    def test_matching_token(self):
        token = generate_token()
        assert verify_host_token(token, hash_token(token))

    def test_wrong_token(self):
        assert not verify_host_token("wrong", hash_token("right"))

    def test_missing_values(self):
        assert not verify_host_token(None, hash_token("right"))
        assert not verify_host_token("", hash_token("right"))
        assert not verify_host_token("right", None)

    def test_hash_is_hex_sha256(self):
        digest = hash_token("abc")
        assert len(digest) == 64
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestMaskSensitiveData:
    def test_keeps_last_chars(self):
        assert mask_sensitive_data("abcdefgh") == "****efgh"

    def test_short_values_fully_masked(self):
        assert mask_sensitive_data("abc") == "***"
