from unittest.mock import patch

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from yuki.core.errors import Unauthenticated, UnsupportedChain, ValidationError
from yuki.services.challenge_store import consume_nonce, put_nonce
from yuki.services.siwe import generate_nonce, parse_siwe_message, recover_address, verify_siwe_login
from yuki.services.users import UserService

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b7"
OTHER_KEY = "0x5c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b8"


def siwe_message(address, nonce="testNonce123", domain="localhost", uri="http://localhost:3000", chain_id=1):
    return (
        f"{domain} wants you to sign in with your Ethereum account:\n"
        f"{address}\n\n"
        "Sign in to Yuki\n\n"
        f"URI: {uri}\n"
        "Version: 1\n"
        f"Chain ID: {chain_id}\n"
        f"Nonce: {nonce}\n"
        "Issued At: 2024-01-01T00:00:00Z"
    )


def sign(message, key=PRIVATE_KEY):
    signed = Account.from_key(key).sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


class TestSIWEServices:
    """Tests for SIWE service functions"""

    def test_generate_nonce_returns_valid_string(self):
        """Test that generate_nonce returns a valid nonce string"""
        # Act
        nonce = generate_nonce()

        # Assert
        assert isinstance(nonce, str)
        assert len(nonce) == 16
        assert nonce.isalnum()

    def test_generate_nonce_is_unique(self):
        assert generate_nonce() != generate_nonce()

    def test_parse_siwe_message_valid(self):
        """Test parsing a valid SIWE message"""
        # Arrange
        message = siwe_message("0x742d35cc6634c0532925a3b844bc9e7595f0beb1")

        # Act
        result = parse_siwe_message(message)

        # Assert
        assert result.address == Web3.to_checksum_address("0x742d35cc6634c0532925a3b844bc9e7595f0beb1")
        assert result.domain == "localhost"
        assert result.nonce == "testNonce123"
        assert result.chain_id == 1
        assert result.statement == "Sign in to Yuki"

    def test_parse_siwe_message_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid SIWE message format"):
            parse_siwe_message("This is not a valid SIWE message")

    def test_recover_address_valid_signature(self):
        """Test recovering Ethereum address from a valid signature"""
        # Arrange
        account = Account.from_key(PRIVATE_KEY)

        # Act
        recovered_address = recover_address("Test message", sign("Test message"))

        # Assert
        assert recovered_address == account.address

    def test_recover_address_wrong_signature(self):
        """Test that a signature from another key recovers that key's address"""
        account1 = Account.from_key(PRIVATE_KEY)
        account2 = Account.from_key(OTHER_KEY)

        recovered_address = recover_address("Test message", sign("Test message", OTHER_KEY))

        assert recovered_address != account1.address
        assert recovered_address == account2.address


class TestSIWENonceStore:
    """Tests for SIWE nonce store using Redis"""

    @patch('yuki.services.challenge_store.r')
    def test_put_nonce_stores_in_redis(self, mock_redis):
        """Test that put_nonce stores nonce in Redis with TTL"""
        # Act
        put_nonce("test_nonce_123")

        # Assert
        mock_redis.setex.assert_called_once()
        call_args = mock_redis.setex.call_args[0]
        assert call_args[0] == "siwe:nonce:test_nonce_123"
        assert call_args[1] == 300
        assert call_args[2] == "1"

    @patch('yuki.services.challenge_store.r')
    def test_consume_nonce_valid(self, mock_redis):
        mock_redis.getdel.return_value = "1"

        assert consume_nonce("valid_nonce") is True
        mock_redis.getdel.assert_called_once_with("siwe:nonce:valid_nonce")

    @patch('yuki.services.challenge_store.r')
    def test_consume_nonce_invalid(self, mock_redis):
        """Test consuming an invalid/expired nonce"""
        mock_redis.getdel.return_value = None

        assert consume_nonce("invalid_nonce") is False

    @patch('yuki.services.challenge_store.r')
    def test_consume_nonce_prevents_replay(self, mock_redis):
        """Test that same nonce cannot be consumed twice"""
        # Arrange
        mock_redis.getdel.side_effect = ["1", None]

        # Act
        result1 = consume_nonce("replay_nonce")
        result2 = consume_nonce("replay_nonce")

        # Assert
        assert result1 is True
        assert result2 is False


class TestVerifySiweLogin:
    """verify_siwe_login checks, in order: format, nonce, domain, URI, chain, signature"""

    def setup_method(self):
        self.account = Account.from_key(PRIVATE_KEY)

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_valid_login_returns_lowercase_address(self, mock_consume):
        message = siwe_message(self.account.address)

        address = verify_siwe_login(message, sign(message))

        assert address == self.account.address.lower()
        mock_consume.assert_called_once_with("testNonce123")

    def test_invalid_message_format(self):
        with pytest.raises(ValidationError) as exc_info:
            verify_siwe_login("Invalid SIWE message", "0xsignature")

        assert exc_info.value.code == "INVALID_SIWE_MESSAGE"
        assert exc_info.value.http_status == 400

    @patch('yuki.services.siwe.consume_nonce', return_value=False)
    def test_invalid_nonce(self, mock_consume):
        message = siwe_message(self.account.address, nonce="expiredNonce1")

        with pytest.raises(Unauthenticated) as exc_info:
            verify_siwe_login(message, sign(message))

        assert exc_info.value.code == "INVALID_NONCE"
        assert exc_info.value.http_status == 401

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_wrong_domain(self, mock_consume):
        message = siwe_message(self.account.address, domain="malicious.com")

        with pytest.raises(Unauthenticated) as exc_info:
            verify_siwe_login(message, sign(message))

        assert exc_info.value.code == "INVALID_DOMAIN"

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_wrong_uri(self, mock_consume):
        message = siwe_message(self.account.address, uri="https://evil.example")

        with pytest.raises(Unauthenticated) as exc_info:
            verify_siwe_login(message, sign(message))

        assert exc_info.value.code == "INVALID_URI"

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_wrong_chain(self, mock_consume):
        message = siwe_message(self.account.address, chain_id=137)

        with pytest.raises(UnsupportedChain):
            verify_siwe_login(message, sign(message))

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_signature_mismatch(self, mock_consume):
        """Test SIWE login rejects a signature from another wallet"""
        message = siwe_message(self.account.address)

        with pytest.raises(Unauthenticated) as exc_info:
            verify_siwe_login(message, sign(message, OTHER_KEY))

        assert exc_info.value.code == "INVALID_SIGNATURE"

    @patch('yuki.services.siwe.consume_nonce', return_value=True)
    def test_malformed_signature(self, mock_consume):
        message = siwe_message(self.account.address)

        with pytest.raises(Unauthenticated) as exc_info:
            verify_siwe_login(message, "0xnot-a-signature")

        assert exc_info.value.code == "INVALID_SIGNATURE"


class TestSIWEEndpoints:
    """Tests for SIWE authentication endpoints"""

    def test_siwe_nonce_endpoint(self, client, fake_redis):
        response = client.get("/api/v1/auth/siwe/nonce")

        assert response.status_code == 200
        nonce = response.json()["nonce"]
        assert fake_redis.get(f"siwe:nonce:{nonce}") == "1"

    def test_siwe_login_creates_user_and_sets_cookie(self, client, db):
        # Arrange
        account = Account.from_key(PRIVATE_KEY)
        nonce = client.get("/api/v1/auth/siwe/nonce").json()["nonce"]
        message = siwe_message(account.address, nonce=nonce)

        # Act
        response = client.post("/api/v1/auth/siwe/login", json={"message": message, "signature": sign(message)})

        # Assert
        assert response.status_code == 200
        assert response.json()["access_token"]
        assert response.json()["token_type"] == "bearer"
        assert "yuki_session" in response.cookies
        user = UserService(db).get_by_wallet(account.address)
        assert user is not None
        assert user.wallet_address == account.address.lower()

    def test_siwe_login_existing_user_is_reused(self, client, db, make_user):
        account = Account.from_key(PRIVATE_KEY)
        existing = make_user(wallet_address=account.address.lower())
        nonce = client.get("/api/v1/auth/siwe/nonce").json()["nonce"]
        message = siwe_message(account.address, nonce=nonce)

        response = client.post("/api/v1/auth/siwe/login", json={"message": message, "signature": sign(message)})
        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {response.json()['access_token']}"},
        )

        assert me.json()["id"] == existing.id

    def test_siwe_nonce_cannot_be_reused(self, client):
        account = Account.from_key(PRIVATE_KEY)
        nonce = client.get("/api/v1/auth/siwe/nonce").json()["nonce"]
        message = siwe_message(account.address, nonce=nonce)
        body = {"message": message, "signature": sign(message)}

        first = client.post("/api/v1/auth/siwe/login", json=body)
        second = client.post("/api/v1/auth/siwe/login", json=body)

        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json()["code"] == "INVALID_NONCE"
