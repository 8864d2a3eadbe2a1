"""Wallet Address — parsing and canonicalization of EVM addresses."""

from faucet.core.wallet_address import parse_wallet_address

# EIP-55 reference vector
CHECKSUMMED = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_lowercase_address_is_accepted_unchanged():
    raw = "0x" + "ab" * 20
    assert parse_wallet_address(raw) == raw


def test_uppercase_hex_is_canonicalized_to_lowercase():
    raw = "0x" + "AB" * 20
    assert parse_wallet_address(raw) == "0x" + "ab" * 20


def test_valid_checksum_address_is_accepted():
    assert parse_wallet_address(CHECKSUMMED) == CHECKSUMMED.lower()


def test_bad_checksum_mixed_case_is_rejected():
    broken = CHECKSUMMED[:-1] + "D"
    assert parse_wallet_address(broken) is None


def test_surrounding_whitespace_is_ignored():
    assert parse_wallet_address(f"  {CHECKSUMMED}\n") == CHECKSUMMED.lower()


def test_wrong_length_is_rejected():
    assert parse_wallet_address("0x" + "a" * 39) is None
    assert parse_wallet_address("0x" + "a" * 41) is None


def test_missing_prefix_is_rejected():
    assert parse_wallet_address("a" * 40) is None


def test_non_hex_is_rejected():
    assert parse_wallet_address("0x" + "g" * 40) is None


def test_non_string_is_rejected():
    assert parse_wallet_address(None) is None
    assert parse_wallet_address(1234) is None
