"""
Tests unitaires des primitives cryptographiques des liens famille.
"""

import re

import pytest

from app.config import settings
from app.services.security import (
    InvalidEncryptedToken,
    create_token,
    decrypt_token,
    encrypt_token,
    hash_token,
    hmac_token,
)


# --- create_token ---

def test_create_token_format_base64url():
    token = create_token()
    assert len(token) == 32
    assert re.fullmatch(r"[A-Za-z0-9_-]+", token)


def test_create_token_unique():
    assert len({create_token() for _ in range(50)}) == 50


# --- hash_token / hmac_token ---

def test_hash_token_sha256_hex():
    # SHA-256 de "abc"
    assert hash_token("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_hmac_token_deterministe():
    assert hmac_token("jeton") == hmac_token("jeton")
    assert len(hmac_token("jeton")) == 64


def test_hmac_token_depend_du_secret(monkeypatch):
    avant = hmac_token("jeton")
    monkeypatch.setattr(settings, "SESSION_SECRET", "un-autre-secret")
    assert hmac_token("jeton") != avant


def test_hmac_token_differe_du_hash_simple():
    assert hmac_token("jeton") != hash_token("jeton")


# --- encrypt_token / decrypt_token ---

def test_encrypt_decrypt_aller_retour():
    token = create_token()
    assert decrypt_token(encrypt_token(token)) == token


def test_encrypt_format_iv_tag_data():
    iv, tag, data = encrypt_token("hello").split(".")
    assert len(iv) == 32   # 16 octets
    assert len(tag) == 32  # 16 octets
    assert len(data) == 10  # 5 octets


def test_encrypt_iv_aleatoire():
    assert encrypt_token("hello") != encrypt_token("hello")


def test_decrypt_secret_modifie_echoue(monkeypatch):
    encrypted = encrypt_token("hello")
    monkeypatch.setattr(settings, "SESSION_SECRET", "un-autre-secret")
    with pytest.raises(InvalidEncryptedToken):
        decrypt_token(encrypted)


def test_decrypt_donnee_alteree_echoue():
    iv, tag, data = encrypt_token("hello").split(".")
    altered = ("0" if data[0] != "0" else "1") + data[1:]
    with pytest.raises(InvalidEncryptedToken):
        decrypt_token(f"{iv}.{tag}.{altered}")


@pytest.mark.parametrize("value", ["", "abc", "a.b", "a.b.c.d", "..", "zz.zz.zz", "00.00.00"])
def test_decrypt_format_invalide(value):
    with pytest.raises(InvalidEncryptedToken):
        decrypt_token(value)


def test_invalid_encrypted_token_est_une_value_error():
    assert issubclass(InvalidEncryptedToken, ValueError)
