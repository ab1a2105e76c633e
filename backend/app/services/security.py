"""
Primitives cryptographiques des liens famille.

- create_token  : jeton aléatoire URL-safe remis au parent
- encrypt_token : AES-256-GCM (réversible) pour pouvoir réafficher le lien à l'enseignant
- hmac_token    : HMAC-SHA256 déterministe, utilisé comme index de recherche en BDD
- hash_token    : SHA-256 simple (non réversible, sans clé)

La clé AES est dérivée de SESSION_SECRET (SHA-256) ; la clé HMAC est SESSION_SECRET.
Changer SESSION_SECRET invalide donc tous les liens existants.
"""

import base64
import hashlib
import hmac
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.config import settings

TOKEN_BYTES = 24
IV_BYTES = 16
TAG_BYTES = 16


class InvalidEncryptedToken(ValueError):
    """Donnée chiffrée mal formée ou dont le tag d'authentification ne correspond pas."""


def create_token() -> str:
    """Génère un jeton aléatoire de 24 octets encodé en base64url (32 caractères, sans padding)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii").rstrip("=")


def hash_token(token: str) -> str:
    """Empreinte SHA-256 hexadécimale (64 caractères) d'un jeton."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hmac_token(token: str) -> str:
    """
    HMAC-SHA256 hexadécimal du jeton, clé = SESSION_SECRET.
    Même jeton → même HMAC : permet une recherche indexée sans stocker le jeton en clair.
    """
    return hmac.new(settings.SESSION_SECRET.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).hexdigest()


def _encryption_key() -> bytes:
    return hashlib.sha256(settings.SESSION_SECRET.encode("utf-8")).digest()


def encrypt_token(token: str) -> str:
    """
    Chiffre un jeton en AES-256-GCM.
    Format de sortie : iv.authTag.ciphertext (hexadécimal, IV de 16 octets aléatoire).
    """
    iv = secrets.token_bytes(IV_BYTES)
    # AESGCM renvoie ciphertext || tag ; on les sépare pour le format iv.tag.data
    sealed = AESGCM(_encryption_key()).encrypt(iv, token.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
    return f"{iv.hex()}.{tag.hex()}.{ciphertext.hex()}"


def decrypt_token(encrypted_data: str) -> str:
    """
    Déchiffre une valeur produite par encrypt_token.
    Lève InvalidEncryptedToken si le format est invalide ou si l'authentification échoue.
    """
    parts = encrypted_data.split(".")
    if len(parts) != 3 or not all(parts):
        raise InvalidEncryptedToken("Format de donnée chiffrée invalide.")

    iv_hex, tag_hex, ciphertext_hex = parts
    try:
        iv = bytes.fromhex(iv_hex)
        tag = bytes.fromhex(tag_hex)
        ciphertext = bytes.fromhex(ciphertext_hex)
    except ValueError as exc:
        raise InvalidEncryptedToken("Format de donnée chiffrée invalide.") from exc

    if len(tag) != TAG_BYTES or not iv:
        raise InvalidEncryptedToken("Format de donnée chiffrée invalide.")

    try:
        plaintext = AESGCM(_encryption_key()).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise InvalidEncryptedToken("Échec de l'authentification de la donnée chiffrée.") from exc

    return plaintext.decode("utf-8")
