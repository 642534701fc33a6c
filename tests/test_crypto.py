import pytest
from cryptography.fernet import Fernet

from autotest_settings.security.crypto import (
    KEY_LENGTH,
    decrypt_value,
    encrypt_value,
    generate_key_file,
    is_encrypted_value,
    load_fernet,
    resolve_key_file,
)


@pytest.fixture
def fernet():
    return Fernet(Fernet.generate_key())


def test_encrypt_then_decrypt(fernet):
    encrypted = encrypt_value("secret_sauce", fernet)
    assert encrypted.startswith("ENC[") and encrypted.endswith("]")
    assert "secret_sauce" not in encrypted
    assert decrypt_value(encrypted, fernet) == "secret_sauce"


def test_decrypt_with_wrong_key_raises(fernet):
    encrypted = encrypt_value("secret_sauce", fernet)
    with pytest.raises(ValueError, match="Decryption failed"):
        decrypt_value(encrypted, Fernet(Fernet.generate_key()))


def test_decrypt_invalid_format_raises(fernet):
    with pytest.raises(ValueError, match="Invalid ENC format"):
        decrypt_value("secret_sauce", fernet)


@pytest.mark.parametrize("value, expected", [
    ("ENC[gAAAAABkX9J3mZqV7XqV7X==]", True),
    ("  ENC[abc_-=]  ", True),
    ("ENC[]", False),
    ("ENC[has space]", False),
    ("secret_sauce", False),
    (None, False),
])
def test_is_encrypted_value(value, expected):
    assert is_encrypted_value(value) is expected


class TestKeyFile:
    """密钥文件生成与加载"""

    def test_generate_and_load(self, tmp_path):
        key_path = generate_key_file(tmp_path / "secrets" / ".secret_key")

        assert key_path.exists()
        assert len(key_path.read_bytes()) == KEY_LENGTH
        assert isinstance(load_fernet(key_path), Fernet)

    def test_missing_key_file_returns_none(self, tmp_path):
        assert load_fernet(tmp_path / "nope.key") is None

    def test_trailing_newline_is_tolerated(self, tmp_path):
        key_path = tmp_path / "key"
        key_path.write_bytes(Fernet.generate_key() + b"\n")
        assert load_fernet(key_path) is not None

    def test_truncated_key_is_diagnosed(self, tmp_path):
        key_path = tmp_path / "key"
        key_path.write_bytes(b"too-short")
        with pytest.raises(ValueError, match="Invalid key length: 9 bytes"):
            load_fernet(key_path)

    def test_env_var_selects_key_file(self, tmp_path, monkeypatch):
        target = tmp_path / "from_env.key"
        monkeypatch.setenv("SECRET_KEY_FILE", str(target))

        assert resolve_key_file() == target
        assert generate_key_file() == target
        assert target.exists()

    def test_explicit_path_beats_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SECRET_KEY_FILE", str(tmp_path / "env.key"))
        assert resolve_key_file(tmp_path / "arg.key") == tmp_path / "arg.key"
