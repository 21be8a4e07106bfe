"""Tests for secret resolution and masking."""

import logging

import pytest

from runner.src.services.secrets import (
    ChainSecretResolver,
    EnvSecretResolver,
    FileSecretResolver,
    SecretNotFoundError,
    get_secret_resolver,
    masked_logging,
)

def test_env_resolver_normalizes_ids():
    resolver = EnvSecretResolver({"DEPLOYX_SECRET_DB_PASSWORD": "pw"})
    assert resolver.resolve("db-password") == "pw"
    with pytest.raises(SecretNotFoundError, match="api-key"):
        resolver.resolve("api-key")

def test_file_resolver(tmp_path):
    (tmp_path / "db-password").write_text("pw-from-file\n")
    resolver = FileSecretResolver(tmp_path)
    assert resolver.resolve("db-password") == "pw-from-file"
    with pytest.raises(SecretNotFoundError):
        resolver.resolve("../etc/passwd")

def test_chain_tries_in_order(tmp_path):
    (tmp_path / "token").write_text("from-file")
    chain = ChainSecretResolver([
        FileSecretResolver(tmp_path),
        EnvSecretResolver({"DEPLOYX_SECRET_TOKEN": "from-env", "DEPLOYX_SECRET_OTHER": "other"}),
    ])
    assert chain.resolve("token") == "from-file"
    assert chain.resolve("other") == "other"
    with pytest.raises(SecretNotFoundError):
        chain.resolve("missing")

def test_default_resolver_reads_environment(monkeypatch):
    monkeypatch.setenv("DEPLOYX_SECRET_REGISTRY_TOKEN", "tok")
    assert get_secret_resolver().resolve("registry-token") == "tok"

def test_masked_logging_filters_and_detaches(caplog):
    log = logging.getLogger("test.secrets")

    with caplog.at_level(logging.INFO):
        with masked_logging(lambda text: text.replace("pw", "****")):
            log.info("password is %s", "pw")
        log.info("after: pw")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["password is ****", "after: pw"]
