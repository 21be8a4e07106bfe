"""
Secret resolution and log masking.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Union

from runner.src.core.errors import PipelineError

logger = logging.getLogger(__name__)

SECRET_ENV_PREFIX = "DEPLOYX_SECRET_"

class SecretNotFoundError(PipelineError):
    def __init__(self, secret_id: str):
        self.secret_id = secret_id
        super().__init__(f"Secret '{secret_id}' could not be resolved")

class SecretResolver:
    """Resolves a secret id to its value. Values must never be logged."""

    def resolve(self, secret_id: str) -> str:
        raise NotImplementedError

class EnvSecretResolver(SecretResolver):
    """Reads ``DEPLOYX_SECRET_<ID>`` (id upper-cased, ``-`` and ``.`` as ``_``)."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None, prefix: str = SECRET_ENV_PREFIX):
        self.environ = os.environ if environ is None else environ
        self.prefix = prefix

    def env_name(self, secret_id: str) -> str:
        return self.prefix + secret_id.upper().replace("-", "_").replace(".", "_")

    def resolve(self, secret_id: str) -> str:
        name = self.env_name(secret_id)
        if name not in self.environ:
            raise SecretNotFoundError(secret_id)
        return self.environ[name]

class FileSecretResolver(SecretResolver):
    """Reads one file per secret from a directory such as ``/run/secrets``."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def resolve(self, secret_id: str) -> str:
        path = self.directory / secret_id
        if path.name != secret_id or not path.is_file():
            raise SecretNotFoundError(secret_id)
        return path.read_text().rstrip("\r\n")

class ChainSecretResolver(SecretResolver):
    def __init__(self, resolvers: Iterable[SecretResolver]):
        self.resolvers: List[SecretResolver] = list(resolvers)

    def resolve(self, secret_id: str) -> str:
        for resolver in self.resolvers:
            try:
                return resolver.resolve(secret_id)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(secret_id)

def get_secret_resolver(secrets_dir: Optional[str] = None) -> SecretResolver:
    resolvers: List[SecretResolver] = []
    if secrets_dir:
        resolvers.append(FileSecretResolver(secrets_dir))
    resolvers.append(EnvSecretResolver())
    return ChainSecretResolver(resolvers)

class SecretMaskingFilter(logging.Filter):
    """Replaces secret values in the formatted log message."""

    def __init__(self, mask: Callable[[str], str]):
        super().__init__()
        self.mask = mask

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = self.mask(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True

@contextmanager
def masked_logging(mask: Callable[[str], str], target: Optional[logging.Logger] = None):
    """Attach a SecretMaskingFilter to every handler of ``target`` (root by default)."""
    target = target or logging.getLogger()
    masking = SecretMaskingFilter(mask)
    handlers = list(target.handlers)
    for handler in handlers:
        handler.addFilter(masking)
    try:
        yield masking
    finally:
        for handler in handlers:
            handler.removeFilter(masking)
