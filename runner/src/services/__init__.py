from runner.src.services.shell import CommandExecutor, format_command
from runner.src.services.git import GitCheckout
from runner.src.services.compose import ComposeCommand, prune_images_command
from runner.src.services.health import HttpHealthCheck
from runner.src.services.env_file import render_env_file, write_env_file
from runner.src.services.secrets import (
    SecretResolver,
    EnvSecretResolver,
    FileSecretResolver,
    ChainSecretResolver,
    SecretNotFoundError,
    get_secret_resolver,
    masked_logging,
)
from runner.src.services.status_reporter import (
    StatusReporter,
    RedisStatusReporter,
    get_status_reporter,
)
from runner.src.services.pipeline_parser import (
    parse_pipeline_config,
    parse_pipeline_dict,
    load_pipeline_file,
)

__all__ = [
    "CommandExecutor",
    "format_command",
    "GitCheckout",
    "ComposeCommand",
    "prune_images_command",
    "HttpHealthCheck",
    "render_env_file",
    "write_env_file",
    "SecretResolver",
    "EnvSecretResolver",
    "FileSecretResolver",
    "ChainSecretResolver",
    "SecretNotFoundError",
    "get_secret_resolver",
    "masked_logging",
    "StatusReporter",
    "RedisStatusReporter",
    "get_status_reporter",
    "parse_pipeline_config",
    "parse_pipeline_dict",
    "load_pipeline_file",
]
