"""Configuration loading for the CLI entry point."""

import os
import sys
from pathlib import Path

from zdp.config._models import Config
from zdp.exceptions import ConfigError

STRICT_ENV_VAR = "ZDP_STRICT_CONFIG"


def _fail_or_warn(message: str, *, strict: bool, warning: str) -> tuple[Config, str]:
    if strict:
        print(f"Error: {message}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    print(f"Warning: {warning}", file=sys.stderr)  # noqa: T201
    return Config.from_dict({}), message


def safe_load_config(
    *,
    config_path: Path | None = None,
    project_root: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> tuple[Config, str | None]:
    """Load configuration without letting a bad file stop the CLI.

    A broken configuration normally produces a warning on stderr and the
    built-in defaults. With ``ZDP_STRICT_CONFIG=1`` unknown keys are errors
    too, and any failure exits with status 1. An explicit ``config_path``
    that does not exist always exits.

    Returns:
        The configuration and, when the defaults were substituted, the
        reason.
    """
    strict = os.environ.get(STRICT_ENV_VAR, "0") == "1"

    if config_path is not None and not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    try:
        if config_path is not None:
            config = Config.from_file(config_path, strict=strict)
        else:
            config = Config.load(
                project_root=project_root,
                include_cli=cli_overrides is not None,
                cli_overrides=cli_overrides,
                strict=strict,
            )
    except ConfigError as e:
        return _fail_or_warn(str(e), strict=strict, warning=f"Failed to load config: {e}")
    except OSError as e:
        message = f"Failed to load config: {e}"
        return _fail_or_warn(message, strict=strict, warning=message)
    return config, None
