"""The ``zdp`` application and its global options."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from zdp.config import safe_load_config
from zdp.utils import create_cli_logger, open_log_file

from ._commands import CLIContext, register_commands


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Assemble the CLI.

    Global options are parsed by the meta app, which loads configuration,
    opens the log and installs a :class:`CLIContext` before dispatching the
    remaining tokens to a command. Tests pass their own consoles and
    ``exit_on_error=False``.
    """
    app = App(
        name="zdp",
        help="Document lifecycle management for numbered Markdown corpora.",
        help_on_error=True,
        console=console if console is not None else Console(),
        error_console=error_console if error_console is not None else Console(stderr=True),
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _launch(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Print extra detail")] = False,
        quiet: Annotated[bool, Parameter(help="Print only results and errors")] = False,
        no_color: Annotated[
            bool, Parameter(name="--no-color", help="Disable colored output")
        ] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Use only this config file")
        ] = None,
        project_root: Annotated[
            Path | None,
            Parameter(name="--project-root", help="Corpus root directory"),
        ] = None,
    ) -> None:
        settings, config_error = safe_load_config(
            config_path=config, project_root=project_root
        )
        log_settings = settings.logging
        with open_log_file(log_settings.file) as log_stream:
            logger = create_cli_logger(
                level=log_settings.level.value,
                log_format=log_settings.format.value,  # type: ignore[arg-type]
                stream=log_stream,
            )
            if config_error is not None:
                logger.warning("configuration defaults used", error=config_error)

            CLIContext.set_current(
                CLIContext(
                    config=settings,
                    verbose=verbose,
                    quiet=quiet,
                    no_color=no_color,
                    project_root=project_root,
                    config_error=config_error,
                    logger=logger,
                )
            )
            try:
                app(tokens)
            finally:
                CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    create_app().meta()


if __name__ == "__main__":
    main()
