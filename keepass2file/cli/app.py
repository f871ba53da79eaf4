"""Main CLI application."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Iterator

import typer
from typing_extensions import Annotated

from ..config.settings import Settings
from ..config.store import ConfigStore
from ..core.errors import Keepass2FileError
from ..core.models import TemplateBinding
from ..core.variables import merge_variables, parse_variables
from ..keepass.database import open_database
from ..rendering.engine import Renderer
from .parsers import absolute_path, parse_file_mode, resolve_output_path

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="keepass-2-file",
    help="Render templates with secrets pulled from a KeePass database.",
    no_args_is_help=True,
)
config_app = typer.Typer(
    help="Manage templates, variables and the default KeePass database.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

VarsOption = Annotated[
    list[str],
    typer.Option(
        "--var",
        help="Template variable overriding the configured ones. Repeatable.",
        metavar="KEY=VALUE",
    ),
]


@contextlib.contextmanager
def _exit_on_error() -> Iterator[None]:
    try:
        yield
    except Keepass2FileError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _read_password(settings: Settings) -> str:
    if settings.password is not None:
        return settings.password.get_secret_value()
    return typer.prompt("Enter the KeePass database password", hide_input=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (default: ~/.config/keepass-2-file.yaml).",
            metavar="FILE",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Render templates with secrets pulled from a KeePass database."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger("keepass2file").setLevel(level)

    settings = Settings()
    if config is not None:
        settings.config_path = config
    logger.debug(f"Config path: {settings.config_path}")
    ctx.obj = settings


@app.command()
def build(
    ctx: typer.Context,
    template: Annotated[str, typer.Argument(help="Template file to render.")],
    output: Annotated[str, typer.Argument(help="File to write.")],
    relative_to_input: Annotated[
        bool,
        typer.Option(
            "--relative-to-input",
            "-r",
            help="Resolve a relative OUTPUT against the template's folder instead of the current one.",
        ),
    ] = False,
    keepass: Annotated[
        str | None,
        typer.Option(
            "--keepass",
            "-k",
            help="KeePass database to use instead of the configured one.",
            metavar="FILE",
        ),
    ] = None,
    variables: VarsOption = [],
) -> None:
    """Render a single template."""
    settings = _settings(ctx)
    with _exit_on_error():
        store = ConfigStore.load(settings.config_path)
        logger.info(f"Building template file: {template}")
        merged = merge_variables(store.document.variables, variables)

        database = keepass or store.document.keepass
        if database is None:
            raise Keepass2FileError(
                "No keepass file configured in global config or passed as parameter"
            )
        logger.info(f"KeePass file: {database}")

        tree = open_database(database, _read_password(settings))
        renderer = Renderer(tree, file_mode=parse_file_mode(settings.file_mode))
        binding = TemplateBinding(
            template_path=template,
            output_path=resolve_output_path(template, output, relative_to_input),
        )
        renderer.render_one(binding, merged)
        renderer.flush_diagnostics(binding)


@app.command("build-all")
def build_all(ctx: typer.Context, variables: VarsOption = []) -> None:
    """Render every configured template, skipping the ones that fail."""
    settings = _settings(ctx)
    with _exit_on_error():
        store = ConfigStore.load(settings.config_path)
        merged = merge_variables(store.document.variables, variables)

        templates = store.document.templates
        database = store.document.keepass
        if database is None:
            raise Keepass2FileError("No keepass file configured in global config")
        logger.info(
            f"Building all files ({len(templates)}) with KeePass file: {database}"
        )

        tree = open_database(database, _read_password(settings))
        renderer = Renderer(tree, file_mode=parse_file_mode(settings.file_mode))
        renderer.render_all(templates, merged)


@config_app.command("set-default-kp-db")
def set_default_kp_db(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Absolute path of the .kdbx file.")],
) -> None:
    """Set the KeePass database used when none is given."""
    settings = _settings(ctx)
    database = Path(path)
    if not database.is_absolute():
        logger.error(
            "The file path is not absolute. It must look like "
            "/Users/username/**/*.kdbx on Mac, or C:\\**\\*.kdbx on Windows"
        )
        raise typer.Exit(code=1)
    if not database.exists():
        logger.error(f"The following file doesn't exist or it can't be accessed: {path}")
        raise typer.Exit(code=1)

    with _exit_on_error():
        store = ConfigStore.load(settings.config_path)
        logger.info(f"Setting default KeePass DB: {path}")
        store.document.keepass = path
        store.save()


@config_app.command("get-kp-db")
def get_kp_db(ctx: typer.Context) -> None:
    """Show the default KeePass database."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
    if store.document.keepass is None:
        typer.echo(
            f"The current configuration '{store.path}' doesn't contain a default keepass db"
        )
    else:
        typer.echo(f"Current file is {store.document.keepass}")


@config_app.command("list-files")
def list_files(ctx: typer.Context) -> None:
    """List the configured templates."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
    templates = store.document.templates
    if not templates:
        typer.echo("No templates defined")
        return
    typer.echo("Configured templates:")
    for template in templates:
        suffix = f" ({template.name})" if template.name is not None else ""
        typer.echo(f"\t{template.template_path} -> {template.output_path}{suffix}")


@config_app.command("add-file")
def add_file(
    ctx: typer.Context,
    template: Annotated[str, typer.Argument(help="Template file.")],
    output: Annotated[str, typer.Argument(help="File the template renders to.")],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Label used to delete or report the template."),
    ] = None,
    relative_to_input: Annotated[
        bool,
        typer.Option(
            "--relative-to-input",
            "-r",
            help="Resolve a relative OUTPUT against the template's folder instead of the current one.",
        ),
    ] = False,
) -> None:
    """Add a template to build-all, or rename the one with the same paths."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
        output_path = resolve_output_path(template, output, relative_to_input)
        binding = store.document.add_template(
            name, absolute_path(template), absolute_path(output_path)
        )
        store.save()
    logger.info(f"Template added: {binding.template_path} -> {binding.output_path}")


@config_app.command()
def prune(ctx: typer.Context) -> None:
    """Remove templates whose file no longer exists."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
        for template in store.prune():
            logger.info(
                f"Template {template.template_path} does not exist, removing from config"
            )
        store.save()


@config_app.command()
def delete(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Delete every template with this name."),
    ] = None,
    template: Annotated[
        str | None,
        typer.Option("--template", "-t", help="Template path of the binding to delete."),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Output path of the binding to delete."),
    ] = None,
) -> None:
    """Delete templates by name, or the one bound to --template and --output."""
    by_paths = template is not None or output is not None
    if (name is None) == (not by_paths):
        raise typer.BadParameter("Use either --name or both --template and --output")
    if by_paths and (template is None or output is None):
        raise typer.BadParameter("--template and --output must be given together")

    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
        if name is not None:
            removed = store.document.delete_templates(name)
        else:
            removed = store.document.delete_template(template, output)
        store.save()
    logger.info(f"Removed {removed} template(s)")


@config_app.command("list-variables")
def list_variables(ctx: typer.Context) -> None:
    """List the default template variables."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
    variables = store.document.variables
    if not variables:
        typer.echo("No variables defined")
        return
    typer.echo("Variables:")
    for key in sorted(variables):
        typer.echo(f"\t{key} = {variables[key]}")


@config_app.command("add-variables")
def add_variables(
    ctx: typer.Context,
    variables: Annotated[
        list[str], typer.Argument(help="Variables to set.", metavar="KEY=VALUE...")
    ],
) -> None:
    """Set default template variables."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
        for key, value in parse_variables(variables).items():
            store.document.add_var(key, value)
        store.save()


@config_app.command("delete-variables")
def delete_variables(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(help="Variable names to remove.")],
) -> None:
    """Remove default template variables."""
    with _exit_on_error():
        store = ConfigStore.load(_settings(ctx).config_path)
        for name in names:
            if not store.document.del_var(name):
                logger.warning(f"Variable {name} is not defined")
        store.save()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
