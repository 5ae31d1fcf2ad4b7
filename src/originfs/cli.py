#!/usr/bin/env python
import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

import click
from dotenv import load_dotenv

from .client import OriginFSClient
from .config import OriginFSConfig, get_originfs_home_dir, load_config
from .exceptions import OriginFSException
from .logging_config import setup_logging

logger = logging.getLogger("originfs")


def _run(config: OriginFSConfig, operation: Callable[[OriginFSClient], Awaitable[Any]], commit: bool = False) -> Any:
    """Run one operation against a fresh client, committing afterwards when asked."""
    async def runner():
        async with OriginFSClient.from_config(config) as client:
            result = await operation(client)
            if commit:
                count = await client.commit()
                logger.info(f"Committed {count} mutations")
            return result

    try:
        return asyncio.run(runner())
    except OriginFSException as e:
        click.echo(click.style(f"Error: {e.detail}", fg="red"), err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), default=None, help="Path to config.yaml.")
@click.option("--token", default=None, help="Credential; overrides config and ORIGINFS_TOKEN.")
@click.option("-V", "--verbose", is_flag=True, help="Enable verbose (DEBUG level) logging on the console.")
@click.pass_context
def cli(ctx, config_path, token, verbose):
    """OriginFS command-line client"""
    load_dotenv()
    try:
        config = load_config(config_path)
    except OriginFSException as e:
        click.echo(click.style(f"Error: {e.detail}", fg="red"), err=True)
        sys.exit(1)
    if token:
        config = config.model_copy(update={"token": token})

    setup_logging(
        log_directory=str(get_originfs_home_dir() / "logs"),
        base_logger_name="originfs",
        level="DEBUG" if verbose else config.log_level,
        console_output=verbose,
    )
    ctx.obj = config


@cli.command()
@click.argument("directory", default="/")
@click.pass_obj
def ls(config, directory):
    """List the immediate children of DIRECTORY."""
    for name in sorted(_run(config, lambda client: client.list_dir(directory))):
        click.echo(name)


@cli.command()
@click.pass_obj
def paths(config):
    """List every known path."""
    for path in sorted(_run(config, lambda client: client.list_paths())):
        click.echo(path)


@cli.command()
@click.argument("path")
@click.pass_obj
def cat(config, path):
    """Print the content of a file."""
    click.echo(_run(config, lambda client: client.read_content(path)))


@cli.command()
@click.argument("path")
@click.pass_obj
def stat(config, path):
    """Show the record behind PATH."""
    record = _run(config, lambda client: client.read_record(path))
    click.echo(f"uuid:     {record.uuid}")
    click.echo(f"kind:     {'folder' if record.is_folder else 'file'}")
    click.echo(f"name:     {record.name}{'' if record.is_folder else record.type}")
    click.echo(f"location: {record.location}")
    click.echo(f"size:     {record.size}")
    click.echo(f"created:  {record.created}")
    click.echo(f"edited:   {record.edited}")


@cli.command()
@click.argument("path")
@click.option("-d", "--data", default=None, help="Content to store.")
@click.option("-f", "--file", "source", type=click.File("r", encoding="utf-8"), default=None, help="Read content from a local file ('-' for stdin).")
@click.pass_obj
def put(config, path, data: Optional[str], source):
    """Create PATH, or overwrite it when it already exists."""
    if (data is None) == (source is None):
        raise click.UsageError("Give exactly one of --data or --file.")
    content = data if data is not None else source.read()

    async def operation(client: OriginFSClient):
        if await client.exists(path):
            await client.write(path, content)
            return "updated"
        await client.create_file(path, content)
        return "created"

    click.echo(f"{path}: {_run(config, operation, commit=True)}")


@cli.command()
@click.argument("path")
@click.pass_obj
def mkdir(config, path):
    """Create a folder and any missing parents."""
    async def operation(client: OriginFSClient):
        if await client.exists(path):
            return False
        await client.create_folder(path)
        return True

    if not _run(config, operation, commit=True):
        click.echo(f"{path}: already exists")


@cli.command()
@click.argument("old_path")
@click.argument("new_path")
@click.pass_obj
def mv(config, old_path, new_path):
    """Rename or move a file."""
    _run(config, lambda client: client.rename(old_path, new_path), commit=True)


@cli.command()
@click.argument("path")
@click.pass_obj
def rm(config, path):
    """Remove a file or folder record."""
    _run(config, lambda client: client.remove(path), commit=True)


if __name__ == "__main__":
    cli()
