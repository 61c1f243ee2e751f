import json
import os
import typing as t

import click

from .app import create_app
from .config import Config
from .config import DEFAULT_PROJECT_DIR
from .error import ConfigError
from .greeting import GreetingService
from .server import GreetingsServer
from .utils import DEFAULT_DEV_STAGE
from .utils import STAGE_ENV_VAR
from .utils import get_system_info
from .utils import show_stage_banner
from .version import __version__


def _set_stage(ctx, param, value):
    if value is not None:
        os.environ[STAGE_ENV_VAR] = value
        return value


def load_config(ctx: click.Context, **overrides) -> Config:
    try:
        return Config.load(ctx.obj['project_dir'], **overrides)
    except ConfigError as e:
        raise click.UsageError(str(e))


@click.group()
@click.version_option(version=__version__, message=f'%(prog)s %(version)s, {get_system_info()}')
@click.option('-S', '--stage', is_eager=True, expose_value=False, callback=_set_stage,
              help=f"The configuration stage (default {DEFAULT_DEV_STAGE}).")
@click.option('-p', '--project-dir', default=DEFAULT_PROJECT_DIR,
              help=f"The project directory path (absolute or relative) [default to '{DEFAULT_PROJECT_DIR}'].")
@click.pass_context
def client(ctx, project_dir):
    ctx.ensure_object(dict)
    ctx.obj['project_dir'] = project_dir


@client.command('run')
@click.option('--host', 'server_host', help="The interface to bind the server to.")
@click.option('--port', 'server_port', type=int, help="The server port.")
@click.option('--management-host', help="The interface to bind the management server to.")
@click.option('--management-port', type=int, help="The management server port (server port if not defined).")
@click.option('--log-level', help="The microservice log level.")
@click.pass_context
def run_command(ctx, **overrides):
    """Runs the hello world microservice (and its management microservice)."""
    config = load_config(ctx, **overrides)
    app, management_app = create_app(config)
    app.logger.debug(f"Configuration : {config.asdict()}")

    show_stage_banner(config.stage)
    try:
        server = GreetingsServer(app, management_app)
    except OSError as e:
        raise click.ClickException(str(e))
    click.secho(f" * Serving {app.name} on http://{config.server_host}:{server.server.port}", fg="green")
    if server.management_server:
        click.secho(f" * Management on http://{config.management_host}:{server.management_server.port}",
                    fg="green")

    server.start()
    try:
        server.join()
    except KeyboardInterrupt:
        click.echo(" * Stopping")
    finally:
        server.shutdown()


@client.command('routes')
@click.pass_context
def routes_command(ctx):
    """Lists the routes of the hello world microservice (and its management microservice)."""
    config = load_config(ctx)
    app, management_app = create_app(config)

    for name, microservice, port in ((app.name, app, config.server_port),
                                     ('management', management_app, config.management_port)):
        if microservice is None:
            continue
        click.echo(f"{name} (port {port})")
        microservice.init_routes()
        for rule in sorted(microservice.url_map.iter_rules(), key=lambda r: r.rule):
            methods = ','.join(sorted(m for m in rule.methods if m not in ['HEAD', 'OPTIONS']))
            click.echo(f"  {methods:<6} {rule.rule:<30} {rule.endpoint}")


@client.command('greet')
@click.argument('name', required=False)
def greet_command(name: t.Optional[str]):
    """Prints a greeting as JSON."""
    greeting = GreetingService().greet(name)
    click.echo(json.dumps(greeting.asdict(), ensure_ascii=False))


def main():
    return client(obj={})


if __name__ == "__main__":
    main()
