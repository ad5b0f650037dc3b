"""
Handles the 'add' command: mirror one package and publish it to Satis.
"""

import click

from ..cli_utils import standard_command, add_common_options, emit_details
from ..config import MirrorConfig
from ..services.sync_service import SyncService


@click.command('add')
@click.argument('package')
@click.option('--with-deps', 'with_deps', is_flag=True,
              help='Mirror the dependencies of the package, too')
@add_common_options('workers', 'pretty', 'strict')
@click.pass_context
@standard_command
def add_handler(ctx, package, with_deps, workers, pretty, strict):
    """Mirror PACKAGE (e.g. symfony/console) and add it to Satis.

    The repository URL comes from the "repositories" section of the
    configuration, or from the registry if it is not configured there.

    \b
    Examples:
        depmirror add twig/twig
        depmirror add symfony/console --with-deps --workers 8
    """
    config = MirrorConfig.load(ctx.obj.get('config_path'))
    service = SyncService(config, workers=workers)
    emit_details(
        service.add(package, with_dependencies=with_deps),
        lambda: service.last_result,
        pretty=pretty,
        strict=strict,
        title=f"Added {package}",
    )
