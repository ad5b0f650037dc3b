"""
Handles the 'update' command: fetch the latest state of every mirror.
"""

import click

from ..cli_utils import standard_command, add_common_options, emit_details
from ..config import MirrorConfig
from ..services.sync_service import SyncService


@click.command('update')
@add_common_options('workers', 'pretty', 'strict')
@click.pass_context
@standard_command
def update_handler(ctx, workers, pretty, strict):
    """Fetch latest updates for each mirrored package.

    Every {repodir}/vendor/project.git is fetched (pruning deleted refs)
    and its server info is refreshed.
    """
    config = MirrorConfig.load(ctx.obj.get('config_path'))
    service = SyncService(config, workers=workers)
    emit_details(
        service.update_all(),
        lambda: service.last_result,
        pretty=pretty,
        strict=strict,
        title="Update",
    )
