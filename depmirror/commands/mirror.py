"""
Handles the 'mirror' command: mirror everything the configuration lists.
"""

import click

from ..cli_utils import standard_command, add_common_options, emit_details
from ..config import MirrorConfig
from ..services.sync_service import SyncService


@click.command('mirror')
@add_common_options('workers', 'pretty', 'strict')
@click.pass_context
@standard_command
def mirror_handler(ctx, workers, pretty, strict):
    """Mirror all packages of the configuration file.

    Packages in "repositories" are mirrored as is. Packages in "require"
    are mirrored together with every package any of their versions ever
    required. Existing mirrors are skipped; use 'update' for them.
    """
    config = MirrorConfig.load(ctx.obj.get('config_path'))
    service = SyncService(config, workers=workers)
    emit_details(
        service.mirror_all(),
        lambda: service.last_result,
        pretty=pretty,
        strict=strict,
        title="Mirror",
    )
