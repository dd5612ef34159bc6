"""
Command Line Interface for labdeploy.
"""
import time
import click
from ..MODELS.deployment_run import DeployFlags
from ..MODELS.service_catalog import ALL_SERVICES, ServiceCatalog
from ..MODELS.settings import Settings
from ..PARSERS.catalog_parser import CatalogParser
from ..MANAGERS.deployment_sequencer import DeploymentSequencer
from ..MANAGERS.status_reporter import StatusReporter
from ..UTILS import console
from ..errors import DeploymentError, PreconditionError

EPILOG = """\b
Examples:
  deploy-services wikijs                # Deploy Wiki.js with network automation
  deploy-services wikijs --force        # Force recreate Wiki.js containers
  deploy-services memos --check         # Check Memos status
  deploy-services filebrowser --info    # Show File Browser info
"""

INIT_FAILURE_POLICIES = {"prompt": None, "continue": True, "abort": False}


def load_catalog(settings: Settings) -> ServiceCatalog:
    """
    Built-in catalog, extended by the file named in the settings if any.
    """
    catalog = ServiceCatalog.default()
    if settings.catalog_file:
        catalog = catalog.merged(CatalogParser().parse(settings.catalog_file))
    return catalog


@click.command(epilog=EPILOG, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument('service', required=False)
@click.option('--force', is_flag=True, help='Force recreate containers')
@click.option('--no-init', 'skip_init', is_flag=True, help='Skip initialization scripts')
@click.option('--no-network', 'skip_network', is_flag=True, help='Skip automatic network connection')
@click.option('--check', 'check_only', is_flag=True, help='Just check service status')
@click.option('--info', 'info_only', is_flag=True, help='Show service info without deploying')
@click.option('--on-init-failure', type=click.Choice(list(INIT_FAILURE_POLICIES)), default='prompt',
              show_default=True, help='What to do when an init script fails')
@click.pass_context
def cli(ctx, service, force, skip_init, skip_network, check_only, info_only, on_init_failure):
    """
    Deploy application services with network automation.

    SERVICE is one of filebrowser, syncthing, wikijs, memos or all.
    """
    ctx.ensure_object(dict)
    if not service:
        console.log_error("No service specified")
        click.echo("")
        click.echo(ctx.get_help())
        ctx.exit(1)

    try:
        settings = ctx.obj.get('settings') or Settings.from_env()
        catalog = ctx.obj.get('catalog') or load_catalog(settings)
    except DeploymentError as e:
        console.log_error(e.message)
        ctx.exit(1)

    if service != ALL_SERVICES and service not in catalog:
        console.log_error(f"Invalid service: {service}")
        click.echo("")
        click.echo(ctx.get_help())
        ctx.exit(1)

    flags = DeployFlags(
        force=force,
        skip_init=skip_init,
        skip_network=skip_network,
        check_only=check_only,
        info_only=info_only,
        continue_on_init_failure=INIT_FAILURE_POLICIES[on_init_failure],
    )
    targets = catalog.resolve(service)

    reporter = StatusReporter(
        settings,
        catalog=catalog,
        runtime=ctx.obj.get('runtime'),
        probe=ctx.obj.get('probe'),
    )
    if flags.info_only:
        for descriptor in targets:
            reporter.info(descriptor.name)
        ctx.exit(0)

    if flags.check_only:
        for descriptor in targets:
            reporter.check(descriptor.name)
            if service == ALL_SERVICES:
                click.echo("---")
        ctx.exit(0)

    sequencer = DeploymentSequencer(
        settings,
        catalog=catalog,
        runtime=ctx.obj.get('runtime'),
        probe=ctx.obj.get('probe'),
        init_runner=ctx.obj.get('init_runner'),
        confirm=ctx.obj.get('confirm', console.confirm),
        sleep=ctx.obj.get('sleep', time.sleep),
    )
    try:
        sequencer.check_preconditions()
    except PreconditionError as e:
        console.log_error(e.message)
        ctx.exit(1)

    if service == ALL_SERVICES:
        results = sequencer.deploy_all(flags)
    else:
        results = [sequencer.deploy(service, flags)]

    if not all(result.succeeded for result in results):
        ctx.exit(1)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
