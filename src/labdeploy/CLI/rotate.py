"""
Command Line Interface for secret rotation.
"""
import click
from ..MODELS.settings import Settings
from ..MANAGERS.secret_rotator import SecretRotator, generate_secret
from ..UTILS import console
from ..UTILS.rendering import render_rotation_notice
from ..errors import DeploymentError


@click.command()
@click.option('--secrets-dir', default=None, help='Directory holding the secret files')
@click.option('--backups-dir', default=None, help='Parent directory for timestamped backups')
@click.pass_context
def rotate(ctx, secrets_dir, backups_dir):
    """Back up and regenerate the backing-service secrets."""
    ctx.ensure_object(dict)
    try:
        settings = ctx.obj.get('settings') or Settings.from_env()
    except DeploymentError as e:
        console.log_error(e.message)
        ctx.exit(1)
    rotator = SecretRotator(
        secrets_dir or settings.secrets_dir,
        backups_dir or settings.backups_dir,
        settings.secret_files,
        generator=ctx.obj.get('generator', generate_secret),
    )

    backup_dir = rotator.backup_path()
    click.echo("=== Docker Secrets Rotation ===")
    click.echo(f"Backup directory: {backup_dir}")

    try:
        result = rotator.rotate(backup_dir)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(render_rotation_notice(result.backup_dir, settings.compose_dir))


def main():
    """
    Main entry point for the rotate-secrets command.
    """
    rotate(obj={})


if __name__ == '__main__':
    main()
