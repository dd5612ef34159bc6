"""
Timestamped, coloured operator output.
"""
from datetime import datetime
import click


def _stamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def log(message: str) -> None:
    click.echo(f"{click.style(f'[{_stamp()}]', fg='green')} {message}")


def log_warn(message: str) -> None:
    click.echo(f"{click.style(f'[{_stamp()}] WARNING:', fg='yellow', bold=True)} {message}", err=True)


def log_error(message: str) -> None:
    click.echo(f"{click.style(f'[{_stamp()}] ERROR:', fg='red')} {message}", err=True)


def log_info(message: str) -> None:
    click.echo(f"{click.style(f'[{_stamp()}] INFO:', fg='blue')} {message}")


def confirm(question: str) -> bool:
    """
    Asks a yes/no question, defaulting to no. End of input counts as no.
    """
    try:
        return click.confirm(question, default=False)
    except click.Abort:
        return False


def progress() -> None:
    """Prints a progress dot without a newline."""
    click.echo(".", nl=False)


def blank() -> None:
    click.echo("")
