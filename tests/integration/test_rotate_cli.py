from click.testing import CliRunner
from labdeploy.CLI.rotate import rotate


def test_rotate_cli(settings, tmp_path):
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    (secrets_dir / "redis_password.txt").write_text("old\n")

    result = CliRunner().invoke(rotate, [], obj={'settings': settings, 'generator': lambda: "fresh"})

    assert result.exit_code == 0, result.output
    assert "=== Docker Secrets Rotation ===" in result.output
    assert "Secrets rotated successfully!" in result.output
    assert "docker compose restart postgres redis" in result.output
    assert (secrets_dir / "redis_password.txt").read_text() == "fresh\n"
    backups = list((tmp_path / "backups").iterdir())
    assert len(backups) == 1
    assert (backups[0] / "redis_password.txt").read_text() == "old\n"


def test_rotate_cli_directory_options(settings, tmp_path):
    other = tmp_path / "other-secrets"
    result = CliRunner().invoke(
        rotate,
        ['--secrets-dir', str(other), '--backups-dir', str(tmp_path / "other-backups")],
        obj={'settings': settings},
    )
    assert result.exit_code == 0, result.output
    assert (other / "postgres_password.txt").exists()
    assert (tmp_path / "other-backups").is_dir()


def test_rotate_cli_bad_environment_setting(monkeypatch, tmp_path):
    monkeypatch.setenv('LABDEPLOY_ENV_FILE', str(tmp_path / 'missing.env'))
    monkeypatch.setenv('LABDEPLOY_SECRETS_DIR', str(tmp_path / 'secrets'))
    monkeypatch.setenv('LABDEPLOY_SERVICE_PAUSE', 'later')

    result = CliRunner().invoke(rotate, [], obj={})

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert 'Invalid settings' in result.stderr
    assert not (tmp_path / 'secrets').exists()
