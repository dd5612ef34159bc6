import pytest
from click.testing import CliRunner
from labdeploy.CLI.main import cli


@pytest.fixture
def obj(settings, runtime, probe, init_runner, sleeps):
    return {
        'settings': settings,
        'runtime': runtime,
        'probe': probe,
        'init_runner': init_runner,
        'sleep': sleeps,
        'confirm': lambda question: False,
    }


def invoke(args, obj, **kwargs):
    return CliRunner().invoke(cli, args, obj=obj, **kwargs)


def test_cli_help():
    result = CliRunner().invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert '--no-network' in result.output
    assert 'Examples:' in result.output


def test_cli_no_service(obj):
    result = invoke([], obj)
    assert result.exit_code == 1
    assert 'No service specified' in result.output


def test_cli_invalid_service(obj, fake_docker):
    result = invoke(['plex'], obj)
    assert result.exit_code == 1
    assert 'Invalid service: plex' in result.output
    assert 'Invalid service: plex' in result.stderr
    assert fake_docker.calls == []


def test_cli_unknown_option(obj):
    result = invoke(['wikijs', '--turbo'], obj)
    assert result.exit_code != 0


def test_cli_multiple_services(obj):
    result = invoke(['wikijs', 'memos'], obj)
    assert result.exit_code != 0


def test_cli_info(obj, fake_docker):
    result = invoke(['filebrowser', '--info'], obj)
    assert result.exit_code == 0
    assert 'Service: File Browser' in result.output
    assert 'Init Script: init/filebrowser-init.sh' in result.output
    assert fake_docker.calls == []


def test_cli_info_all(obj):
    result = invoke(['all', '--info'], obj)
    assert result.exit_code == 0
    for name in ('File Browser', 'Syncthing', 'Wiki.js', 'Memos'):
        assert f'Service: {name}' in result.output


def test_cli_check_all_is_read_only(obj, fake_docker):
    fake_docker.running.add('memos')
    result = invoke(['all', '--check'], obj)
    assert result.exit_code == 0
    assert result.output.count('---') == 4
    assert fake_docker.mutations() == []
    assert fake_docker.count('docker', 'info') == 0


def test_cli_deploy(obj, compose_files, fake_docker):
    result = invoke(['wikijs'], obj)
    assert result.exit_code == 0, result.output
    assert 'Deployment of wikijs completed' in result.output
    assert 'wikijs' in fake_docker.networks['infrastructure_database']


def test_cli_degraded_deploy_exits_zero(obj, compose_files, probe):
    probe.default = False
    result = invoke(['memos', '--no-network'], obj)
    assert result.exit_code == 0
    assert 'Service not yet accessible' in result.output


def test_cli_missing_proxy_network(obj, compose_files, fake_docker):
    del fake_docker.networks['infrastructure_traefik']
    result = invoke(['wikijs'], obj)
    assert result.exit_code == 1
    assert 'Traefik network not found' in result.output
    assert 'Traefik network not found' in result.stderr
    assert 'Traefik network not found' not in result.stdout
    assert fake_docker.mutations() == []


def test_cli_runtime_unreachable(obj, fake_docker):
    fake_docker.reachable = False
    result = invoke(['all'], obj)
    assert result.exit_code == 1
    assert 'Docker is not running' in result.output


def test_cli_fatal_error_exits_nonzero(obj, fake_docker):
    result = invoke(['syncthing'], obj)
    assert result.exit_code == 1
    assert 'Compose file not found' in result.output


def test_cli_all_continues_after_failure(obj, compose_files, fake_docker):
    fake_docker.failing.add('up')
    result = invoke(['all'], obj)
    assert result.exit_code == 1
    assert fake_docker.count('docker', 'compose') == 8
    assert 'Failed deployments:' in result.output


def test_cli_init_failure_policy(obj, compose_files, init_script, fake_docker):
    init_script('memos')
    fake_docker.init_exit = 1

    aborted = invoke(['memos'], obj)
    assert aborted.exit_code == 1
    assert fake_docker.mutations() == []

    continued = invoke(['memos', '--on-init-failure', 'continue'], obj)
    assert continued.exit_code == 0


def test_cli_prompt_reads_operator_answer(obj, compose_files, init_script, fake_docker):
    init_script('memos')
    fake_docker.init_exit = 1
    del obj['confirm']

    result = invoke(['memos'], obj, input='y\n')
    assert result.exit_code == 0
    assert 'Continue with deployment anyway?' in result.output


def test_cli_catalog_file(obj, tmp_path, fake_docker):
    catalog = tmp_path / 'catalog.yml'
    catalog.write_text("services:\n  gitea:\n    display_name: Gitea\n    url: http://git.home.lab\n")
    obj['settings'] = obj['settings'].model_copy(update={'catalog_file': str(catalog)})

    result = invoke(['gitea', '--info'], obj)
    assert result.exit_code == 0
    assert 'Service: Gitea' in result.output


def test_cli_bad_environment_setting(obj, monkeypatch, tmp_path, fake_docker):
    monkeypatch.setenv('LABDEPLOY_ENV_FILE', str(tmp_path / 'missing.env'))
    monkeypatch.setenv('LABDEPLOY_POLL_ATTEMPTS', 'abc')
    del obj['settings']

    result = invoke(['wikijs'], obj)

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert 'Invalid settings' in result.stderr
    assert fake_docker.calls == []


def test_cli_unreadable_catalog_file(obj, tmp_path):
    catalog = tmp_path / 'catalog.yml'
    catalog.write_bytes(b"services:\n  gitea:\n    url: \xff\xfe\n")
    obj['settings'] = obj['settings'].model_copy(update={'catalog_file': str(catalog)})

    result = invoke(['gitea', '--info'], obj)
    assert result.exit_code == 1
    assert 'Cannot read catalog file' in result.stderr
