import os
import pytest

from ecto.application import Application, ApplicationController
from ecto.errors import UnknownApplicationError


@pytest.fixture
def apps():
    events = []
    ctrl = ApplicationController()
    ctrl.register(Application('db', start=lambda: events.append('start db'), stop=lambda: events.append('stop db')))
    ctrl.register(Application('web', applications=['db'], start=lambda: events.append('start web')))
    return ctrl, events


def test_ensure_all_started_starts_dependencies_first(apps):
    ctrl, events = apps

    assert ctrl.ensure_all_started('web') == ['db', 'web']
    assert events == ['start db', 'start web']
    assert ctrl.started_applications() == ['db', 'web']


def test_ensure_all_started_is_idempotent(apps):
    ctrl, events = apps
    ctrl.ensure_all_started('db')

    assert ctrl.ensure_all_started('web') == ['web']
    assert ctrl.ensure_all_started('web') == []
    assert events == ['start db', 'start web']


def test_ensure_all_started_records_restart_type(apps):
    ctrl, _ = apps
    ctrl.ensure_all_started('db', 'permanent')
    assert ctrl.restart_type('db') == 'permanent'

    with pytest.raises(ValueError):
        ctrl.ensure_all_started('web', 'forever')


def test_ensure_all_started_unknown_application(apps):
    ctrl, _ = apps
    with pytest.raises(UnknownApplicationError):
        ctrl.ensure_all_started('nope')
    with pytest.raises(LookupError):
        ctrl.ensure_all_started('nope')


def test_circular_dependencies_are_rejected():
    ctrl = ApplicationController()
    ctrl.register(Application('a', applications=['b']))
    ctrl.register(Application('b', applications=['a']))

    with pytest.raises(ValueError, match='circular'):
        ctrl.ensure_all_started('a')


def test_stop_runs_callback_once(apps):
    ctrl, events = apps
    ctrl.ensure_all_started('db')

    ctrl.stop('db')
    ctrl.stop('db')

    assert events == ['start db', 'stop db']
    assert not ctrl.is_started('db')


def test_env_roundtrip_and_defaults():
    ctrl = ApplicationController()
    ctrl.register(Application('my_app', env={'pool_size': 10, 'ecto_repos': ['a.Repo']}))
    ctrl.put_env('my_app', 'pool_size', 2)

    assert ctrl.get_env('my_app', 'pool_size') == 2
    assert ctrl.get_env('my_app', 'ecto_repos') == ['a.Repo']
    assert ctrl.get_env('my_app', 'missing', 'default') == 'default'
    assert ctrl.get_env(None, 'ecto_repos') is None

    # re-registering keeps values that were already configured
    ctrl.register(Application('my_app', env={'pool_size': 10}))
    assert ctrl.get_env('my_app', 'pool_size') == 2

    ctrl.delete_env('my_app', 'pool_size')
    assert ctrl.get_env('my_app', 'pool_size') is None


def test_app_dir_uses_registered_path(tmp_path):
    ctrl = ApplicationController()
    ctrl.register(Application('my_app', path=str(tmp_path)))
    assert ctrl.app_dir('my_app', 'priv', 'repo') == os.path.join(str(tmp_path), 'priv', 'repo')


def test_app_dir_falls_back_to_installed_package():
    ctrl = ApplicationController()
    path = ctrl.app_dir('ecto', 'priv')
    assert path.endswith(os.path.join('ecto', 'priv'))


def test_app_dir_unknown_application():
    ctrl = ApplicationController()
    with pytest.raises(UnknownApplicationError):
        ctrl.app_dir('no_such_application_here')
