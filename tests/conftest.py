"""
Shared test fixtures: Flask app with in-memory SQLite, service container,
fake clock and fake timers for the debounced pool check.
"""

import pytest
from app import create_app
from models import db, Game


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeTimer:
    """threading.Timer stand-in that only fires when told to"""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = list(args or [])
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.function(*self.args, **self.kwargs)


class FakeTimerFactory:
    """Creates FakeTimers and remembers them"""

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args, kwargs)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def fire_pending(self):
        fired = 0
        for timer in self.pending():
            timer.fire()
            fired += 1
        return fired


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def app(clock, timers):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'DEBOUNCE_CLOCK': clock,
        'DEBOUNCE_TIMER_FACTORY': timers,
        'STORE_RETRY_DELAY_SECONDS': 0,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        app.extensions['bracketflow'].reset()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def container(app):
    return app.extensions['bracketflow']


@pytest.fixture
def pool_service(container):
    return container.get_service('pool')


@pytest.fixture
def bracket_service(container):
    return container.get_service('bracket')


@pytest.fixture
def advancement_service(container):
    return container.get_service('advancement')


@pytest.fixture
def standings_service(container):
    return container.get_service('standings')


@pytest.fixture
def seeding_service(container):
    return container.get_service('seeding')


@pytest.fixture
def game_service(container):
    return container.get_service('game')


@pytest.fixture
def orchestrator(container):
    return container.get_service('completion')


@pytest.fixture
def make_game(app):
    """Factory persisting a free-standing game (no pool, no bracket)."""
    def _make_game(team_a="TBD", team_b="TBD", division_id="div-1", **kwargs):
        game = Game(tournament_id=kwargs.pop('tournament_id', 'tour-1'), division_id=division_id,
                    team_a=team_a, team_b=team_b, **kwargs)
        db.session.add(game)
        db.session.commit()
        return game
    return _make_game
