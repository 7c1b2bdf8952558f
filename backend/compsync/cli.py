import logging

import click

from compsync.client.clock import ClockCalibrator
from compsync.client.display import DisplayFrame, DisplaySession
from compsync.client.operator import ControlClient, OperatorConsole
from compsync.client.subscription import SocketRoundSubscription
from compsync.client.tones import ToneEmitter
from compsync.services.rounds.cues import AudioCueEngine
from compsync.services.rounds.descriptor import RoundConfig
from compsync.services.rounds.recurring import RecurringController
from compsync.timeutil import hms_to_seconds


server_option = click.option(
    '--server', envvar='COMPSYNC_SERVER', default='http://localhost:5000', show_default=True,
    help='Base URL of the timer server.',
)
pin_option = click.option('--pin', envvar='COMPSYNC_ADMIN_PIN', default=None, help='Operator PIN.')


def _print_frame():
    last = {}

    def show(frame: DisplayFrame) -> None:
        # Only redraw when the visible text changes
        key = (frame.label, frame.text)
        if last.get('key') != key:
            last['key'] = key
            click.echo(f"{frame.label:>9} {frame.text}")
    return show


def _duration_ms(minutes: int, seconds: int) -> int:
    return hms_to_seconds(0, minutes, seconds) * 1000


def _session(server: str, room: str, mute: bool, recurring=None) -> DisplaySession:
    base = server.rstrip('/')
    return DisplaySession(
        room,
        SocketRoundSubscription(base),
        calibrator=ClockCalibrator(f"{base}/api/time"),
        cue_engine=AudioCueEngine(ToneEmitter(), muted=mute),
        recurring=recurring,
        on_frame=_print_frame(),
    )


def _run(session: DisplaySession) -> None:
    session.start()
    try:
        session.run()
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Log debug output.')
def cli(verbose):
    """Synchronized competition countdown timer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@cli.command()
@click.argument('room')
@server_option
@click.option('--mute', is_flag=True, help='Suppress audio cues.')
def display(room, server, mute):
    """Follow ROOM and show its countdown."""
    _run(_session(server, room, mute))


@cli.command()
@click.argument('room')
@server_option
@pin_option
@click.option('--climb-min', default=5, show_default=True, type=click.IntRange(min=0))
@click.option('--climb-sec', default=0, show_default=True, type=click.IntRange(min=0))
@click.option('--prep-sec', default=0, show_default=True, type=click.IntRange(min=0),
              help='Preparation time in seconds; 0 disables the phase.')
@click.option('--mute', is_flag=True, help='Suppress audio cues.')
def operate(room, server, pin, climb_min, climb_sec, prep_sec, mute):
    """Start ROOM and restart it every time it runs out."""
    config = RoundConfig(
        climbing_duration_ms=_duration_ms(climb_min, climb_sec),
        preparation_duration_ms=prep_sec * 1000,
        preparation_enabled=prep_sec > 0,
        recurring=True,
    )
    console = OperatorConsole(ControlClient(server, pin), room_id=room, config=config)
    if not console.start():
        raise click.ClickException(console.status)
    click.echo(f"{console.status} for {console.room_id}, scheduled {console.last_start_time}")
    _run(_session(server, room, mute, recurring=RecurringController(console.start)))


@cli.command()
@click.argument('room')
@server_option
@pin_option
@click.option('--climb-min', default=5, show_default=True, type=click.IntRange(min=0))
@click.option('--climb-sec', default=0, show_default=True, type=click.IntRange(min=0))
@click.option('--prep-sec', default=0, show_default=True, type=click.IntRange(min=0),
              help='Preparation time in seconds; 0 disables the phase.')
@click.option('--recurring', is_flag=True, help='Let an operator session restart the round when it ends.')
def start(room, server, pin, climb_min, climb_sec, prep_sec, recurring):
    """Schedule a new round in ROOM."""
    console = OperatorConsole(ControlClient(server, pin), room_id=room)
    ok = console.start(RoundConfig(
        climbing_duration_ms=_duration_ms(climb_min, climb_sec),
        preparation_duration_ms=prep_sec * 1000,
        preparation_enabled=prep_sec > 0,
        recurring=recurring,
    ))
    if not ok:
        raise click.ClickException(console.status)
    click.echo(f"{console.status}, starts at {console.last_start_time}")


@cli.command()
@click.argument('room')
@server_option
@pin_option
def stop(room, server, pin):
    """Stop the round in ROOM."""
    console = OperatorConsole(ControlClient(server, pin), room_id=room)
    if not console.stop():
        raise click.ClickException(console.status)
    click.echo(console.status)


@cli.command()
@click.argument('room')
@server_option
@pin_option
def reset(room, server, pin):
    """Clear ROOM back to idle."""
    console = OperatorConsole(ControlClient(server, pin), room_id=room)
    if not console.reset():
        raise click.ClickException(console.status)
    click.echo(console.status)


def main():
    cli()
