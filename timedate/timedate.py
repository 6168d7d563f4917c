# <license>
# 
#     This file is part of the Sapphire Operating System.
# 
#     Copyright (C) 2013-2022  Jeremy Billheimer
# 
# 
#     This program is free software: you can redistribute it and/or modify
#     it under the terms of the GNU General Public License as published by
#     the Free Software Foundation, either version 3 of the License, or
#     (at your option) any later version.
# 
#     This program is distributed in the hope that it will be useful,
#     but WITHOUT ANY WARRANTY; without even the implied warranty of
#     MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#     GNU General Public License for more details.
# 
#     You should have received a copy of the GNU General Public License
#     along with this program.  If not, see <http://www.gnu.org/licenses/>.
# 
# </license>


import sys
import json
import asyncio

import click

from .client import *
from .bus import SystemBus
from .util import setup_basic_logging, parse_time, convert_string_to_bool

NAME_COLOR = 'cyan'
VAL_COLOR = 'white'
EVENT_COLOR = 'magenta'
ERROR_COLOR = 'red'

SETTINGS_FILE = 'settings.json'


def load_settings(filename=SETTINGS_FILE):
    try:
        with open(filename, 'r') as f:
            return json.loads(f.read())

    except FileNotFoundError:
        return {}

    except ValueError as e:
        raise click.ClickException(f"Invalid settings file {filename}: {e}")

def echo_value(name, value):
    s = '%-16s %s' % (click.style('%s:' % (name), fg=NAME_COLOR), click.style('%s' % (value), fg=VAL_COLOR))

    click.echo(s)

async def print_status(service, *args):
    date, tz, can_ntp, ntp, ntp_sync = await asyncio.gather(
        service.get_time(),
        service.get_timezone(),
        service.get_can_ntp(),
        service.get_ntp(),
        service.get_ntp_synchronized())

    if len(args) > 0:
        click.echo(click.style(' '.join('%s' % (a) for a in args), fg=EVENT_COLOR))

    echo_value('Date/time', date.astimezone().isoformat(sep=' ', timespec='milliseconds'))
    echo_value('Timezone', tz)
    echo_value('NTP available', can_ntp)
    echo_value('NTP enabled', ntp)
    echo_value('NTP in sync', ntp_sync)
    click.echo('')


def run(ctx, coro_fn):
    """Connect, run coro_fn(service) and close the bus"""
    async def _run():
        bus = ctx.obj['BUS_FACTORY']()
        service = TimeDateService(bus=bus, timeout=ctx.obj['TIMEOUT'])

        try:
            await service.connect()
            return await coro_fn(service)

        finally:
            bus.close()

    try:
        return asyncio.run(_run())

    except (ServiceConnectionError, RemoteCallError, ServiceNotConnected) as e:
        click.echo(click.style('Error: %s' % (e), fg=ERROR_COLOR), err=True)
        sys.exit(1)

    except KeyboardInterrupt:
        pass


@click.group()
@click.option('--settings', '-s', default=SETTINGS_FILE, help="Settings file")
@click.option('--timeout', '-t', default=None, type=float, help="Timeout for remote calls, in seconds")
@click.option('--bus-address', '-b', default=None, help="D-Bus address, defaults to the system bus")
@click.option('--verbose', '-v', default=False, is_flag=True, help="Verbose logging")
@click.pass_context
def cli(ctx, settings, timeout, bus_address, verbose):
    """systemd-timedated CLI"""

    ctx.ensure_object(dict)

    file_settings = load_settings(settings)

    if timeout is None:
        timeout = file_settings.get('timeout')

    if bus_address is None:
        bus_address = file_settings.get('bus_address')

    if verbose:
        setup_basic_logging(filename=file_settings.get('log_file'))

    ctx.obj['TIMEOUT'] = timeout
    ctx.obj.setdefault('BUS_FACTORY', lambda: SystemBus(TIMEDATE_SERVICE, bus_address=bus_address))


@cli.command()
@click.pass_context
def status(ctx):
    """Print time, timezone and NTP state"""
    run(ctx, print_status)


@cli.command('set-time')
@click.argument('value')
@click.pass_context
def set_time(ctx, value):
    """Set time from an ISO-8601 date/time or epoch milliseconds. Requires NTP off."""
    try:
        time = parse_time(value)

    except ValueError:
        raise click.BadParameter(value, param_hint='VALUE')

    async def _set(service):
        await service.set_time(time)
        await print_status(service)

    run(ctx, _set)


@cli.command('set-timezone')
@click.argument('timezone')
@click.pass_context
def set_timezone(ctx, timezone):
    """Set timezone, e.g. Europe/Amsterdam"""
    async def _set(service):
        await service.set_timezone(timezone)
        await print_status(service)

    run(ctx, _set)


@cli.command('set-ntp')
@click.argument('state')
@click.pass_context
def set_ntp(ctx, state):
    """Enable (on) or disable (off) NTP"""
    try:
        use_ntp = convert_string_to_bool(state)

    except ValueError:
        raise click.BadParameter(state, param_hint='STATE')

    async def _set(service):
        await service.set_ntp(use_ntp)
        await print_status(service)

    run(ctx, _set)


@cli.command()
@click.pass_context
def monitor(ctx):
    """Print status and re-print it on every timezone or NTP change"""
    async def _monitor(service):
        service.register(TIMEZONE_CHANGE, lambda tz: print_status(service, 'Timezone changed:', tz))
        service.register(NTP_CHANGE, lambda ntp: print_status(service, 'NTP changed:', ntp))

        await print_status(service, 'connected...')

        # run until interrupted
        await asyncio.Event().wait()

    run(ctx, _monitor)


def main():
    cli(obj={})
