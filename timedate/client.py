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


"""

Client for systemd-timedated (org.freedesktop.timedate1)

"""

import asyncio
import functools
import inspect
import logging

from dbus_fast.errors import DBusError

from .bus import SystemBus, PROPERTIES_INTERFACE, unpack_changed_properties
from . import util


TIMEDATE_SERVICE            = 'org.freedesktop.timedate1'
TIMEDATE_PATH               = '/org/freedesktop/timedate1'
TIMEDATE_INTERFACE          = 'org.freedesktop.timedate1'

STATE_DISCONNECTED          = 0
STATE_CONNECTING            = 1
STATE_CONNECTED             = 2

TIMEZONE_CHANGE             = 'timezoneChange'
NTP_CHANGE                  = 'NTPChange'

EVENTS                      = [TIMEZONE_CHANGE, NTP_CHANGE]

# SetTime/SetTimezone/SetNTP flags
RELATIVE                    = False
USER_INTERACTION            = False


class ServiceConnectionError(ConnectionError):
    def __init__(self, error):
        super().__init__(str(error))
        self.error = error

class RemoteCallError(Exception):
    def __init__(self, error, member=None):
        super().__init__(str(error))
        self.error = error
        self.member = member

    @property
    def error_name(self):
        if isinstance(self.error, DBusError):
            return self.error.type

        return None

class ServiceNotConnected(RemoteCallError):
    def __init__(self, error=TIMEDATE_SERVICE, member=None):
        super().__init__(error, member=member)


def _last_entry(changed, name):
    found = None
    for key, value in changed:
        if key == name:
            found = (value,)

    return found


class TimeDateService(object):
    def __init__(self, bus=None, timeout=None):
        self._bus = bus
        self.timeout = timeout

        self._state = STATE_DISCONNECTED
        self._connecting = None
        self._properties = None
        self._timedate = None

        self._callbacks = {event: [] for event in EVENTS}
        self._pending = set()

    def __str__(self):
        return f'TimeDateService({TIMEDATE_SERVICE})'

    @property
    def state(self):
        return self._state

    def is_connected(self):
        return self._state == STATE_CONNECTED

    @property
    def bus(self):
        if self._bus is None:
            self._bus = SystemBus(TIMEDATE_SERVICE)

        return self._bus

    async def connect(self):
        """Connects to the timedate daemon.

        Concurrent callers share a single attempt. Returns self.
        """
        if self._state == STATE_CONNECTED:
            return self

        if self._connecting is None:
            self._state = STATE_CONNECTING
            self._connecting = asyncio.ensure_future(self._handshake())

        # shield so a cancelled caller does not cancel the attempt for everyone else
        await asyncio.shield(self._connecting)

        return self

    async def _handshake(self):
        logging.debug(f"{self}: connecting")

        # change handler is only registered once both handles resolved
        resolve = asyncio.gather(
            self.bus.get_interface(TIMEDATE_PATH, PROPERTIES_INTERFACE),
            self.bus.get_interface(TIMEDATE_PATH, TIMEDATE_INTERFACE),
            return_exceptions=True)

        try:
            if self.timeout is None:
                results = await resolve

            else:
                results = await asyncio.wait_for(resolve, self.timeout)

        except asyncio.TimeoutError as e:
            results = [e]

        errors = [r for r in results if isinstance(r, BaseException)]

        if len(errors) > 0:
            e = errors[0]
            logging.error(f"{self}: connection failed: {e}")

            self._state = STATE_DISCONNECTED
            self._connecting = None
            self._properties = None
            self._timedate = None

            raise ServiceConnectionError(e) from e

        properties, timedate = results
        properties.on_properties_changed(self._on_properties_changed)

        self._properties = properties
        self._timedate = timedate
        self._state = STATE_CONNECTED

        logging.info(f"{self}: connected")

    async def _remote(self, coro, member):
        try:
            if self.timeout is None:
                return await coro

            return await asyncio.wait_for(coro, self.timeout)

        except Exception as e:
            logging.debug(f"{self}: {member} failed: {e}")
            raise RemoteCallError(e, member=member) from e

    @property
    def _service(self):
        if self._timedate is None:
            raise ServiceNotConnected(TIMEDATE_SERVICE)

        return self._timedate

    async def _get(self, name):
        service = self._service

        return await self._remote(service.get_property(name), name)

    async def _call(self, member, *args):
        service = self._service

        logging.debug(f"{self}: {member}{args}")

        return await self._remote(service.call(member, *args), member)

    async def get_time(self):
        """Current time of the remote clock as an aware UTC datetime"""
        usec = await self._get('TimeUSec')

        return util.microseconds_to_datetime(usec)

    async def get_timezone(self):
        return await self._get('Timezone')

    async def get_ntp_synchronized(self):
        """True when the clock is in sync with the upstream NTP server"""
        return await self._get('NTPSynchronized')

    async def get_can_ntp(self):
        """True if an NTP service is available"""
        return await self._get('CanNTP')

    async def get_ntp(self):
        """True when NTP sync is enabled"""
        return await self._get('NTP')

    async def set_time(self, time):
        """Sets the current time. Requires NTP to be turned off.

        time is a datetime or a number of milliseconds since the epoch.
        """
        usec = util.to_microseconds(time)

        return await self._call('SetTime', usec, RELATIVE, USER_INTERACTION)

    async def set_timezone(self, timezone):
        """Sets the timezone, e.g. "Europe/Amsterdam" """
        return await self._call('SetTimezone', timezone, USER_INTERACTION)

    async def set_ntp(self, use_ntp):
        return await self._call('SetNTP', bool(use_ntp), USER_INTERACTION)

    def register(self, event, callback):
        self._callbacks[event].append(callback)

    def unregister(self, event, callback):
        try:
            self._callbacks[event].remove(callback)

        except ValueError:
            pass

    def _emit(self, event, value):
        logging.debug(f"{self}: {event} -> {value}")

        for callback in list(self._callbacks[event]):
            try:
                result = callback(value)

            except Exception as e:
                logging.exception(f"{self}: {event} callback failed: {e}")
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(functools.partial(self._callback_done, event))

    def _callback_done(self, event, task):
        self._pending.discard(task)

        if task.cancelled():
            return

        e = task.exception()
        if e is not None:
            logging.exception(f"{self}: {event} callback failed: {e}", exc_info=e)

    def _on_properties_changed(self, interface_name, changed_properties, invalidated_properties):
        if interface_name != TIMEDATE_INTERFACE:
            return

        changed_properties = unpack_changed_properties(changed_properties)

        tz = _last_entry(changed_properties, 'Timezone')
        if tz is not None:
            self._emit(TIMEZONE_CHANGE, tz[0])

        ntp = _last_entry(changed_properties, 'NTP')
        if ntp is not None:
            self._emit(NTP_CHANGE, ntp[0])
