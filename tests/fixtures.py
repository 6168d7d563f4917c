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


import asyncio

from dbus_fast import Variant
from dbus_fast.errors import DBusError

from timedate import *
from timedate.bus import PROPERTIES_INTERFACE


TIMEZONES = ['UTC', 'America/Vancouver', 'Europe/Amsterdam', 'Europe/Berlin']


class FakeProperties(object):
    def __init__(self):
        self.handlers = []
        self.name = PROPERTIES_INTERFACE

    def on_properties_changed(self, handler):
        self.handlers.append(handler)

    def emit(self, interface_name, changed, invalidated=[]):
        for handler in list(self.handlers):
            handler(interface_name, changed, invalidated)


class FakeTimeDate(object):
    """Stand-in for timedated, with the same rules for SetTime"""
    DEFAULT_TZ = 'America/Vancouver'
    DEFAULT_NTP = True

    def __init__(self, properties, time_usec=1500000000123456):
        self.name = TIMEDATE_INTERFACE
        self.properties = properties
        self.calls = []

        self.time_usec = time_usec
        self.tz = FakeTimeDate.DEFAULT_TZ
        self.ntp = FakeTimeDate.DEFAULT_NTP
        self.can_ntp = True
        self.ntp_synchronized = False

    async def get_property(self, name):
        values = {
            'TimeUSec': self.time_usec,
            'Timezone': self.tz,
            'NTP': self.ntp,
            'CanNTP': self.can_ntp,
            'NTPSynchronized': self.ntp_synchronized,
        }

        try:
            return values[name]

        except KeyError:
            raise DBusError('org.freedesktop.DBus.Error.UnknownProperty', f'Unknown property {name}')

    async def call(self, member, *args):
        self.calls.append((member, args))

        return getattr(self, member)(*args)

    def SetTime(self, usec_utc, relative, interactive):
        if self.ntp:
            raise DBusError('org.freedesktop.timedate1.AutomaticTimeSyncEnabled', 'Automatic time synchronization is enabled')

        self.time_usec = usec_utc

    def SetTimezone(self, tz, interactive):
        if tz not in TIMEZONES:
            raise DBusError('org.freedesktop.DBus.Error.InvalidArgs', f'Invalid or not installed time zone \'{tz}\'')

        self.tz = tz
        self.properties.emit(TIMEDATE_INTERFACE, {'Timezone': Variant('s', tz)})

    def SetNTP(self, use_ntp, interactive):
        self.ntp = use_ntp
        self.properties.emit(TIMEDATE_INTERFACE, {'NTP': Variant('b', use_ntp)})


class FakeBus(object):
    def __init__(self, fail=None, gate=None):
        self.fail = fail
        self.gate = gate
        self.handshakes = 0
        self.closed = False

        self.properties = FakeProperties()
        self.timedate = FakeTimeDate(self.properties)

    async def get_interface(self, path, interface):
        assert path == TIMEDATE_PATH

        if interface == PROPERTIES_INTERFACE:
            self.handshakes += 1

        if self.gate is not None:
            await self.gate.wait()

        # let the other resolution get going
        await asyncio.sleep(0)

        if self.fail == interface:
            raise DBusError('org.freedesktop.DBus.Error.ServiceUnknown', 'The name is not activatable')

        if interface == PROPERTIES_INTERFACE:
            return self.properties

        elif interface == TIMEDATE_INTERFACE:
            return self.timedate

        raise DBusError('org.freedesktop.DBus.Error.UnknownInterface', f'Unknown interface {interface}')

    def close(self):
        self.closed = True
