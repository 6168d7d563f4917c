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
import logging

from dbus_fast import BusType, Message, MessageType, Variant
from dbus_fast.errors import DBusError
from dbus_fast.aio import MessageBus


PROPERTIES_INTERFACE = 'org.freedesktop.DBus.Properties'

def unpack_variant(value):
    while isinstance(value, Variant):
        value = value.value

    return value

def unpack_changed_properties(changed):
    if isinstance(changed, dict):
        changed = changed.items()

    return [(name, unpack_variant(value)) for name, value in changed]


class RemoteInterface(object):
    """Handle on one interface of a remote object.

    Properties are read through org.freedesktop.DBus.Properties.Get on the
    same object, methods are called by their D-Bus member name.
    """
    def __init__(self, name, interface, properties):
        self.name = name
        self._interface = interface
        self._properties = properties

    def __str__(self):
        return f'RemoteInterface({self.name})'

    async def get_property(self, name):
        value = await self._properties.call_get(self.name, name)

        return unpack_variant(value)

    def _method(self, member):
        for method in self._interface.introspection.methods:
            if method.name == member:
                return method

        raise DBusError('org.freedesktop.DBus.Error.UnknownMethod', f'No method {member} on {self.name}')

    async def call(self, member, *args):
        method = self._method(member)

        reply = await self._interface.bus.call(Message(
            destination=self._interface.bus_name,
            path=self._interface.path,
            interface=self.name,
            member=member,
            signature=method.in_signature,
            body=list(args)))

        if reply.message_type == MessageType.ERROR:
            text = reply.body[0] if len(reply.body) > 0 else ''
            raise DBusError(reply.error_name, text, reply=reply)

        if len(reply.body) == 0:
            return None

        if len(reply.body) == 1:
            return reply.body[0]

        return reply.body


class PropertiesInterface(RemoteInterface):
    def __init__(self, interface):
        super().__init__(PROPERTIES_INTERFACE, interface, interface)

    def on_properties_changed(self, handler):
        def _handler(interface_name, changed_properties, invalidated_properties):
            handler(interface_name, unpack_changed_properties(changed_properties), invalidated_properties)

        self._interface.on_properties_changed(_handler)


class SystemBus(object):
    """Lazily connected D-Bus connection bound to one well-known name."""
    def __init__(self, service, bus_address=None, bus_type=BusType.SYSTEM):
        self.service = service
        self.bus_address = bus_address
        self.bus_type = bus_type

        self._bus = None
        self._objects = {}
        self._lock = asyncio.Lock()

    def __str__(self):
        if self.bus_address is not None:
            return f'SystemBus({self.service} @ {self.bus_address})'

        return f'SystemBus({self.service})'

    async def _connect(self):
        if self._bus is None:
            logging.debug(f"{self}: connecting")
            self._bus = await MessageBus(bus_address=self.bus_address, bus_type=self.bus_type).connect()

        return self._bus

    async def _get_object(self, path):
        async with self._lock:
            bus = await self._connect()

            if path not in self._objects:
                introspection = await bus.introspect(self.service, path)
                self._objects[path] = bus.get_proxy_object(self.service, path, introspection)

            return self._objects[path]

    async def get_interface(self, path, interface):
        obj = await self._get_object(path)
        properties = obj.get_interface(PROPERTIES_INTERFACE)

        if interface == PROPERTIES_INTERFACE:
            return PropertiesInterface(properties)

        return RemoteInterface(interface, obj.get_interface(interface), properties)

    def close(self):
        if self._bus is None:
            return

        logging.debug(f"{self}: disconnecting")
        self._bus.disconnect()
        self._bus = None
        self._objects = {}
