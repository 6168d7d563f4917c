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

import pytest

from timedate import *
from timedate.util import setup_basic_logging

from fixtures import *

setup_basic_logging(level=logging.INFO)


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    yield loop

    loop.close()
    asyncio.set_event_loop(None)

@pytest.fixture
def run(loop):
    return loop.run_until_complete

@pytest.fixture
def bus():
    return FakeBus()

@pytest.fixture
def service(bus):
    return TimeDateService(bus=bus)

@pytest.fixture
def connected(service, run):
    return run(service.connect())

@pytest.fixture
def events(service):
    received = {TIMEZONE_CHANGE: [], NTP_CHANGE: []}

    service.register(TIMEZONE_CHANGE, received[TIMEZONE_CHANGE].append)
    service.register(NTP_CHANGE, received[NTP_CHANGE].append)

    return received
