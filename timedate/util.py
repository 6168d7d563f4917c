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


from datetime import datetime, timedelta, timezone
import logging
import logging.handlers
import os

import colorlog


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

LOG_FORMAT = '%(levelname)s %(asctime)s.%(msecs)03d %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'


def datetime_to_microseconds(dt):
    # naive datetimes are local time
    if dt.tzinfo is None:
        dt = dt.astimezone()

    return (dt - EPOCH) // timedelta(microseconds=1)

def millis_to_microseconds(ms):
    return int(round(ms * 1000))

def truncate_to_millis(usec):
    # toward zero, same as an integer division in C
    if usec < 0:
        return -(-usec // 1000)

    return usec // 1000

def microseconds_to_datetime(usec):
    """ Epoch microseconds to an aware UTC datetime at millisecond resolution """
    return EPOCH + timedelta(milliseconds=truncate_to_millis(usec))

def to_microseconds(value):
    if isinstance(value, datetime):
        return datetime_to_microseconds(value)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected a datetime or epoch milliseconds, got {type(value).__name__}")

    return millis_to_microseconds(value)

def iso_to_datetime(iso):
    if iso.endswith('Z'):
        iso = iso[:-1] + '+00:00'

    return datetime.fromisoformat(iso)

def parse_time(s):
    """ Parse epoch milliseconds or an ISO-8601 date/time """
    try:
        return int(s)

    except ValueError:
        pass

    return iso_to_datetime(s)

def convert_string_to_bool(value):
    if value.lower() in ['true', 'on', 'yes', '1']:
        return True

    elif value.lower() in ['false', 'off', 'no', '0']:
        return False

    raise ValueError(value)


logging_initalized = False

def setup_basic_logging(console=True, filename=None, level=logging.DEBUG):
    global logging_initalized

    if logging_initalized:
        return

    logging_initalized = True

    root = logging.getLogger('')
    root.setLevel(level)

    if console:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = colorlog.ColoredFormatter('%(log_color)s' + LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if filename:
        # get path
        path, name = os.path.split(filename)

        if len(path) > 0:
            # if directory does not exist
            if not os.path.exists(path):
                os.makedirs(path)

        handler = logging.handlers.RotatingFileHandler(filename, maxBytes=32*1048576, backupCount=4)
        handler.setLevel(level)
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        handler.setFormatter(formatter)
        root.addHandler(handler)
