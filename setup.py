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


from setuptools import setup

setup(
    name='timedate',

    version='1.0.0',

    packages=['timedate'],

    scripts=[],

    package_data={},

    license='GNU General Public License v3',

    description='Async client for systemd-timedated',

    long_description=open('README.txt').read(),

    install_requires=[
        "dbus-fast >= 1.84.0",
        "click >= 8.1.3",
        "colorlog >= 4.1.0",
    ],

    extras_require={
        'test': [
            "pytest >= 6.2.4",
            "pytest-cov >= 2.11.1",
        ],
    },

    entry_points='''
        [console_scripts]
        timedate=timedate.timedate:main
    ''',
)
