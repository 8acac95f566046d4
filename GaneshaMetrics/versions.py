# SPDX-License-Identifier: LGPL-3.0-or-later
#
# versions.py - build identity reported by the metrics status gauge.
#
# Copyright (C) 2024 nfs-ganesha-metrics contributors
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program.  If not, see <http://www.gnu.org/licenses/>.
#
#-*- coding: utf-8 -*-

from collections import namedtuple

__version__ = "1.0.0"

UNSET = "(unset)"

Versions = namedtuple('Versions',
                      ['version',
                       'commit_id'])


def make_versions(commit_id=None):
    return Versions(version=__version__, commit_id=commit_id or UNSET)
