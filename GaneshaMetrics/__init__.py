# SPDX-License-Identifier: LGPL-3.0-or-later
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
# Ganesha DBus stats to Prometheus classes

__all__ = ["bus",
           "collectors",
           "config",
           "decoder",
           "errors",
           "exporter",
           "listing",
           "mappers",
           "projection",
           "stats_types",
           "versions"]
