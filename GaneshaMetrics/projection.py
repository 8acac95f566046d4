# SPDX-License-Identifier: LGPL-3.0-or-later
#
# projection.py - turn decoded exports/clients and their stats into points.
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

from collections import OrderedDict, namedtuple

from GaneshaMetrics.stats_types import NFS_PROTOCOLS, has_protocol

NAMESPACE = "nfs_ganesha"

Descriptor = namedtuple('Descriptor',
                        ['name',
                         'documentation',
                         'labels'])

Point = namedtuple('Point',
                   ['descriptor',
                    'labels',
                    'value'])


def collector_name(subsystem, name):
    return "_".join(part for part in (NAMESPACE, subsystem, name) if part)


PROTOCOL_NAMES = {'nfsv3': 'NFSv3',
                  'nfsv40': 'NFSv4.0',
                  'nfsv41': 'NFSv4.1',
                  'nfsv42': 'NFSv4.2',
                  'mntv1': 'MNTv1',
                  'mntv3': 'MNTv3',
                  'nlmv4': 'NLMv4',
                  'rquota': 'RQUOTA',
                  'plan9': '9P'}

# Layout ops only exist from NFSv4.1 on
PROTOCOL_CATEGORIES = {'nfsv3': ('read', 'write', 'other'),
                       'nfsv40': ('read', 'write', 'other'),
                       'nfsv41': ('read', 'write', 'other', 'layout'),
                       'nfsv42': ('read', 'write', 'other', 'layout')}

# Layout structs carry delays, not bytes, in their third field
CATEGORY_KINDS = {'read': ('total', 'errors', 'transferred'),
                  'write': ('total', 'errors', 'transferred'),
                  'other': ('total', 'errors', 'transferred'),
                  'layout': ('total', 'errors')}

#
# versions
#
VERSIONS_STATUS = Descriptor(collector_name("metrics", "status"),
                             "Current metrics-collector status and versions",
                             ('version', 'commitid'))


def project_versions(versions):
    status = 1 if versions.version else 0
    return [Point(VERSIONS_STATUS,
                  (versions.version, versions.commit_id),
                  float(status))]

#
# exports
#
EXPORT_LABELS = ('exportid', 'path')

EXPORT_COUNT = Descriptor(collector_name("export", "count"),
                          "Total number of NFS exports", ())

EXPORT_OPS = OrderedDict(
    (field, Descriptor(collector_name("export", "ops_" + label),
                       PROTOCOL_NAMES[field] + " operations",
                       EXPORT_LABELS))
    for field, label in (('nfsv3', 'nfsv3'),
                         ('nfsv40', 'nfsv40'),
                         ('nfsv41', 'nfsv41'),
                         ('nfsv42', 'nfsv42'),
                         ('mntv1', 'mntv1'),
                         ('mntv3', 'mntv3'),
                         ('nlmv4', 'nlmv4'),
                         ('rquota', 'rquota'),
                         ('plan9', '9p')))

EXPORT_DESCRIPTORS = [EXPORT_COUNT] + list(EXPORT_OPS.values())


def project_exports(exports, stats):
    '''
    Points for one exports scrape.

    exports is the full ShowExports listing; stats maps an export id to the
    OperationsStats of the exports whose GetTotalOPS reply was present. The
    count always reflects the listing, whatever happened to the stats calls.
    An export id listed twice only gets the points of its first entry.
    '''
    points = [Point(EXPORT_COUNT, (), float(len(exports)))]
    seen = set()
    for export in exports:
        export_stats = stats.get(export.ExportID)
        if export_stats is None or export.ExportID in seen:
            continue
        seen.add(export.ExportID)
        labels = (str(export.ExportID), export.ExportPath)
        for field, descriptor in EXPORT_OPS.items():
            points.append(Point(descriptor, labels,
                                float(getattr(export_stats.ops, field))))
    return points

#
# clients
#
CLIENT_LABELS = ('ipaddr',)

CLIENT_COUNT = Descriptor(collector_name("client", "count"),
                          "Total number of NFS clients", ())

CLIENT_IO = OrderedDict(
    ((proto, category, kind),
     Descriptor(collector_name("client",
                               "%s_%s_%s" % (proto, category, kind)),
                "%s %s %s" % (PROTOCOL_NAMES[proto], category.upper(), kind),
                CLIENT_LABELS))
    for proto in NFS_PROTOCOLS
    for category in PROTOCOL_CATEGORIES[proto]
    for kind in CATEGORY_KINDS[category])

CLIENT_DESCRIPTORS = [CLIENT_COUNT] + list(CLIENT_IO.values())


def project_clients(clients, ios):
    '''
    Points for one clients scrape.

    ios maps a client address to the ClientIOs of the clients whose
    GetClientIOops reply was present. A protocol is projected only when the
    listing advertises it for the client and the reply carried its block.
    An address listed twice only gets the points of its first entry.
    '''
    points = [Point(CLIENT_COUNT, (), float(len(clients)))]
    seen = set()
    for client in clients:
        client_ios = ios.get(client.ClientIP)
        if client_ios is None or client.ClientIP in seen:
            continue
        seen.add(client.ClientIP)
        labels = (client.ClientIP,)
        for proto in NFS_PROTOCOLS:
            if not has_protocol(client, proto):
                continue
            if proto not in client_ios.io.available:
                continue
            block = getattr(client_ios.io, proto)
            for category in PROTOCOL_CATEGORIES[proto]:
                counters = getattr(block, category)
                for kind in CATEGORY_KINDS[category]:
                    points.append(Point(CLIENT_IO[(proto, category, kind)],
                                        labels,
                                        float(getattr(counters, kind))))
    return points
