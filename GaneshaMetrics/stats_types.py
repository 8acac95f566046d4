# SPDX-License-Identifier: LGPL-3.0-or-later
#
# stats_types.py - records decoded from ganesha stats replies.
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

# NFS protocol revisions that carry per-client I/O stats, in reply order
NFS_PROTOCOLS = ('nfsv3', 'nfsv40', 'nfsv41', 'nfsv42')

# I/O categories of one protocol block, in reply order
IO_CATEGORIES = ('read', 'write', 'other', 'layout')


class Timespec(namedtuple('Timespec', ['seconds', 'nanoseconds'],
                           defaults=(0, 0))):
    __slots__ = ()

    def timestamp(self):
        return self.seconds + float(self.nanoseconds) / 1e9


# Status header of every stats reply
ReplyEnvelope = namedtuple('ReplyEnvelope',
                           ['status',
                            'error',
                            'timestamp'],
                           defaults=(False, "", Timespec()))

OperationCounters = namedtuple('OperationCounters',
                               ['nfsv3',
                                'nfsv40',
                                'nfsv41',
                                'nfsv42',
                                'mntv1',
                                'mntv3',
                                'nlmv4',
                                'rquota',
                                'plan9'],
                               defaults=(0,) * 9)

OperationsStats = namedtuple('OperationsStats',
                             ['envelope',
                              'ops'],
                             defaults=(ReplyEnvelope(), OperationCounters()))

IOCounters = namedtuple('IOCounters',
                        ['total',
                         'errors',
                         'transferred'],
                        defaults=(0, 0, 0))

IOCategoryBlock = namedtuple('IOCategoryBlock',
                             IO_CATEGORIES,
                             defaults=(IOCounters(),) * 4)

# One block per NFS protocol; 'available' names the protocols whose gate
# flag was set in the reply.
ClientIOStats = namedtuple('ClientIOStats',
                           NFS_PROTOCOLS + ('available',),
                           defaults=(IOCategoryBlock(),) * 4 + ((),))

ClientIOs = namedtuple('ClientIOs',
                       ['envelope',
                        'io'],
                       defaults=(ReplyEnvelope(), ClientIOStats()))

Export = namedtuple('Export',
                    ['ExportID',
                     'ExportPath',
                     'HasNFSv3',
                     'HasMNT',
                     'HasNLM4',
                     'HasRQUOTA',
                     'HasNFSv40',
                     'HasNFSv41',
                     'HasNFSv42',
                     'Has9P',
                     'LastTime'])

Client = namedtuple('Client',
                    ['ClientIP',
                     'HasNFSv3',
                     'HasMNT',
                     'HasNLM4',
                     'HasRQUOTA',
                     'HasNFSv40',
                     'HasNFSv41',
                     'HasNFSv42',
                     'Has9P',
                     'LastTime'])


def has_protocol(entity, protocol):
    '''
    Whether a listed export or client advertises stats for an NFS protocol.
    '''
    return {
        'nfsv3': entity.HasNFSv3,
        'nfsv40': entity.HasNFSv40,
        'nfsv41': entity.HasNFSv41,
        'nfsv42': entity.HasNFSv42,
    }[protocol]
