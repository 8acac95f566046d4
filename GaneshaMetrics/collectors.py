# SPDX-License-Identifier: LGPL-3.0-or-later
#
# collectors.py - Prometheus collectors for ganesha exports and clients.
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

import enum
import logging

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from GaneshaMetrics import listing, mappers, projection
from GaneshaMetrics.errors import BusConnectionError, CallError, ProtocolError


class ScrapeState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTING = "listing"
    FETCHING = "fetching"
    PROJECTING = "projecting"
    CLOSED = "closed"


class Scrape():
    '''
    One collection cycle: connect, list the entities, fetch the stats of
    each of them, project the lot into points, and close the connection.

    A connection failure, or a failed listing, propagates to the caller.
    A failed stats call only drops the entity it was made for. An entity
    listed more than once is fetched once.
    '''
    def __init__(self, opener, name):
        self.opener = opener
        self.name = name
        self.state = ScrapeState.IDLE
        self.skipped = []

    def _enter(self, state):
        logging.debug("%s scrape: %s -> %s", self.name, self.state.value,
                      state.value)
        self.state = state

    def run(self, lister, fetcher, projector, key):
        conn = None
        try:
            self._enter(ScrapeState.CONNECTING)
            conn = self.opener()

            self._enter(ScrapeState.LISTING)
            _, entities = lister(conn)

            self._enter(ScrapeState.FETCHING)
            stats = {}
            seen = set()
            for entity in entities:
                ident = key(entity)
                if ident in seen:
                    logging.debug("%s %s listed twice", self.name, ident)
                    continue
                seen.add(ident)
                try:
                    result, present = fetcher(conn, ident)
                except (CallError, ProtocolError) as ex:
                    logging.warning("%s %s skipped: %s", self.name, ident, ex)
                    self.skipped.append(ident)
                    continue
                if not present:
                    logging.debug("%s %s has no stats: %s", self.name, ident,
                                  result.envelope.error)
                    continue
                stats[ident] = result

            self._enter(ScrapeState.PROJECTING)
            return projector(entities, stats)
        finally:
            if conn is not None:
                conn.close()
            self._enter(ScrapeState.CLOSED)


def scrape_exports(opener):
    scrape = Scrape(opener, "export")
    return scrape.run(listing.list_exports,
                      mappers.get_total_ops,
                      projection.project_exports,
                      lambda export: export.ExportID)


def scrape_clients(opener):
    scrape = Scrape(opener, "client")
    return scrape.run(listing.list_clients,
                      mappers.get_client_io_counters,
                      projection.project_clients,
                      lambda client: client.ClientIP)


def metric_families(descriptors, points, with_empty=False):
    families = {}
    for descriptor in descriptors:
        families[descriptor] = GaugeMetricFamily(descriptor.name,
                                                 descriptor.documentation,
                                                 labels=descriptor.labels)
    populated = set()
    for point in points:
        families[point.descriptor].add_metric(point.labels, point.value)
        populated.add(point.descriptor)

    for descriptor in descriptors:
        if with_empty or descriptor in populated:
            yield families[descriptor]


class VersionsCollector(Collector):
    '''
    nfs_ganesha_metrics_status: 1 with the version labels when the build
    version is known.
    '''
    descriptors = [projection.VERSIONS_STATUS]

    def __init__(self, versions):
        self.versions = versions

    def describe(self):
        return metric_families(self.descriptors, [], with_empty=True)

    def collect(self):
        points = projection.project_versions(self.versions)
        return metric_families(self.descriptors, points)


# Information on NFS-Ganesha exports as Prometheus metrics
class ExportsCollector(Collector):
    descriptors = projection.EXPORT_DESCRIPTORS

    def __init__(self, opener):
        self.opener = opener

    def describe(self):
        return metric_families(self.descriptors, [], with_empty=True)

    def collect(self):
        try:
            points = scrape_exports(self.opener)
        except BusConnectionError as ex:
            logging.error("Collect exports stats: %s", ex)
            return
        except (CallError, ProtocolError) as ex:
            logging.error("GetExports: %s", ex)
            return
        yield from metric_families(self.descriptors, points)


# Information on NFS-Ganesha clients as Prometheus metrics
class ClientsCollector(Collector):
    descriptors = projection.CLIENT_DESCRIPTORS

    def __init__(self, opener):
        self.opener = opener

    def describe(self):
        return metric_families(self.descriptors, [], with_empty=True)

    def collect(self):
        try:
            points = scrape_clients(self.opener)
        except BusConnectionError as ex:
            logging.error("Collect clients stats: %s", ex)
            return
        except (CallError, ProtocolError) as ex:
            logging.error("GetClients: %s", ex)
            return
        yield from metric_families(self.descriptors, points)
