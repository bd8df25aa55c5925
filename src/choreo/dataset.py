"""Sample URL resources and the panel tables derived from them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from choreo.panels.table import TablePanel


@dataclass(frozen=True, slots=True)
class UrlResource:
    domain: str
    path: str
    type: str
    ip: str
    resource: str


RESOURCES: tuple[UrlResource, ...] = (
    UrlResource('images.com', '/cats.png', 'content', '1.2.3.4', '😺'),
    UrlResource('videos.com', '/puppies.mp4', 'content', '1.2.3.5', '🐶'),
    UrlResource('ads.com', '/tracking.js', 'tracking', '6.6.6.1', '🙄'),
    UrlResource('tracking.com', '/pixel.png', 'tracking', '6.6.6.2', '🤬'),
)


def webpage_rows(resources: Sequence[UrlResource]) -> List[Dict[str, str]]:
    # One row per (domain, path); the page starts without the fetched resources.
    seen: Dict[tuple[str, str], Dict[str, str]] = {}
    for r in resources:
        seen.setdefault((r.domain, r.path), {'domain': r.domain, 'path': r.path, 'resource': ''})
    return list(seen.values())


def dns_rows(resources: Sequence[UrlResource]) -> List[Dict[str, str]]:
    domain_to_ip: Dict[str, str] = {}
    for r in resources:
        domain_to_ip[r.domain] = r.ip
    return [{'domain': domain, 'ip': ip} for domain, ip in domain_to_ip.items()]


def internet_rows(resources: Sequence[UrlResource]) -> List[Dict[str, str]]:
    # Grouped ip -> domain -> path, preserving first-seen order.
    ip_to_domain: Dict[str, Dict[str, Dict[str, str]]] = {}
    for r in resources:
        ip_to_domain.setdefault(r.ip, {}).setdefault(r.domain, {})[r.path] = r.resource
    rows = []
    for ip, domains in ip_to_domain.items():
        for domain, paths in domains.items():
            for path, resource in paths.items():
                rows.append({'ip': ip, 'domain': domain, 'path': path, 'resource': resource})
    return rows


def build_panels(resources: Sequence[UrlResource] = RESOURCES) -> List[TablePanel]:
    return [
        TablePanel(
            name='webpage', title='Webpage', columns=('domain', 'path', 'resource'),
            rows=webpage_rows(resources), flex=1.0, order=0,
        ),
        TablePanel(
            name='dns', title='DNS', columns=('domain', 'ip'),
            rows=dns_rows(resources), flex=0.5, order=1, show_header=False,
        ),
        TablePanel(
            name='internet', title='Internet', columns=('ip', 'domain', 'path', 'resource'),
            rows=internet_rows(resources), flex=1.0, order=2, headers={'ip': 'IP'},
        ),
        TablePanel(
            name='browser', title='Web Browser', columns=('domain', 'ip'),
            flex=None, order=3, headers={'ip': 'IP'},
        ),
    ]
