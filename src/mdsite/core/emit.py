"""Feed and manifest projections over the final set of document records"""

import json
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, Optional
from xml.etree.ElementTree import Element, SubElement, register_namespace, tostring

from mdsite.config import FeedOptions, ManifestOptions, SiteMetadata
from mdsite.core.errors import EmptyCollection
from mdsite.core.models import DocumentRecord, Feed, FeedEntry


CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
ATOM_NS = "http://www.w3.org/2005/Atom"
GENERATOR = "mdsite"


def order_records(records: Iterable[DocumentRecord]) -> list[DocumentRecord]:
    """Return records newest first; ties keep a stable collection/slug order."""
    by_identity = sorted(records, key=lambda r: (r.collection, r.slug))
    return sorted(by_identity, key=lambda r: r.derived.timestamp, reverse=True)


def _absolute(site_url: str, path: str) -> str:
    return site_url.rstrip("/") + "/" + path.lstrip("/")


def build_feed(
    records: Iterable[DocumentRecord],
    site: SiteMetadata,
    options: Optional[FeedOptions] = None,
    ) -> Feed:
    """Project records into a feed ordered by timestamp, descending.

    Raises EmptyCollection when options.require_entries is set and there are no records.
    """
    options = options or FeedOptions()
    ordered = order_records(records)
    if not ordered and options.require_entries:
        raise EmptyCollection("Feed requires at least one entry but no document was built")
    entries = [
        FeedEntry(
            id=_absolute(site.site_url, r.slug),
            title=r.frontmatter.get("title", r.slug),
            link=_absolute(site.site_url, r.slug),
            date=r.derived.timestamp,
            summary=r.derived.excerpt,
            content=r.html,
            categories=r.derived.tags,
        )
        for r in ordered
    ]
    return Feed(
        title=options.title or site.title,
        link=site.site_url,
        description=site.description,
        feed_url=_absolute(site.site_url, options.path),
        updated=entries[0].date if entries else None,
        entries=entries,
    )


def feed_to_xml_string(feed: Feed, now: Optional[datetime] = None) -> str:
    """Serialize a Feed to an RSS 2.0 XML string."""
    register_namespace("content", CONTENT_NS)
    register_namespace("atom", ATOM_NS)

    root = Element("rss", attrib={"version": "2.0"})
    channel = SubElement(root, "channel")
    SubElement(channel, "title").text = feed.title
    SubElement(channel, "link").text = feed.link
    SubElement(channel, "description").text = feed.description
    SubElement(channel, f"{{{ATOM_NS}}}link", attrib={"href": feed.feed_url, "rel": "self", "type": "application/rss+xml"})
    SubElement(channel, "generator").text = GENERATOR
    built = feed.updated or now or datetime.now(timezone.utc)
    SubElement(channel, "lastBuildDate").text = format_datetime(built)

    for entry in feed.entries:
        item = SubElement(channel, "item")
        SubElement(item, "title").text = entry.title
        SubElement(item, "description").text = entry.summary
        SubElement(item, "link").text = entry.link
        SubElement(item, "guid", attrib={"isPermaLink": "false"}).text = entry.id
        SubElement(item, "pubDate").text = format_datetime(entry.date)
        for category in entry.categories:
            SubElement(item, "category").text = category
        SubElement(item, f"{{{CONTENT_NS}}}encoded").text = entry.content

    return "<?xml version='1.0' encoding='UTF-8'?>\n" + tostring(root, encoding="unicode")


def build_manifest(options: ManifestOptions, icon_url: Optional[str] = None) -> dict:
    """Return the web app manifest descriptor."""
    manifest = options.model_dump(exclude={"icon"})
    manifest["icon"] = icon_url if icon_url is not None else options.icon
    return manifest


def manifest_to_json(manifest: dict) -> str:
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"
