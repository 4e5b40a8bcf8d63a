"""Build orchestration: parallel per-document processing, feed/manifest barrier, report"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mdsite.config import Settings
from mdsite.core.assets import AssetStore
from mdsite.core.derive import derive
from mdsite.core.emit import build_feed, build_manifest, feed_to_xml_string, manifest_to_json, order_records
from mdsite.core.errors import AssetNotFound, DocumentError, DuplicateDocument
from mdsite.core.load import check_roots, discover, load_document
from mdsite.core.models import DocumentRecord, SourceDocument
from mdsite.core.pipeline import Pipeline


logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Outcome of a build: records that made it through and per-document failures."""
    records:       list[DocumentRecord] = field(default_factory=list)
    failures:      list[DocumentError] = field(default_factory=list)
    record_paths:  dict[str, Path] = field(default_factory=dict)
    feed_path:     Optional[Path] = None
    manifest_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return not self.failures


def record_path(record: DocumentRecord) -> str:
    """Relative output path of a record: '<collection>/<slug>.json', '/' -> 'index'."""
    stem = record.slug.strip("/") or "index"
    return f"{record.collection}/{stem}.json"


def process_document(
    source: SourceDocument,
    pipeline: Pipeline,
    settings: Settings,
    roots: list[Path],
    store: AssetStore,
    ) -> DocumentRecord:
    """Parse, transform and derive one document. Raises DocumentError on failure."""
    doc = load_document(source, settings.required_fields)
    ctx = pipeline.context(doc, roots, store, settings.strict_assets)
    pipeline.run(doc, ctx)
    try:
        doc.derived = derive(doc, settings.excerpt_length)
    except DocumentError as e:
        e.identity = e.identity or doc.identity
        raise
    return doc.freeze()


def _drop_duplicates(records: list[DocumentRecord]) -> tuple[list[DocumentRecord], list[DocumentError]]:
    """Keep the first record (by source path) per identity; report the others."""
    kept: dict[str, DocumentRecord] = {}
    failures: list[DocumentError] = []
    for r in sorted(records, key=lambda r: r.path):
        if r.identity in kept:
            failures.append(DuplicateDocument(
                f"slug already used by {kept[r.identity].path} ({r.path})", r.identity))
        else:
            kept[r.identity] = r
    return list(kept.values()), failures


def transform_all(
    settings: Settings,
    pipeline: Pipeline,
    store: AssetStore,
    ) -> tuple[list[DocumentRecord], list[DocumentError]]:
    """Process every discovered document on a thread pool; returns once all are done."""
    roots = settings.source_roots()
    root_paths = [r for r, _ in roots]
    records: list[DocumentRecord] = []
    failures: list[DocumentError] = []

    with ThreadPoolExecutor(max_workers=settings.workers) as pool:
        futures = {
            pool.submit(process_document, src, pipeline, settings, root_paths, store): src
            for src in discover(roots)
        }
        try:
            for fut in as_completed(futures):
                try:
                    record = fut.result()
                except DocumentError as e:
                    e.identity = e.identity or str(futures[fut].path)
                    logger.error("Failed: %s", e)
                    failures.append(e)
                else:
                    logger.info("Built %s", record.identity)
                    records.append(record)
        except KeyboardInterrupt:
            logger.warning("Interrupted; cancelling %d queued document(s)", sum(not f.done() for f in futures))
            pool.shutdown(wait=True, cancel_futures=True)
            raise

    records, duplicates = _drop_duplicates(records)
    return records, failures + duplicates


def _publish_icon(settings: Settings, store: AssetStore) -> Optional[str]:
    icon = settings.manifest.icon
    if not icon:
        return None
    path = settings.resolve(icon)
    if not path.is_file():
        raise AssetNotFound(icon, "manifest")
    return store.publish(path, "icons")


def run_build(settings: Settings, pipeline: Optional[Pipeline] = None) -> BuildReport:
    """Run the whole build described by settings.

    Configuration errors (StageConfigurationError) and missing roots
    (SourceUnavailable) are raised before any document is processed.
    Per-document errors are collected in the report.
    """
    pipeline = pipeline or Pipeline.from_specs(settings.stages, settings.parser_config)
    check_roots(settings.source_roots())
    logger.info("Stages: %s", ", ".join(pipeline.names) or "(none)")

    report = BuildReport()
    with AssetStore(settings.resolve(settings.output_dir)) as store:
        records, report.failures = transform_all(settings, pipeline, store)

        for record in records:
            report.record_paths[record.identity] = store.write_text(
                record_path(record), record.model_dump_json(indent=2))

        feed = build_feed(records, settings.site, settings.feed)
        report.feed_path = store.write_text(settings.feed.path, feed_to_xml_string(feed))

        if settings.manifest is not None:
            manifest = build_manifest(settings.manifest, _publish_icon(settings, store))
            report.manifest_path = store.write_text(settings.manifest_path, manifest_to_json(manifest))

        report.records = order_records(records)
    return report
