"""Plain-text ingestion entrypoint.

This script reads extracted text files, segments each into passages and
writes them to the configured passage store for one matter, then persists
the store.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from matter_rag.app.container import build_container
from matter_rag.common import InputError
from matter_rag.config import GlobalConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest plain-text documents into a matter")

    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Text files to ingest. The file name is used as the document name.",
    )

    parser.add_argument(
        "--matter-id",
        "-m",
        required=True,
        type=str,
        help="Matter the documents belong to.",
    )

    parser.add_argument(
        "--doc-type",
        "-t",
        required=False,
        type=str,
        default=None,
        help="Document type tag applied to every file (default: Other).",
    )

    parser.add_argument(
        "--config-file",
        "-c",
        required=True,
        type=str,
        help="Path to the YAML configuration file.",
    )

    parser.add_argument(
        "--persist-path",
        "-d",
        required=False,
        type=str,
        default=None,
        help="Override passage_store.persist_path from config (optional).",
    )

    return parser.parse_args()


def main() -> None:
    args = parse_args()

    cfg = GlobalConfig.load(args.config_file)
    if args.persist_path:
        section = cfg.raw.get("passage_store")
        if not isinstance(section, dict):
            section = {}
            cfg.raw["passage_store"] = section
        section["persist_path"] = str(Path(args.persist_path).expanduser().resolve())

    container = build_container(cfg)
    if container.persist_path is None:
        raise RuntimeError("No passage_store.persist_path configured; ingested passages would be lost.")

    ingestor = container.ingestor
    total = 0
    skipped = 0
    for path in args.files:
        text = path.read_text(encoding="utf-8")
        try:
            result = ingestor.ingest(args.matter_id, path.name, text, doc_type=args.doc_type)
        except InputError as e:
            print(f"Skipping {path.name}: {e}")
            skipped += 1
            continue
        print(f"{path.name}: {result.document.char_count} chars -> {result.chunks_persisted} passages")
        total += result.chunks_persisted

    print(f"Persisting passage store to {container.persist_path}...")
    container.persist()

    print(f"Ingestion complete! {total} passages from {len(args.files) - skipped} file(s); {skipped} skipped.")


if __name__ == "__main__":
    main()
