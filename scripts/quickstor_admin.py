"""
Admin command line for the QuickStor backend: documents, backups and AI
section generation.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import get_settings
from content.prompt_service import PromptService
from content.section_content import extract_data_with_ai, generate_section_content
from models.api_config import AIConfig
from models.gateway import create_gateway, provider_info
from shared.attachments import attachment_from_file
from shared.backup import backup_filename, create_backup, parse_backup, restore_backup
from shared.document_store import HttpDocumentStore
from shared.errors import QuickstorError
from shared.local_config import LocalConfig

logger = logging.getLogger(__name__)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_get(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    snapshot = store.get(args.path)
    if not snapshot.exists:
        logger.error("Document not found: %s", args.path)
        return 1
    _print_json(snapshot.data)
    return 0


def cmd_set(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    value = json.loads(Path(args.file).read_text(encoding="utf-8"))
    _print_json(store.set(args.path, value, merge=args.merge))
    return 0


def cmd_watch(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    def on_change(snapshot):
        logger.info("%s changed (exists=%s)", snapshot.path, snapshot.exists)
        _print_json(snapshot.data)

    subscription = store.watch(args.path, on_change)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        subscription.cancel()
    return 0


def cmd_backup(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    app_state = {}
    if args.app_state:
        app_state = json.loads(Path(args.app_state).read_text(encoding="utf-8"))
    bundle = create_backup(store, app_state, local_config)
    output = Path(args.output or backup_filename())
    output.write_text(json.dumps(bundle, indent=2), encoding="utf-8")
    logger.info("Full backup written to %s", output)
    return 0


def cmd_restore(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    bundle = parse_backup(Path(args.file).read_text(encoding="utf-8"))
    restored = restore_backup(bundle, store, local_config)
    logger.info("System restored successfully (%d documents)", len(restored))
    return 0


def _load_ai_config(local_config: LocalConfig) -> AIConfig:
    settings = get_settings()
    config = local_config.load_ai_config()
    if config.is_gemini and not config.gemini.api_key and settings.gemini_api_key:
        config.gemini.api_key = settings.gemini_api_key
    info = provider_info(config)
    logger.info("Using %s (%s)", info["name"], info["model"])
    return config


def cmd_extract(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    config = _load_ai_config(local_config)
    section = args.section_type
    if args.current:
        section = {
            "type": args.section_type,
            "content": json.loads(Path(args.current).read_text(encoding="utf-8")),
        }
    result = extract_data_with_ai(
        Path(args.file).read_text(encoding="utf-8"),
        section,
        create_gateway(config),
        PromptService.from_file(local_config, get_settings().prompts_file),
    )
    logger.info("Extracted data using %s", result["method"])
    _print_json(result["data"])
    return 0


def cmd_generate(args, store: HttpDocumentStore, local_config: LocalConfig) -> int:
    settings = get_settings()
    config = _load_ai_config(local_config)

    current_content = {}
    if args.current:
        current_content = json.loads(Path(args.current).read_text(encoding="utf-8"))
    attachment = attachment_from_file(args.attach) if args.attach else None

    result = generate_section_content(
        args.section_type,
        args.prompt,
        create_gateway(config),
        config,
        PromptService.from_file(local_config, settings.prompts_file),
        current_content=current_content,
        attachment=attachment,
        on_progress=lambda message: logger.info(message),
    )
    _print_json(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="QuickStor admin tools")
    parser.add_argument(
        "--backend-url",
        type=str,
        default=None,
        help="Override the /api/data base URL",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("get", help="Print one document")
    p.add_argument("path")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("set", help="Write one document from a JSON file")
    p.add_argument("path")
    p.add_argument("file")
    p.add_argument("--merge", action="store_true", help="Shallow-merge onto the current value")
    p.set_defaults(func=cmd_set)

    p = sub.add_parser("watch", help="Print a document whenever it changes")
    p.add_argument("path")
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("backup", help="Write a full backup bundle")
    p.add_argument("-o", "--output", type=str, default=None)
    p.add_argument("--app-state", type=str, default=None, help="JSON file with app state")
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("restore", help="Restore a backup bundle")
    p.add_argument("file")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("generate", help="Generate content for a section")
    p.add_argument("section_type", choices=["HERO", "FEATURE_GRID", "COMPARISON_GRAPH", "CUSTOM_HTML"])
    p.add_argument("prompt")
    p.add_argument("--attach", type=str, default=None, help="File to attach as context")
    p.add_argument("--current", type=str, default=None, help="JSON file with current content")
    p.set_defaults(func=cmd_generate)

    p = sub.add_parser("extract", help="Extract section data from a file")
    p.add_argument("section_type", choices=["HERO", "FEATURE_GRID", "COMPARISON_GRAPH", "CUSTOM_HTML"])
    p.add_argument("file")
    p.add_argument("--current", type=str, default=None, help="JSON file with current content")
    p.set_defaults(func=cmd_extract)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    store = HttpDocumentStore(args.backend_url or settings.backend_url)
    local_config = LocalConfig(settings.local_config_file)
    try:
        return args.func(args, store, local_config)
    except QuickstorError as exc:
        logger.error("%s", exc)
        return 1
    except ValueError as exc:
        logger.error("Invalid JSON input: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Could not read or write file: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
