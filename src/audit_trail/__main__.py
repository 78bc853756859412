"""CLI エントリーポイント"""

import argparse
import json
import sys
import logging

from .config import AuditSettings
from .domain.models import DocumentContext
from .infrastructure.audit_store import AuditStore
from .orchestration.audit_service import AuditTrailService


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audit_trail",
        description="Compute field-level audit records between two JSON snapshots"
    )
    parser.add_argument("before", help="previous snapshot (JSON file)")
    parser.add_argument("after", help="current snapshot (JSON file)")
    parser.add_argument("--id", dest="identity", required=True, help="document identity")
    parser.add_argument("--doc-version", type=int, default=0, help="document version")
    parser.add_argument("--save", action="store_true", help="persist records to the audit store")
    return parser


def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv=None):
    """
    CLI エントリーポイント

    Usage:
        python -m audit_trail before.json after.json --id DOC_ID --doc-version 3 [--save]

    Exit codes:
        0: 成功
        1: 失敗
    """
    args = _build_parser().parse_args(argv)

    # 設定を環境変数から読み込み
    settings = AuditSettings.from_env()

    # ロギング設定
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger = logging.getLogger(__name__)

    try:
        store = AuditStore(settings.store_dir)
        service = AuditTrailService(store=store, ignored_fields=settings.ignored_fields)
        doc = DocumentContext(identity=args.identity, version=args.doc_version)

        records = service.get_audit_diffs(doc, _load_json(args.before), _load_json(args.after))
        print(json.dumps(
            [record.model_dump(mode="json", exclude_none=True) for record in records],
            ensure_ascii=False,
            indent=2
        ))

        if args.save:
            result = service.save_audit_diffs(records)
            if not result.success:
                logger.error(f"Saving audit records failed: {', '.join(result.errors)}")
                sys.exit(1)
            logger.info(f"{result.saved_count} audit records saved to {store.audit_file}")

        sys.exit(0)

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
