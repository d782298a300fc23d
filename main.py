#!/usr/bin/env python3
"""
main.py - car-sales EDA pipeline controller
--------------------------------------------
• Runs load → audit → clean → impute → derive → flag
• Writes the processed table, the quality report and outlier artefacts
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

import config as _cfg
from config import PipelineConfig
from exceptions import PipelineError
from outlier_flagging import save_outlier_report
from pipeline import run_pipeline


def _csv_list(raw: str | None) -> List[str] | None:
    if raw is None:
        return None
    return [s.strip() for s in raw.split(",") if s.strip()]


def configure_logging(loglevel: str, log_file: str | Path = "pipeline.log") -> None:
    console_handler = logging.StreamHandler(stream=sys.stdout)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")

    logging.basicConfig(
        level=getattr(logging, loglevel.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=[file_handler, console_handler],
        force=True,
    )


# ────────────────────────── MAIN FLOW ───────────────────────── #
def main(
    *,
    data_path: Path,
    output_path: Path,
    artifact_dir: Path,
    loglevel: str,
    reference_year: int | None = None,
    luxury_brands: List[str] | None = None,
    outlier_fields: List[str] | None = None,
    iqr_multiplier: float | None = None,
) -> int:
    configure_logging(loglevel)

    try:
        cfg = PipelineConfig.from_env(
            reference_year=reference_year,
            luxury_brands=frozenset(luxury_brands) if luxury_brands else None,
            outlier_fields=tuple(outlier_fields) if outlier_fields else None,
            iqr_multiplier=iqr_multiplier,
        )
        logging.info("Pipeline configuration: %s", cfg.to_dict())
        result = run_pipeline(data_path, cfg)
    except (PipelineError, FileNotFoundError, KeyError) as exc:
        logging.error("Pipeline aborted: %s", exc)
        return 1

    output_path.parent.mkdir(parents=True, exist_ok=True)
    result.data.to_csv(output_path, index=False)
    logging.info("Processed data saved => %s", output_path)

    artifact_dir.mkdir(parents=True, exist_ok=True)
    report_path = artifact_dir / _cfg.QUALITY_REPORT_NAME
    with open(report_path, "w", encoding="utf-8") as fh:
        json.dump(result.summary(), fh, indent=2)
    logging.info("Quality report saved => %s", report_path)

    if result.outliers is not None:
        save_outlier_report(result.outliers, artifact_dir)

    logging.info("🏁 Pipeline finished: %d records", len(result.data))
    return 0


# ────────────────────────── CLI ────────────────────────── #
def build_parser() -> argparse.ArgumentParser:
    cli_parser = argparse.ArgumentParser(description="Car-sales cleaning / imputation / feature pipeline")
    cli_parser.add_argument("--data", default=_cfg.RAW_DATA_PATH, help="Raw CSV path")
    cli_parser.add_argument("--output", default=_cfg.PROCESSED_DATA_PATH, help="Processed CSV path")
    cli_parser.add_argument("--artifact-dir", default=_cfg.ARTIFACT_DIR, help="Directory for report/outlier artefacts")
    cli_parser.add_argument("--log-level", default="INFO", help="DEBUG | INFO | WARNING | ERROR")
    cli_parser.add_argument("--reference-year", type=int, help="Year car ages are measured against (default 2025)")
    cli_parser.add_argument("--luxury-brands", help="Comma-separated luxury maker allowlist")
    cli_parser.add_argument("--outlier-fields", help="Comma-separated fields to flag with the IQR rule")
    cli_parser.add_argument("--iqr-multiplier", type=float, help="IQR fence multiplier (default 1.5)")
    return cli_parser


if __name__ == "__main__":
    args = build_parser().parse_args()
    sys.exit(
        main(
            data_path=Path(args.data),
            output_path=Path(args.output),
            artifact_dir=Path(args.artifact_dir),
            loglevel=args.log_level,
            reference_year=args.reference_year,
            luxury_brands=_csv_list(args.luxury_brands),
            outlier_fields=_csv_list(args.outlier_fields),
            iqr_multiplier=args.iqr_multiplier,
        )
    )
