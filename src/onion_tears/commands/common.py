"""Helpers shared by the CLI commands."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from onion_tears.config import Config, create_configuration, load_config_file
from onion_tears.exit_codes import GateFailureError
from onion_tears.index.complexity import FileComplexityResult, ThresholdStatus

log = logging.getLogger(__name__)

# Report and graphs land here unless --output-dir says otherwise
DEFAULT_OUTPUT_DIR = "onion-tears"


def load_config(start_dir: str | Path) -> Config:
    """Defaults overlaid with whatever config file is found from *start_dir* up."""
    config = create_configuration(load_config_file(start_dir))
    log.debug(
        "Thresholds: warning=%s error=%s", config.cyclomatic_warning, config.cyclomatic_error
    )
    return config


def relative_path(path: str | Path) -> str:
    """Path relative to the working directory, with forward slashes."""
    try:
        rel = os.path.relpath(path)
    except ValueError:
        # different drive on Windows
        rel = str(path)
    return rel.replace("\\", "/")


def count_status(file_results: list[FileComplexityResult], status: ThresholdStatus) -> int:
    return sum(1 for fr in file_results for r in fr.results if r.threshold_status == status)


def summarize(file_results: list[FileComplexityResult]) -> dict:
    return {
        "files": len(file_results),
        "functions": sum(len(fr.results) for fr in file_results),
        "errors": count_status(file_results, ThresholdStatus.ERROR),
        "warnings": count_status(file_results, ThresholdStatus.WARNING),
        "diagnostics": sum(len(fr.diagnostics) for fr in file_results),
    }


def check_gate(file_results: list[FileComplexityResult], config: Config) -> None:
    """Raise GateFailureError when any function reached the error threshold."""
    errors = count_status(file_results, ThresholdStatus.ERROR)
    if errors:
        raise GateFailureError(
            f"{errors} function(s) at or above the cyclomatic error threshold "
            f"({config.cyclomatic_error})."
        )
