"""
Render the import report notebook(s) to standalone HTML with marimo.
"""

import subprocess
import sys
from pathlib import Path

from import_commodity_report.config import get_config
from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)

ANALYSIS_SCRIPT_DIR = Path(__file__).parent / "analysis"

PIPELINE_SCRIPTS = [
    ANALYSIS_SCRIPT_DIR / "IMPORT_REPORT.py",
]


def export_command(script_path: Path, output_path: Path) -> list[str]:
    return [
        sys.executable,
        "-m",
        "marimo",
        "export",
        "html",
        str(script_path),
        "-o",
        str(output_path),
        "--no-include-code",
    ]


def run_pipeline(output_dir=None):
    """Exports each report notebook to HTML. Returns True if all succeeded."""
    logger.info("--- Starting report export ---")
    output_dir = Path(output_dir or get_config()["OUTPUT_DIR"])
    output_dir.mkdir(parents=True, exist_ok=True)
    pipeline_successful = True

    for script_path in PIPELINE_SCRIPTS:
        if not script_path.exists():
            logger.error(f"Script not found: {script_path}. Halting pipeline.")
            pipeline_successful = False
            break

        output_path = output_dir / f"{script_path.stem.lower()}.html"
        command = export_command(script_path, output_path)
        logger.info(f"Exporting {script_path.name} -> {output_path}")
        logger.debug(f"Executing command: {' '.join(command)}")

        try:
            subprocess.run(
                command,
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
            logger.info(f"Successfully exported: {output_path}")

        except subprocess.CalledProcessError as e:
            logger.error(f"Error exporting script: {script_path.name}")
            logger.error(f"Return code: {e.returncode}")
            logger.error(f"stdout:\n{e.stdout}")
            logger.error(f"stderr:\n{e.stderr}")
            pipeline_successful = False
            break
        except OSError as e:
            logger.error(f"Could not start marimo for {script_path.name}: {e}")
            pipeline_successful = False
            break

    if pipeline_successful:
        logger.info("--- Report export finished successfully ---")
    else:
        logger.error("--- Report export finished with errors ---")

    return pipeline_successful


if __name__ == "__main__":
    sys.exit(0 if run_pipeline() else 1)
