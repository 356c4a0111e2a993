#!/usr/bin/env python
"""
Run the Streamlit product management application.

Usage:
    python scripts/run_app.py
"""
import logging
import os
import subprocess
import sys
from pathlib import Path

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger("run_app")


def main():
    project_root = Path(__file__).parent.parent
    ui_path = project_root / 'src' / 'product_pricing' / 'ui' / 'app_streamlit.py'

    if not ui_path.exists():
        logger.error("UI module not found at %s", ui_path)
        sys.exit(1)

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_path, env.get("PYTHONPATH")]))

    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path)]
    logger.info("Starting Streamlit: %s", ' '.join(cmd))

    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        logger.info("Application stopped.")


if __name__ == "__main__":
    main()
