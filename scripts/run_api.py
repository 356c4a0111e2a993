#!/usr/bin/env python
"""
Run the product pricing API with uvicorn.

Usage:
    python scripts/run_api.py
"""
import logging
import os
import sys
from pathlib import Path

import uvicorn

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger("run_api")


def main():
    project_root = Path(__file__).parent.parent
    os.chdir(project_root)

    # Ensure src is in python path
    src_path = str(project_root / "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
    os.environ["PYTHONPATH"] = os.pathsep.join(filter(None, [src_path, os.environ.get("PYTHONPATH")]))

    from product_pricing.config.settings import get_settings
    settings = get_settings()

    logger.info("Starting Product Pricing API on %s:%s", settings.api_host, settings.api_port)
    try:
        uvicorn.run(
            "product_pricing.api.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            reload_dirs=[src_path],
        )
    except KeyboardInterrupt:
        logger.info("API stopped.")


if __name__ == "__main__":
    main()
