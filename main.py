#!/usr/bin/env python3
"""
PDF Markup MCP Server
Reads, adds, removes and clears standard PDF annotations (highlight,
underline, strikethrough, ink, sticky notes) that any PDF reader can display.
"""

import logging

from pdf_markup.core import paths as _paths
from pdf_markup.core.paths import parse_arguments, setup_search_directories
from pdf_markup.tools.mcp_tools import mcp

# --- Basic Configuration ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("PDFMarkup")


def main():
    args = parse_arguments()
    logging.getLogger().setLevel(getattr(logging, args.log_level))
    setup_search_directories(args)

    logger.info("Starting PDF Markup MCP Server...")
    logger.info(f"Accessible directories: {_paths.SEARCH_DIRECTORIES}")
    logger.info(f"Maximum file size: {_paths.MAX_FILE_SIZE // (1024 * 1024)} MB")

    # stdio transport
    mcp.run()


if __name__ == "__main__":
    main()
