"""Import MCP Server - JavaScript and TypeScript import synthesis tools."""

import logging

from fastmcp import FastMCP

from .config import get_config
from .tools import register_import_tools

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

# Initialize the Import MCP server
mcp = FastMCP(
    name="Quicken Import Server",
    version=__version__,
    instructions="""
        Import server adds correctly formed import statements to JavaScript and TypeScript files:

        Core Tools:
        - list_import_candidates: Ranked files, packages and text snippets for a file
        - add_import: Insert or merge an import of a file or package
        - get_exported_identifiers: What a module exports, following re-exports
        - fix_broken_imports: Repoint relative imports after files moved
        - invalidate_export_cache: Forget cached exports after edits
        - insert_text: Insert a text snippet defined under "texts" in the rule file

        Project rules are read from .quicken.yaml in the project root (MCP_FILE_ROOT).

        Best Practices:
        - Use list_import_candidates to find the module path before calling add_import
        - add_import returns the edit without saving unless write=True
        - Call invalidate_export_cache after editing exports outside these tools
    """,
)

# Register all import tools
register_import_tools(mcp)


def main():
    """Entry point for the import server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Load configuration from environment
    config = get_config()

    # Apply log level from configuration
    logging.getLogger().setLevel(getattr(logging, config.log_level))

    logger.info(f"Starting import server (rules file: {config.rules_file})")
    mcp.run()


if __name__ == "__main__":
    main()
